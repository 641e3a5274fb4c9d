"""Tests for the Reddit source."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from ideascout.errors import ConfigError
from ideascout.ingest.reddit import RedditSource
from ideascout.models import SourceConfig

MOCK_LISTING = {
    "data": {
        "children": [
            {
                "data": {
                    "title": "Weekly startup idea thread",
                    "stickied": True,
                    "score": 500,
                    "permalink": "/r/startups/comments/1/weekly/",
                }
            },
            {
                "data": {
                    "title": "Would you pay for an app that tracks subscriptions?",
                    "selftext": "I keep forgetting about trials.",
                    "score": 64,
                    "num_comments": 30,
                    "created_utc": 1700000000,
                    "permalink": "/r/startups/comments/2/subscriptions/",
                }
            },
            {
                "data": {
                    "title": "Business idea: dog walking marketplace",
                    "score": 1,
                    "permalink": "/r/startups/comments/3/dogs/",
                }
            },
        ]
    }
}


def _descriptor(**settings) -> SourceConfig:
    return SourceConfig(name="reddit", kind="reddit", platform="reddit", settings=settings)


@pytest.mark.asyncio
@patch("ideascout.ingest.reddit.RedditSource._fetch_json", new_callable=AsyncMock)
async def test_reddit_skips_stickied_and_low_score(mock_fetch, sample_config):
    mock_fetch.return_value = MOCK_LISTING
    source = RedditSource(sample_config, _descriptor(subreddits=["startups"], min_score=5))

    items = await source.fetch()

    assert len(items) == 1
    item = items[0]
    assert item.source_url == "https://www.reddit.com/r/startups/comments/2/subscriptions/"
    assert item.engagement["subreddit"] == "startups"
    assert item.engagement["comments"] == 30
    mock_fetch.assert_awaited_once_with("startups", 10, None)


@pytest.mark.asyncio
@patch("ideascout.ingest.reddit.RedditSource._fetch_json", new_callable=AsyncMock)
async def test_reddit_default_subreddits(mock_fetch, sample_config):
    mock_fetch.return_value = {"data": {"children": []}}
    source = RedditSource(sample_config, _descriptor())

    await source.fetch()

    queried = [c.args[0] for c in mock_fetch.await_args_list]
    assert queried == ["startups", "Entrepreneur", "SideProject", "Business_Ideas"]


@pytest.mark.asyncio
async def test_reddit_half_configured_credentials(sample_config):
    source = RedditSource(sample_config, _descriptor(client_id="abc"))
    with pytest.raises(ConfigError, match="together"):
        await source.fetch()


@pytest.mark.asyncio
@patch("ideascout.ingest.reddit.RedditSource._fetch_json", new_callable=AsyncMock)
@patch("ideascout.ingest.reddit.RedditSource._get_token", new_callable=AsyncMock)
async def test_reddit_oauth_token_used(mock_token, mock_fetch, sample_config):
    mock_token.return_value = "tok"
    mock_fetch.return_value = {"data": {"children": []}}
    source = RedditSource(
        sample_config,
        _descriptor(subreddits=["SaaS"], client_id="abc", client_secret="xyz"),
    )

    await source.fetch()

    mock_token.assert_awaited_once_with("abc", "xyz")
    mock_fetch.assert_awaited_once_with("SaaS", 10, "tok")
