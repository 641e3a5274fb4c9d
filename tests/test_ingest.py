"""Tests for the GitHub and web search sources and shared filters."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from ideascout.errors import ConfigError
from ideascout.ingest import SOURCES
from ideascout.ingest.base import posted_at_from_timestamp
from ideascout.ingest.filters import classify_category, classify_industry, passes_allow_list
from ideascout.ingest.github import GitHubSource
from ideascout.ingest.websearch import (
    WebSearchSource,
    platform_for_link,
    search_relevance,
)
from ideascout.models import SourceConfig

MOCK_SERPER_RESPONSE = {
    "organic": [
        {
            "title": "Startup idea: AI meeting notes for sales teams",
            "link": "https://twitter.com/founder/status/1",
            "snippet": "Would love a platform that writes CRM notes.",
        },
        {
            "title": "Best SaaS ideas for 2024",
            "link": "https://www.example.com/blog/saas-ideas",
            "snippet": "A list of product ideas.",
        },
        {"title": "", "link": "https://x.com/nobody/status/2"},
    ]
}

MOCK_GITHUB_RESPONSE = {
    "items": [
        {
            "title": "Feature request: build a Slack integration for the platform",
            "html_url": "https://github.com/org/repo/issues/1",
            "body": "Our team would pay for this.",
            "comments": 4,
            "reactions": {"total_count": 27},
            "created_at": "2024-02-01T10:00:00Z",
        },
        {
            "title": "Fix typo in README",
            "html_url": "https://github.com/org/repo/issues/2",
            "body": "",
        },
    ]
}


def test_registered_kinds():
    assert set(SOURCES) == {"hackernews", "reddit", "github", "websearch"}


def test_allow_list_and_classification():
    assert passes_allow_list("A startup for dentists")
    assert not passes_allow_list("Garden photos from the weekend")
    assert classify_category("An enterprise API") == "B2B & Enterprise"
    assert classify_category("Nothing specific") == "Professional Services"
    assert classify_industry("Patient intake forms") == "Healthcare"
    assert classify_industry("Nothing specific") is None


def test_posted_at_from_timestamp():
    assert posted_at_from_timestamp(0) is None
    assert posted_at_from_timestamp("bad") is None
    assert posted_at_from_timestamp(1700000000) == "2023-11-14T22:13:20"


def test_platform_for_link():
    assert platform_for_link("https://x.com/a/status/1", "web") == "twitter"
    assert platform_for_link("https://www.twitter.com/a", "web") == "twitter"
    assert platform_for_link("https://example.com/post", "web") == "web"


def test_search_relevance_capped():
    text = "startup business idea app idea saas tech startup entrepreneur innovation"
    assert search_relevance(text, "twitter") == 1.0
    assert search_relevance("nothing here", "web") == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_websearch_requires_api_key(sample_config):
    descriptor = SourceConfig(name="twitter", kind="websearch", platform="twitter")
    with pytest.raises(ConfigError, match="API key"):
        await WebSearchSource(sample_config, descriptor).fetch()


@pytest.mark.asyncio
@patch(
    "ideascout.ingest.websearch.WebSearchSource._fetch_api",
    new_callable=AsyncMock,
)
async def test_websearch_fetch(mock_fetch, sample_config):
    mock_fetch.return_value = MOCK_SERPER_RESPONSE
    descriptor = SourceConfig(
        name="web", kind="websearch", platform="web",
        settings={"api_key": "key", "queries": ["saas idea"]},
    )

    items = await WebSearchSource(sample_config, descriptor).fetch()

    assert [i.source_platform for i in items] == ["twitter", "web"]
    assert items[0].engagement["position"] == 1
    query = mock_fetch.await_args.args[1]
    assert query == 'site:twitter.com "saas idea" OR site:x.com "saas idea"'


@pytest.mark.asyncio
@patch("ideascout.ingest.github.GitHubSource._fetch_api", new_callable=AsyncMock)
async def test_github_fetch(mock_fetch, sample_config):
    mock_fetch.return_value = MOCK_GITHUB_RESPONSE
    descriptor = SourceConfig(
        name="github", kind="github", platform="github",
        settings={"queries": ["saas"], "token": "ghp_test"},
    )

    items = await GitHubSource(sample_config, descriptor).fetch()

    assert len(items) == 1
    assert items[0].engagement["reactions"] == 27
    assert items[0].engagement["posted_at"] == "2024-02-01T10:00:00"
    mock_fetch.assert_awaited_once_with("saas", 15, "ghp_test")


@pytest.mark.asyncio
async def test_github_required_token_missing(sample_config):
    descriptor = SourceConfig(
        name="github", kind="github", platform="github",
        settings={"require_token": True},
    )
    with pytest.raises(ConfigError):
        await GitHubSource(sample_config, descriptor).fetch()
