"""Reddit source fetcher for startup subreddits.

Uses the public JSON listings, or the OAuth API when script-app
credentials are configured.
"""

from __future__ import annotations

import logging

import httpx

from ideascout.errors import ConfigError
from ideascout.ingest import register_source
from ideascout.ingest.base import BaseSource, posted_at_from_timestamp
from ideascout.models import RawItem

logger = logging.getLogger(__name__)

USER_AGENT = "ideascout/0.1 (startup idea discovery)"
PUBLIC_BASE = "https://www.reddit.com"
TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
OAUTH_BASE = "https://oauth.reddit.com"


@register_source("reddit")
class RedditSource(BaseSource):
    """Fetch hot posts from idea-focused subreddits.

    Each configured subreddit is treated as one query.
    """

    default_queries = ("startups", "Entrepreneur", "SideProject", "Business_Ideas")

    def __init__(self, config: dict, source):
        super().__init__(config, source)
        self._token: str | None = None

    @property
    def queries(self) -> list[str]:
        return list(self.settings.get("subreddits") or self.default_queries)

    def check_credentials(self) -> None:
        client_id = self.settings.get("client_id", "")
        client_secret = self.settings.get("client_secret", "")
        if bool(client_id) != bool(client_secret):
            raise ConfigError(
                f"{self.name}: client_id and client_secret must be set together"
            )

    async def fetch(self) -> list[RawItem]:
        self.check_credentials()
        client_id = self.settings.get("client_id", "")
        if client_id:
            self._token = await self._get_token(
                client_id, self.settings.get("client_secret", ""),
            )
        return await super().fetch()

    async def _search(self, subreddit: str) -> list[RawItem]:
        data = await self._fetch_json(
            subreddit, self.settings.get("limit", 10), self._token,
        )
        min_score = self.settings.get("min_score", 0)

        items = []
        for child in data.get("data", {}).get("children", []):
            post = child.get("data", {})

            if post.get("stickied", False):
                continue
            if post.get("score", 0) < min_score:
                continue

            title = post.get("title", "")
            if not title:
                continue

            items.append(
                self._make_item(
                    title=title,
                    description=post.get("selftext", ""),
                    url=f"{PUBLIC_BASE}{post.get('permalink', '')}",
                    engagement={
                        "score": post.get("score", 0),
                        "comments": post.get("num_comments", 0),
                        "subreddit": subreddit,
                        "posted_at": posted_at_from_timestamp(post.get("created_utc")),
                    },
                )
            )

        return items

    async def _get_token(self, client_id: str, client_secret: str) -> str:
        """Obtain an OAuth2 bearer token using client credentials."""
        async with httpx.AsyncClient(timeout=15) as client:
            resp = await client.post(
                TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(client_id, client_secret),
                headers={"User-Agent": USER_AGENT},
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        if not token:
            raise ConfigError(f"{self.name}: OAuth token request returned no token")
        return token

    @staticmethod
    async def _fetch_json(subreddit: str, limit: int, token: str | None) -> dict:
        headers = {"User-Agent": USER_AGENT}
        if token:
            url = f"{OAUTH_BASE}/r/{subreddit}/hot.json"
            headers["Authorization"] = f"Bearer {token}"
        else:
            url = f"{PUBLIC_BASE}/r/{subreddit}/hot.json"

        async with httpx.AsyncClient(timeout=15, follow_redirects=True) as client:
            resp = await client.get(url, params={"limit": limit}, headers=headers)
            resp.raise_for_status()
            return resp.json()
