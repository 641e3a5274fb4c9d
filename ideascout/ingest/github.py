"""GitHub source fetcher: feature requests and pain points from issues."""

from __future__ import annotations

import logging

import httpx

from ideascout.errors import ConfigError
from ideascout.ingest import register_source
from ideascout.ingest.base import BaseSource
from ideascout.models import RawItem

logger = logging.getLogger(__name__)

GITHUB_SEARCH_URL = "https://api.github.com/search/issues"


@register_source("github")
class GitHubSource(BaseSource):
    """Search GitHub issues for requested tools and unmet needs."""

    default_queries = (
        'label:"feature request" is:open sort:reactions-desc saas',
        'label:"enhancement" is:open sort:reactions-desc automation',
        '"would pay for" is:issue sort:reactions-desc',
    )

    def check_credentials(self) -> None:
        if self.settings.get("require_token", False) and not self.settings.get("token"):
            raise ConfigError(f"{self.name}: GitHub token not configured")

    async def _search(self, query: str) -> list[RawItem]:
        data = await self._fetch_api(
            query, self.settings.get("per_page", 15), self.settings.get("token", ""),
        )

        items = []
        for issue in data.get("items", []):
            title = issue.get("title", "")
            url = issue.get("html_url", "")
            if not title or not url:
                continue

            reactions = (issue.get("reactions") or {}).get("total_count", 0)
            items.append(
                self._make_item(
                    title=title,
                    description=issue.get("body") or "",
                    url=url,
                    engagement={
                        "reactions": reactions,
                        "comments": issue.get("comments", 0),
                        "posted_at": (issue.get("created_at") or "").rstrip("Z") or None,
                    },
                )
            )

        return items

    @staticmethod
    async def _fetch_api(query: str, per_page: int, token: str) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "ideascout",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.get(
                GITHUB_SEARCH_URL,
                params={"q": query, "per_page": per_page},
                headers=headers,
            )
            resp.raise_for_status()
            return resp.json()
