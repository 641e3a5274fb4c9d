"""Hacker News source fetcher via Algolia search API."""

from __future__ import annotations

import logging

import httpx

from ideascout.ingest import register_source
from ideascout.ingest.base import BaseSource, posted_at_from_timestamp
from ideascout.models import RawItem

logger = logging.getLogger(__name__)

HN_ALGOLIA_URL = "https://hn.algolia.com/api/v1/search_by_date"
HN_ITEM_URL = "https://news.ycombinator.com/item?id={}"


@register_source("hackernews")
class HackerNewsSource(BaseSource):
    """Fetch Ask HN / Show HN posts that discuss startup ideas."""

    default_queries = ("startup idea", "business idea", "saas idea")

    async def _search(self, query: str) -> list[RawItem]:
        data = await self._fetch_api(
            query,
            self.settings.get("tags", "(ask_hn,show_hn)"),
            self.settings.get("limit", 20),
        )
        min_points = self.settings.get("min_points", 0)

        items = []
        for hit in data.get("hits", []):
            title = hit.get("title") or hit.get("story_title") or ""
            if not title:
                continue

            points = hit.get("points") or 0
            if points < min_points:
                continue

            story_id = hit.get("objectID", "")
            url = HN_ITEM_URL.format(story_id) if story_id else hit.get("url", "")
            if not url:
                continue

            items.append(
                self._make_item(
                    title=title,
                    description=hit.get("story_text") or "",
                    url=url,
                    engagement={
                        "points": points,
                        "comments": hit.get("num_comments") or 0,
                        "author": hit.get("author", ""),
                        "posted_at": posted_at_from_timestamp(hit.get("created_at_i")),
                    },
                )
            )

        return items

    @staticmethod
    async def _fetch_api(query: str, tags: str, limit: int) -> dict:
        params = {
            "query": query,
            "tags": tags,
            "hitsPerPage": limit,
        }
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.get(HN_ALGOLIA_URL, params=params)
            resp.raise_for_status()
            return resp.json()
