"""Web search source (Serper.dev Google results), scoped with site: queries."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from ideascout.errors import ConfigError
from ideascout.ingest import register_source
from ideascout.ingest.base import BaseSource
from ideascout.models import RawItem
from ideascout.process.keywords import count_matches

logger = logging.getLogger(__name__)

SERPER_API_URL = "https://google.serper.dev/search"

DEFAULT_TEMPLATE = 'site:twitter.com "{query}" OR site:x.com "{query}"'

STRONG_INDICATORS = (
    "startup", "business idea", "app idea", "saas", "tech startup",
    "entrepreneur", "innovation", "solution", "platform",
)

SOCIAL_HOSTS = {"twitter.com": "twitter", "x.com": "twitter"}


def search_relevance(text: str, platform: str) -> float:
    """Rough relevance of a search hit before full scoring."""
    score = 0.3 + 0.15 * count_matches(text, STRONG_INDICATORS)
    if platform == "twitter":
        score += 0.2
    return min(score, 1.0)


def platform_for_link(link: str, default: str) -> str:
    host = urlparse(link).netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    return SOCIAL_HOSTS.get(host, default)


@register_source("websearch")
class WebSearchSource(BaseSource):
    """Fetch search results for startup-idea queries through Serper."""

    default_queries = (
        "startup idea", "business idea", "app idea", "saas idea", "tech startup",
    )

    def check_credentials(self) -> None:
        if not self.settings.get("api_key"):
            raise ConfigError(f"{self.name}: web search API key not configured")

    async def _search(self, query: str) -> list[RawItem]:
        template = self.settings.get("query_template", DEFAULT_TEMPLATE)
        data = await self._fetch_api(
            self.settings["api_key"],
            template.format(query=query),
            self.settings.get("num", 10),
        )

        items = []
        for position, result in enumerate(data.get("organic", []), 1):
            link = result.get("link", "")
            title = result.get("title", "")
            if not link or not title:
                continue

            snippet = result.get("snippet", "")
            platform = platform_for_link(link, self.platform)
            items.append(
                self._make_item(
                    title=title,
                    description=snippet,
                    url=link,
                    platform=platform,
                    engagement={
                        "position": position,
                        "search_relevance": search_relevance(
                            f"{title} {snippet}", platform,
                        ),
                    },
                )
            )

        return items

    @staticmethod
    async def _fetch_api(api_key: str, query: str, num: int) -> dict:
        headers = {
            "X-API-KEY": api_key,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(
                SERPER_API_URL, json={"q": query, "num": num}, headers=headers,
            )
            resp.raise_for_status()
            return resp.json()
