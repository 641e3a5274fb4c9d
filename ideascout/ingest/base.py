"""Abstract base class for all source fetchers."""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ideascout.config import get_request_delay
from ideascout.ingest.filters import (
    IDEA_ALLOW_LIST,
    classify_category,
    classify_industry,
    passes_allow_list,
)
from ideascout.models import RawItem, SourceConfig

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 2000


class BaseSource(ABC):
    """Base class for idea source fetchers.

    Subclasses implement ``_search`` for a single query. ``fetch`` runs every
    configured query in turn, records per-query failures in ``errors`` and
    returns whatever was collected.
    """

    default_queries: tuple[str, ...] = ()

    def __init__(self, config: dict, source: SourceConfig):
        self.config = config
        self.source = source
        self.settings = source.settings
        self.request_delay = get_request_delay(config)
        self.errors: list[str] = []

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def platform(self) -> str:
        return self.source.platform

    @property
    def queries(self) -> list[str]:
        return list(self.settings.get("queries") or self.default_queries)

    def check_credentials(self) -> None:
        """Raise ConfigError when a required credential is missing."""

    @abstractmethod
    async def _search(self, query: str) -> list[RawItem]:
        """Run one outbound query and return normalized items."""
        ...

    async def fetch(self) -> list[RawItem]:
        self.check_credentials()

        items: list[RawItem] = []
        for i, query in enumerate(self.queries):
            if i and self.request_delay:
                await asyncio.sleep(self.request_delay)
            try:
                items.extend(await self._search(query))
            except Exception as exc:
                logger.exception("%s query '%s' failed", self.name, query)
                self.errors.append(f"{self.name}: {exc}")

        kept = self._filter(items)
        logger.info(
            "%s fetched %d items (%d after filtering)",
            self.name, len(items), len(kept),
        )
        return kept

    def _filter(self, items: list[RawItem]) -> list[RawItem]:
        """Apply the idea allow-list and drop repeated titles within a fetch."""
        terms = self.settings.get("allow_list") or IDEA_ALLOW_LIST
        seen: set[str] = set()
        kept = []
        for item in items:
            if item.title in seen or not passes_allow_list(item.text, terms):
                continue
            seen.add(item.title)
            kept.append(item)
        return kept

    def _make_item(
        self,
        title: str,
        description: str,
        url: str,
        engagement: dict | None = None,
        platform: str | None = None,
    ) -> RawItem:
        title = _clean_text(title)
        description = _clean_text(description)[:MAX_DESCRIPTION_CHARS]
        text = f"{title} {description}"
        return RawItem(
            title=title,
            description=description,
            source_url=url,
            source_platform=platform or self.platform,
            source_name=self.name,
            category=classify_category(text),
            industry=classify_industry(text),
            engagement=engagement or {},
        )


def _clean_text(text: str | None) -> str:
    """Strip HTML tags and collapse whitespace."""
    if not text:
        return ""
    clean = re.sub(r"<[^>]+>", " ", text)
    clean = clean.replace("&nbsp;", " ").replace("&amp;", "&").replace("&#x27;", "'")
    clean = clean.replace("&quot;", '"').replace("&lt;", "<").replace("&gt;", ">")
    return re.sub(r"\s+", " ", clean).strip()


def posted_at_from_timestamp(ts) -> str | None:
    """ISO string (naive UTC) for a unix timestamp, or None."""
    if not ts:
        return None
    try:
        dt = datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (ValueError, OSError, TypeError):
        return None
    return dt.replace(tzinfo=None).isoformat()
