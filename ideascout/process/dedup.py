"""Storage-backed duplicate check run before persisting collected items."""

from __future__ import annotations

import logging
import sqlite3

from ideascout.db import insert_item, item_exists
from ideascout.errors import ConfigError
from ideascout.models import RawItem

logger = logging.getLogger(__name__)

DEDUP_KEYS = ("title", "url")


class Deduplicator:
    """Skip items whose title (or source URL) is already stored.

    The check and the insert are separate statements with no transaction
    around them. Two collection runs overlapping in time can both see
    "not stored" for the same title and both insert it.
    """

    def __init__(self, config: dict, conn: sqlite3.Connection):
        cfg = config.get("process", {}).get("dedup", {})
        self.key = cfg.get("key", "title")
        if self.key not in DEDUP_KEYS:
            raise ConfigError(
                f"process.dedup.key must be one of {DEDUP_KEYS}, got '{self.key}'"
            )
        self.conn = conn
        self.errors: list[str] = []

    def is_duplicate(self, item: RawItem) -> bool:
        if self.key == "url":
            return item_exists(self.conn, source_url=item.source_url)
        return item_exists(self.conn, title=item.title)

    def store_new(self, items: list[RawItem]) -> tuple[list[RawItem], int]:
        """Insert items not yet stored. Returns (stored, skipped_duplicates)."""
        stored: list[RawItem] = []
        skipped = 0
        for item in items:
            try:
                if self.is_duplicate(item):
                    skipped += 1
                    continue
                item.id = insert_item(self.conn, item)
            except sqlite3.Error as exc:
                logger.error("Failed to store '%s': %s", item.title[:80], exc)
                self.errors.append(f"Deduplicator: {item.title[:60]}: {exc}")
                continue
            stored.append(item)

        if skipped:
            logger.info("Dedup skipped %d already-stored items", skipped)
        return stored, skipped
