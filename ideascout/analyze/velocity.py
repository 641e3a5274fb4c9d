"""Momentum analysis for freshly created correlations."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta

from ideascout.analyze.correlation import count_in_window
from ideascout.db import (
    analyzed_correlation_ids,
    get_recent_correlations,
    get_recent_items,
    insert_velocity,
)
from ideascout.models import CorrelationRecord, RawItem, VelocityRecord, utcnow
from ideascout.process.keywords import contains_term

logger = logging.getLogger(__name__)

CORRELATION_WINDOW_HOURS = 24
RELATED_WINDOW_DAYS = 7
RELATED_LIMIT = 200
MOMENTUM_NORMALIZER = 20
CONFIDENCE_ITEMS = 5


def related_items(record: CorrelationRecord, items: list[RawItem]) -> list[RawItem]:
    """Items mentioning any of the correlation's keywords."""
    if not record.keywords:
        return []
    return [
        item for item in items
        if any(contains_term(item.text, keyword) for keyword in record.keywords)
    ]


def compute_velocity(
    record: CorrelationRecord,
    related: list[RawItem],
    now: datetime | None = None,
) -> VelocityRecord:
    """Acceleration, momentum and confidence for one correlation.

    An empty window yields zeros throughout.
    """
    now = now or utcnow()
    last24h = count_in_window(related, now, 24)
    last48h = count_in_window(related, now, 48)
    last7d = count_in_window(related, now, 24 * 7)

    acceleration = last24h / max(last48h - last24h, 1) if last24h > 0 else 0.0
    momentum = min((last24h * 7 + last7d) / MOMENTUM_NORMALIZER, 1.0)
    total_quality = sum(
        item.quality_score if item.quality_score is not None else 0.5
        for item in related
    )
    mean_quality = total_quality / max(len(related), 1)

    return VelocityRecord(
        correlation_id=record.id,
        topic=record.topic,
        current_velocity=record.velocity_score,
        acceleration_rate=acceleration,
        momentum_score=momentum,
        quality_velocity_score=momentum * mean_quality,
        velocity_confidence=min(len(related) / CONFIDENCE_ITEMS, 1.0),
        related_count=len(related),
        analyzed_at=now,
    )


class VelocityAnalyzer:
    """Write one velocity row for each correlation created in the last day.

    Correlations that already have a row are skipped, so repeated runs
    within the window do not stack duplicate rows.
    """

    def __init__(self, config: dict, conn: sqlite3.Connection):
        self.config = config
        self.conn = conn
        self.errors: list[str] = []

    def analyze_recent(self) -> list[VelocityRecord]:
        now = utcnow()
        correlations = get_recent_correlations(
            self.conn, now - timedelta(hours=CORRELATION_WINDOW_HOURS),
        )
        done = analyzed_correlation_ids(self.conn, [c.id for c in correlations])
        correlations = [c for c in correlations if c.id not in done]
        if not correlations:
            return []

        window = get_recent_items(
            self.conn, now - timedelta(days=RELATED_WINDOW_DAYS), limit=RELATED_LIMIT,
        )

        results = []
        for record in correlations:
            try:
                velocity = compute_velocity(record, related_items(record, window), now)
                velocity.id = insert_velocity(self.conn, velocity)
            except Exception as exc:
                logger.exception("Velocity analysis failed for correlation %s", record.id)
                self.errors.append(f"Velocity Analyzer: {record.topic}: {exc}")
                continue
            results.append(velocity)

        logger.info("Analyzed velocity for %d correlations", len(results))
        return results
