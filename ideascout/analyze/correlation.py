"""Turn clusters into persisted correlation records and back-patch members."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta

from ideascout.config import VariantProfile, get_variant, has_llm_task
from ideascout.db import insert_correlation, patch_item
from ideascout.llm import get_provider_for_task
from ideascout.llm.parse import ParsedText, ParseFailure, parse_summary
from ideascout.llm.prompts import SYSTEM_ANALYST, TREND_SUMMARY
from ideascout.models import Cluster, CorrelationRecord, RawItem, utcnow
from ideascout.process.keywords import BUSINESS_FOCUS_TERMS, count_matches

logger = logging.getLogger(__name__)

# market opportunity blend: platform diversity, volume, quality, business focus
OPPORTUNITY_WEIGHTS = (0.25, 0.25, 0.30, 0.20)
OPPORTUNITY_PLATFORM_CAP = 4
OPPORTUNITY_VOLUME_CAP = 8

VELOCITY_NORMALIZER = 15
HIGH_CONFIDENCE_PLATFORMS = 3


def correlation_score(platform_count: int, cap: int) -> float:
    """Platform diversity as a fraction of ``cap``, never above 1."""
    if cap <= 0:
        return 0.0
    return min(platform_count / cap, 1.0)


def count_in_window(items: list[RawItem], now: datetime, hours: int) -> int:
    cutoff = now - timedelta(hours=hours)
    return sum(1 for item in items if item.discovered_at and item.discovered_at >= cutoff)


def velocity_score(
    items: list[RawItem],
    now: datetime,
    quality_weighted: bool,
    mean_quality: float = 0.5,
) -> float:
    """Recency of a cluster's mentions.

    Quality-weighted: ``min((last24h*7 + last7d) / 15, 1) * mean_quality``.
    Otherwise the share of members seen in the last 24 hours.
    """
    if not items:
        return 0.0
    last24h = count_in_window(items, now, 24)
    if not quality_weighted:
        return last24h / len(items)
    last7d = count_in_window(items, now, 24 * 7)
    return min((last24h * 7 + last7d) / VELOCITY_NORMALIZER, 1.0) * mean_quality


def business_focus(items: list[RawItem]) -> float:
    if not items:
        return 0.0
    hits = sum(count_matches(item.text, BUSINESS_FOCUS_TERMS) for item in items)
    return min(hits / (len(items) * 3), 1.0)


def market_opportunity(
    platform_count: int, volume: int, mean_quality: float, focus: float,
) -> float:
    w_platform, w_volume, w_quality, w_focus = OPPORTUNITY_WEIGHTS
    score = (
        w_platform * min(platform_count / OPPORTUNITY_PLATFORM_CAP, 1.0)
        + w_volume * min(volume / OPPORTUNITY_VOLUME_CAP, 1.0)
        + w_quality * mean_quality
        + w_focus * focus
    )
    return max(0.0, min(score, 1.0))


def template_summary(topic: str, platform_count: int, volume: int) -> str:
    plural = "s" if platform_count != 1 else ""
    return (
        f"{topic} identified across {platform_count} platform{plural} "
        f"with {volume} high-quality mentions."
    )


class CorrelationAggregator:
    """Compute, persist and back-reference one correlation per cluster."""

    def __init__(
        self,
        config: dict,
        conn: sqlite3.Connection,
        variant: VariantProfile | None = None,
    ):
        self.config = config
        self.conn = conn
        self.variant = variant or get_variant(config)
        self.use_llm_summary = has_llm_task(config, "summary")
        self.errors: list[str] = []
        self.patch_failures = 0

    def build_record(self, cluster: Cluster, now: datetime | None = None) -> CorrelationRecord:
        """Derive the correlation statistics for a cluster without persisting."""
        now = now or utcnow()
        platforms = cluster.platforms
        volume = len(cluster.items)
        mean_quality = cluster.average_quality
        opportunity = market_opportunity(
            len(platforms), volume, mean_quality, business_focus(cluster.items),
        )
        return CorrelationRecord(
            topic=cluster.topic,
            platforms=platforms,
            correlation_score=correlation_score(
                len(platforms), self.variant.correlation_platform_cap,
            ),
            mention_volume=volume,
            velocity_score=velocity_score(
                cluster.items, now, self.variant.quality_weighted_velocity, mean_quality,
            ),
            market_opportunity_score=opportunity,
            summary=template_summary(cluster.topic, len(platforms), volume),
            item_ids=[item.id for item in cluster.items if item.id is not None],
            keywords=list(cluster.keywords),
            average_quality=mean_quality,
            business_confidence_score=min((mean_quality + opportunity) / 2, 1.0),
            confidence_level=(
                "high" if len(platforms) >= HIGH_CONFIDENCE_PLATFORMS else "medium"
            ),
            variant=self.variant.name,
            created_at=now,
        )

    async def aggregate(self, cluster: Cluster) -> CorrelationRecord:
        """Persist the cluster's record, then patch every member with it."""
        record = self.build_record(cluster)

        if self.use_llm_summary:
            parsed = await self._delegated_summary(cluster, record)
            if isinstance(parsed, ParsedText):
                record.summary = parsed.text
            else:
                logger.warning("Summary fallback for '%s': %s", record.topic, parsed.reason)

        record.id = insert_correlation(self.conn, record)

        fields = {
            "correlation_id": record.id,
            "cross_validation_score": record.correlation_score,
            "trend_momentum": record.velocity_score,
            "market_opportunity_score": record.market_opportunity_score,
            "business_confidence_score": record.business_confidence_score,
            "cross_platform_mentions": len(record.platforms),
        }
        for item_id in record.item_ids:
            try:
                patch_item(self.conn, item_id, fields)
            except sqlite3.Error as exc:
                self.patch_failures += 1
                logger.error("Failed to patch item %s for correlation %s: %s",
                             item_id, record.id, exc)
                self.errors.append(f"Correlation Aggregator: item {item_id}: {exc}")

        logger.info(
            "Correlation #%d '%s': %d mentions on %s (score %.2f)",
            record.id, record.topic, record.mention_volume,
            ", ".join(record.platforms), record.correlation_score,
        )
        return record

    async def _delegated_summary(self, cluster: Cluster, record: CorrelationRecord):
        samples = "\n".join(
            f"- [{item.source_platform}] {item.title}: {item.description[:200]}"
            for item in cluster.items[:5]
        )
        prompt = TREND_SUMMARY.format(
            topic=record.topic,
            platforms=", ".join(record.platforms),
            count=record.mention_volume,
            samples=samples,
        )
        try:
            provider = get_provider_for_task(self.config, "summary")
            response = await provider.complete(
                prompt, system=SYSTEM_ANALYST, temperature=0.3, max_tokens=200,
            )
        except Exception as exc:
            return ParseFailure(f"request failed: {exc}")
        return parse_summary(response.text)
