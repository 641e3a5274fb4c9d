"""Multi-factor relevance scoring of collected items.

Content quality, technical feasibility and market timing come from curated
keyword lists; business viability and competitive advantage default to a
neutral 0.5. When a scoring LLM is configured its answer replaces the
delegated sub-scores (all four in the professional variant, viability only
in the basic one).
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import timedelta

from ideascout.config import VariantProfile, get_request_delay, get_variant, has_llm_task
from ideascout.db import get_recent_items, update_item_scores
from ideascout.errors import ConfigError
from ideascout.llm import get_provider_for_task
from ideascout.llm.parse import NEUTRAL_SCORE, ParsedScores, ParseFailure, parse_scores
from ideascout.llm.prompts import SCORE_PROFESSIONAL, SCORE_VIABILITY, SYSTEM_ANALYST
from ideascout.models import RawItem, ScoreRecord, utcnow
from ideascout.process.keywords import contains_term, count_matches

logger = logging.getLogger(__name__)

SHORT_TEXT_CHARS = 50
SHORT_TEXT_PENALTY = 0.8

DELEGATED_CONFIDENCE = 0.9
HEURISTIC_CONFIDENCE = 0.5

PROFESSIONAL_TERMS = (
    "business model", "revenue stream", "market validation",
    "customer acquisition", "scalability", "competitive advantage",
    "value proposition", "target market", "monetization", "enterprise",
    "b2b", "saas", "automation", "efficiency",
)
SPECIFICITY_TERMS = (
    "specific", "detailed", "example", "case study", "data", "metrics",
    "roi", "cost savings", "time savings", "efficiency gain",
)
HEDGE_TERMS = ("would", "could", "should")

EASY_BUILD_TERMS = (
    "web application", "mobile app", "dashboard", "api integration",
    "automation script", "workflow tool", "data visualization",
    "reporting system", "management platform", "tracking system",
)
COMPLEX_BUILD_TERMS = (
    "machine learning", "artificial intelligence", "blockchain",
    "advanced analytics", "real-time processing", "high-scale infrastructure",
    "complex algorithms", "distributed systems", "enterprise integration",
)
MODERN_STACK_TERMS = (
    "cloud", "saas", "api", "integration", "automation", "responsive",
    "scalable", "secure", "reliable",
)

TIMING_INDICATORS = (
    "remote work", "digital transformation", "automation", "ai integration",
    "cloud migration", "data privacy", "cybersecurity", "sustainability",
    "efficiency", "cost reduction", "productivity", "scalability",
)
CURRENT_TRENDS = (
    "artificial intelligence", "machine learning", "automation", "remote work",
    "hybrid work", "digital transformation", "cloud computing",
    "data analytics", "cybersecurity", "sustainability", "esg",
    "carbon footprint",
)
READINESS_PHRASES = (
    "proven market", "existing demand", "validated need", "growing market",
    "emerging opportunity", "market gap",
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _base_factor(text: str) -> float:
    return SHORT_TEXT_PENALTY if len(text) < SHORT_TEXT_CHARS else 1.0


def content_quality(text: str) -> float:
    score = 0.2 * _base_factor(text)
    if len(text) > 150:
        score += 0.2
    if len(text) > 400:
        score += 0.1
    score += count_matches(text, PROFESSIONAL_TERMS) / len(PROFESSIONAL_TERMS) * 0.4
    score += min(count_matches(text, SPECIFICITY_TERMS) / 5, 0.2)
    if any(contains_term(text, term) for term in HEDGE_TERMS):
        score += 0.05
    return clamp(score)


def technical_feasibility(text: str) -> float:
    score = 0.6 * _base_factor(text)
    score += 0.1 * count_matches(text, EASY_BUILD_TERMS)
    score -= 0.1 * count_matches(text, COMPLEX_BUILD_TERMS)
    score += min(count_matches(text, MODERN_STACK_TERMS) / 10, 0.2)
    return clamp(score, 0.1, 1.0)


def market_timing(text: str) -> float:
    score = 0.5 * _base_factor(text)
    score += 0.05 * count_matches(text, TIMING_INDICATORS)
    score += 0.1 * count_matches(text, CURRENT_TRENDS)
    score += 0.05 * count_matches(text, READINESS_PHRASES)
    return clamp(score)


def overall_score(subscores: tuple[float, ...], weights: tuple[float, ...]) -> float:
    return clamp(sum(s * w for s, w in zip(subscores, weights)))


def _resolve_weights(config: dict, variant: VariantProfile) -> tuple[float, ...]:
    weights = tuple(config.get("scoring", {}).get("weights") or variant.weights)
    if len(weights) != 5 or abs(sum(weights) - 1.0) > 1e-6:
        raise ConfigError(f"Scoring weights must be 5 values summing to 1.0, got {weights}")
    return weights


class RelevanceScorer:
    """Score one item at a time; ``score_recent`` runs the batch job."""

    def __init__(self, config: dict, variant: VariantProfile | None = None):
        self.config = config
        self.variant = variant or get_variant(config)
        self.weights = _resolve_weights(config, self.variant)
        self.use_llm = has_llm_task(config, "score")
        self.errors: list[str] = []

    async def score(self, item: RawItem) -> ScoreRecord:
        text = item.text.lower()

        quality = content_quality(text)
        viability = NEUTRAL_SCORE
        timing = market_timing(text)
        feasibility = technical_feasibility(text)
        competitive = NEUTRAL_SCORE
        confidence = HEURISTIC_CONFIDENCE

        if self.use_llm:
            parsed = await self._delegated_scores(item)
            if isinstance(parsed, ParsedScores):
                confidence = DELEGATED_CONFIDENCE
                if self.variant.delegated_score_count == 4:
                    viability, timing, feasibility, competitive = parsed.values
                else:
                    viability = parsed.values[0]
            else:
                logger.warning(
                    "Delegated score unusable for '%s': %s",
                    item.title[:60], parsed.reason,
                )

        subscores = (quality, viability, timing, feasibility, competitive)
        return ScoreRecord(
            content_quality=quality,
            business_viability=viability,
            market_timing=timing,
            technical_feasibility=feasibility,
            competitive_advantage=competitive,
            overall=overall_score(subscores, self.weights),
            confidence=confidence,
        )

    async def _delegated_scores(self, item: RawItem):
        template = (
            SCORE_PROFESSIONAL if self.variant.delegated_score_count == 4
            else SCORE_VIABILITY
        )
        prompt = template.format(
            title=item.title,
            description=item.description[:1000],
            platform=item.source_platform,
        )
        try:
            provider = get_provider_for_task(self.config, "score")
            response = await provider.complete(
                prompt, system=SYSTEM_ANALYST, temperature=0.1, max_tokens=50,
            )
        except Exception as exc:
            return ParseFailure(f"request failed: {exc}")
        return parse_scores(response.text, self.variant.delegated_score_count)

    def is_high_value(self, scores: ScoreRecord) -> bool:
        return scores.overall > self.variant.high_value_threshold

    async def score_recent(self, conn: sqlite3.Connection) -> tuple[int, int]:
        """Score unscored items from the look-back window.

        Returns (processed, high_value). Per-item failures are logged and
        recorded in ``errors``.
        """
        since = utcnow() - timedelta(hours=self.variant.scoring_lookback_hours)
        items = get_recent_items(
            conn, since, limit=self.variant.scoring_limit, unscored_only=True,
        )
        delay = get_request_delay(self.config) if self.use_llm else 0

        processed = 0
        high_value = 0
        for i, item in enumerate(items):
            if i and delay:
                await asyncio.sleep(delay)
            try:
                scores = await self.score(item)
                flagged = self.is_high_value(scores)
                update_item_scores(conn, item.id, scores, high_value=flagged)
            except Exception as exc:
                logger.exception("Scoring failed for item %s", item.id)
                self.errors.append(f"Relevance Scorer: {item.title[:60]}: {exc}")
                continue
            item.scores = scores
            item.quality_score = scores.overall
            processed += 1
            high_value += int(flagged)

        logger.info(
            "Scored %d/%d items (%d high-value, llm=%s)",
            processed, len(items), high_value, self.use_llm,
        )
        return processed, high_value
