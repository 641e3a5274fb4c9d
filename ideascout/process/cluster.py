"""Greedy single-pass clustering of recent items into cross-platform topics."""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from datetime import timedelta

from ideascout.config import VariantProfile, get_variant, has_llm_task
from ideascout.db import get_recent_items
from ideascout.errors import ConfigError
from ideascout.llm import get_provider_for_task
from ideascout.llm.parse import ParsedText, ParseFailure, parse_label
from ideascout.llm.prompts import SYSTEM_ANALYST, TOPIC_LABEL
from ideascout.models import Cluster, RawItem, utcnow
from ideascout.process import STRATEGIES
from ideascout.process.base import SimilarityStrategy
from ideascout.process.keywords import STOPWORDS, extract_business_keywords

logger = logging.getLogger(__name__)

TOPIC_KEYWORDS = 3
TOPIC_PROMPT_CHARS = 2000

DISPLAY_FORMS = {"api": "API", "saas": "SaaS", "b2b": "B2B"}


def common_keywords(items: list[RawItem], limit: int = TOPIC_KEYWORDS) -> list[str]:
    """Business keywords shared by at least ``min(2, n)`` members."""
    counts: Counter[str] = Counter()
    for item in items:
        counts.update(extract_business_keywords(item.text))
    min_count = min(2, len(items))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [word for word, count in ranked if count >= min_count][:limit]


def keyword_topic(keywords: list[str]) -> str | None:
    if not keywords:
        return None
    return " ".join(DISPLAY_FORMS.get(k, k.capitalize()) for k in keywords)


def label_keywords(label: str) -> list[str]:
    """Matchable words from a topic label, for clusters without shared vocabulary."""
    words = [w.strip(".,:;&-").lower() for w in label.split()]
    return [w for w in words if len(w) >= 3 and w not in STOPWORDS]


def select_strategy(config: dict, variant: VariantProfile) -> SimilarityStrategy:
    """Build the configured strategy; ``auto`` prefers the delegated one."""
    name = config.get("process", {}).get("cluster", {}).get("strategy", "auto")
    if name == "auto":
        name = "delegated" if has_llm_task(config, "similarity") else "keyword"
    if name not in STRATEGIES:
        raise ConfigError(f"Unknown clustering strategy: {name}")
    if name == "delegated" and not has_llm_task(config, "similarity"):
        raise ConfigError("delegated clustering needs an enabled 'similarity' LLM task")
    return STRATEGIES[name](config, variant)


class TopicClusterer:
    """Group items by similarity and keep clusters meeting size/platform minimums."""

    def __init__(
        self,
        config: dict,
        variant: VariantProfile | None = None,
        strategy: SimilarityStrategy | None = None,
    ):
        self.config = config
        self.variant = variant or get_variant(config)
        self.strategy = strategy or select_strategy(config, self.variant)
        self.use_llm_topics = has_llm_task(config, "topic")

    def load_window(self, conn: sqlite3.Connection) -> list[RawItem]:
        """Items from the variant's look-back window."""
        since = utcnow() - timedelta(days=self.variant.cluster_lookback_days)
        return get_recent_items(
            conn,
            since,
            limit=self.variant.cluster_limit,
            min_quality=self.variant.cluster_min_quality,
        )

    def qualifies(self, members: list[RawItem]) -> bool:
        platforms = {m.source_platform for m in members}
        return (
            len(members) >= self.variant.min_members
            and len(platforms) >= self.variant.min_platforms
        )

    async def cluster(self, items: list[RawItem]) -> list[Cluster]:
        """Assign each item to at most one cluster, first seed first.

        Items pulled into a group leave the pool even when the group is
        then discarded for being too small or single-platform.
        """
        remaining = list(items)
        clusters: list[Cluster] = []
        discarded = 0

        while remaining:
            seed = remaining.pop(0)
            if not remaining:
                break

            similar = await self.strategy.find_similar(seed, remaining)
            if not similar:
                continue

            taken = {id(item) for item in similar}
            remaining = [item for item in remaining if id(item) not in taken]

            members = [seed, *similar]
            if not self.qualifies(members):
                discarded += 1
                continue

            topic, keywords = await self.name_topic(members)
            clusters.append(Cluster(topic=topic, items=members, keywords=keywords))

        logger.info(
            "Clustered %d items into %d clusters via %s (%d discarded)",
            len(items), len(clusters), self.strategy.name, discarded,
        )
        return clusters

    async def name_topic(self, members: list[RawItem]) -> tuple[str, list[str]]:
        keywords = common_keywords(members)

        if self.use_llm_topics:
            parsed = await self._delegated_label(members)
            if isinstance(parsed, ParsedText):
                topic = parsed.text
            else:
                logger.warning("Topic label fallback: %s", parsed.reason)
                topic = self.variant.fallback_topic
        else:
            topic = keyword_topic(keywords) or self.variant.fallback_topic

        return topic, keywords or label_keywords(topic)

    async def _delegated_label(self, members: list[RawItem]):
        ideas = "\n".join(f"- {m.title}: {m.description[:200]}" for m in members)
        prompt = TOPIC_LABEL.format(ideas=ideas[:TOPIC_PROMPT_CHARS])
        try:
            provider = get_provider_for_task(self.config, "topic")
            response = await provider.complete(
                prompt, system=SYSTEM_ANALYST, temperature=0.3, max_tokens=20,
            )
        except Exception as exc:
            return ParseFailure(f"request failed: {exc}")
        return parse_label(response.text)
