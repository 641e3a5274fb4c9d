"""Interchangeable similarity strategies for greedy topic clustering."""

from __future__ import annotations

import asyncio
import logging

from ideascout.config import get_request_delay
from ideascout.llm import get_provider_for_task
from ideascout.llm.parse import ParsedScores, ParseFailure, parse_scores
from ideascout.llm.prompts import SIMILARITY_BATCH, SIMILARITY_PAIR, SYSTEM_ANALYST
from ideascout.models import RawItem
from ideascout.process import register_strategy
from ideascout.process.base import SimilarityStrategy
from ideascout.process.embeddings import DEFAULT_MODEL, cosine_similarities, embed_texts
from ideascout.process.keywords import extract_business_keywords

logger = logging.getLogger(__name__)

MIN_OVERLAP_RATIO = 0.3
MIN_COMMON_KEYWORDS = 2


def keyword_overlap(a: set[str], b: set[str]) -> tuple[int, float]:
    """Common keyword count and overlap ratio ``common / max(|a|, |b|)``."""
    if not a or not b:
        return 0, 0.0
    common = len(a & b)
    return common, common / max(len(a), len(b))


def _describe(item: RawItem, limit: int = 300) -> str:
    text = f"{item.title}: {item.description}" if item.description else item.title
    return text[:limit]


@register_strategy("keyword")
class KeywordSimilarity(SimilarityStrategy):
    """Items are similar when they share enough business vocabulary."""

    @property
    def name(self) -> str:
        return "keyword"

    async def find_similar(
        self, seed: RawItem, candidates: list[RawItem],
    ) -> list[RawItem]:
        cfg = self.config.get("process", {}).get("cluster", {})
        min_ratio = cfg.get("min_overlap_ratio", MIN_OVERLAP_RATIO)
        min_common = cfg.get("min_common_keywords", MIN_COMMON_KEYWORDS)

        seed_keywords = extract_business_keywords(seed.text)
        similar = []
        for candidate in candidates:
            common, ratio = keyword_overlap(
                seed_keywords, extract_business_keywords(candidate.text),
            )
            if ratio >= min_ratio and common >= min_common:
                similar.append(candidate)
        return similar


@register_strategy("delegated")
class DelegatedSimilarity(SimilarityStrategy):
    """Ask the similarity LLM task to rate seed/candidate pairs.

    With a batch size of 1 every candidate is a separate call expecting one
    number; larger batches expect one comma-separated score per candidate.
    Unusable responses count as similarity 0.
    """

    @property
    def name(self) -> str:
        return "delegated"

    async def find_similar(
        self, seed: RawItem, candidates: list[RawItem],
    ) -> list[RawItem]:
        pool = candidates[: self.variant.similarity_max_candidates]
        if not pool:
            return []

        provider = get_provider_for_task(self.config, "similarity")
        batch_size = max(1, self.variant.similarity_batch_size)
        delay = get_request_delay(self.config)

        scores: list[float] = []
        for start in range(0, len(pool), batch_size):
            if start and delay:
                await asyncio.sleep(delay)
            batch = pool[start : start + batch_size]
            scores.extend(await self._score_batch(provider, seed, batch))

        return [
            item for item, score in zip(pool, scores)
            if score > self.variant.similarity_threshold
        ]

    async def _score_batch(self, provider, seed: RawItem, batch: list[RawItem]) -> list[float]:
        if len(batch) == 1:
            prompt = SIMILARITY_PAIR.format(
                seed=_describe(seed), candidate=_describe(batch[0]),
            )
        else:
            prompt = SIMILARITY_BATCH.format(
                seed=_describe(seed),
                candidates="\n".join(
                    f"{i}. {_describe(item, 200)}" for i, item in enumerate(batch, 1)
                ),
                count=len(batch),
            )

        try:
            response = await provider.complete(
                prompt, system=SYSTEM_ANALYST, temperature=0.1, max_tokens=100,
            )
            parsed = parse_scores(response.text, len(batch), exact=True, default=0.0)
        except Exception as exc:
            logger.warning("Similarity request failed for '%s': %s", seed.title[:60], exc)
            parsed = ParseFailure(f"request failed: {exc}")

        if isinstance(parsed, ParsedScores):
            return list(parsed.values)
        logger.debug("Similarity response unusable: %s", parsed.reason)
        return [0.0] * len(batch)


@register_strategy("embedding")
class EmbeddingSimilarity(SimilarityStrategy):
    """Cosine similarity of local static embeddings."""

    @property
    def name(self) -> str:
        return "embedding"

    async def find_similar(
        self, seed: RawItem, candidates: list[RawItem],
    ) -> list[RawItem]:
        if not candidates:
            return []
        cfg = self.config.get("process", {})
        threshold = cfg.get("cluster", {}).get("embedding_threshold", 0.8)
        model_name = cfg.get("embeddings", {}).get("model", DEFAULT_MODEL)

        vectors = embed_texts([_describe(i, 500) for i in [seed, *candidates]], model_name)
        sims = cosine_similarities(vectors[0], vectors[1:])
        return [item for item, sim in zip(candidates, sims) if sim >= threshold]
