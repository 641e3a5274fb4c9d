"""Similarity strategy registry for topic clustering."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ideascout.process.base import SimilarityStrategy

STRATEGIES: dict[str, type[SimilarityStrategy]] = {}


def register_strategy(name: str):
    """Decorator to register a similarity strategy."""

    def decorator(cls):
        STRATEGIES[name] = cls
        return cls

    return decorator


from ideascout.process.similarity import (  # noqa: E402, F401
    DelegatedSimilarity,
    EmbeddingSimilarity,
    KeywordSimilarity,
)
