"""Abstract base class for clustering similarity strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ideascout.config import VariantProfile
from ideascout.models import RawItem


class SimilarityStrategy(ABC):
    """Decides which candidates belong in the same cluster as a seed item."""

    def __init__(self, config: dict, variant: VariantProfile):
        self.config = config
        self.variant = variant

    @abstractmethod
    async def find_similar(
        self, seed: RawItem, candidates: list[RawItem],
    ) -> list[RawItem]:
        """Return the candidates similar to ``seed``, in candidate order."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name."""
        ...
