"""Local text embeddings using Model2Vec (static, CPU-only)."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "minishlab/potion-base-8M"

_models: dict[str, object] = {}


def get_model(model_name: str = DEFAULT_MODEL):
    """Lazy-load and cache an embedding model by name."""
    if model_name not in _models:
        from model2vec import StaticModel

        logger.info("Loading embedding model: %s", model_name)
        _models[model_name] = StaticModel.from_pretrained(model_name)
    return _models[model_name]


def embed_texts(texts: list[str], model_name: str = DEFAULT_MODEL) -> np.ndarray:
    """Embed texts into an (N, D) array."""
    model = get_model(model_name)
    return np.asarray(model.encode(texts))


def cosine_similarities(seed: np.ndarray, others: np.ndarray) -> np.ndarray:
    """Cosine similarity of one vector against each row of ``others``."""
    if others.size == 0:
        return np.zeros(0)
    seed_norm = np.linalg.norm(seed)
    other_norms = np.linalg.norm(others, axis=1)
    denom = seed_norm * other_norms
    dots = others @ seed
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(denom > 0, dots / denom, 0.0)
    return sims
