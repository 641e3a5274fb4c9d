"""Tests for heuristic and delegated relevance scoring."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ideascout.config import BASIC, PROFESSIONAL
from ideascout.db import get_item, insert_item
from ideascout.errors import ConfigError
from ideascout.llm.base import LLMResponse
from ideascout.process.scorer import (
    COMPLEX_BUILD_TERMS,
    CURRENT_TRENDS,
    PROFESSIONAL_TERMS,
    SPECIFICITY_TERMS,
    TIMING_INDICATORS,
    RelevanceScorer,
    content_quality,
    market_timing,
    overall_score,
    technical_feasibility,
)


def _mock_provider(text: str) -> MagicMock:
    provider = MagicMock()
    provider.complete = AsyncMock(return_value=LLMResponse(text=text, model="test-model"))
    return provider


def test_code_review_idea_beats_baselines():
    text = (
        "AI-Powered Code Review Assistant. A code review tool for enterprise "
        "saas teams with automation of pull request checks."
    ).lower()
    assert content_quality(text) > 0.2
    assert technical_feasibility(text) > 0.6


def test_short_text_penalty():
    assert content_quality("idea") == pytest.approx(0.16)
    assert technical_feasibility("idea") == pytest.approx(0.48)
    assert market_timing("idea") == pytest.approx(0.4)


def test_scores_clamped_to_unit_range():
    """Keyword-stuffed text cannot push a heuristic past its bounds."""
    stuffed = " ".join(
        PROFESSIONAL_TERMS + SPECIFICITY_TERMS + TIMING_INDICATORS + CURRENT_TRENDS
    ) + " this could work"
    assert len(stuffed) > 400
    assert content_quality(stuffed) == 1.0
    assert market_timing(stuffed) == 1.0

    complex_only = " ".join(COMPLEX_BUILD_TERMS)
    assert technical_feasibility(complex_only) == pytest.approx(0.1)


def test_whole_word_matching():
    """'api' matches 'APIs' but not 'rapid'."""
    rapid = "a rapid prototype for a new product that teams could really use"
    apis = "a product built on apis for a new product that teams could really use"
    assert technical_feasibility(apis) > technical_feasibility(rapid)


def test_overall_score_weighted_sum():
    assert overall_score((1, 1, 1, 1, 1), PROFESSIONAL.weights) == pytest.approx(1.0)
    assert overall_score((0, 1, 0, 0, 0), BASIC.weights) == pytest.approx(0.3)


def test_custom_weights_must_sum_to_one(sample_config):
    sample_config["scoring"] = {"weights": [0.5, 0.5, 0.5, 0.0, 0.0]}
    with pytest.raises(ConfigError, match="summing to 1.0"):
        RelevanceScorer(sample_config)


@pytest.mark.asyncio
async def test_heuristic_score_without_llm(sample_config, sample_items):
    scorer = RelevanceScorer(sample_config)
    scores = await scorer.score(sample_items[0])

    assert scores.business_viability == 0.5
    assert scores.competitive_advantage == 0.5
    assert scores.confidence == 0.5
    assert 0.0 <= scores.overall <= 1.0


@pytest.mark.asyncio
@patch("ideascout.process.scorer.get_provider_for_task")
async def test_professional_delegated_scores(mock_get, llm_config, sample_items):
    mock_get.return_value = _mock_provider("0.9, 0.8, 0.7, 0.6")
    scorer = RelevanceScorer(llm_config, PROFESSIONAL)

    scores = await scorer.score(sample_items[0])

    assert scores.business_viability == pytest.approx(0.9)
    assert scores.market_timing == pytest.approx(0.8)
    assert scores.technical_feasibility == pytest.approx(0.7)
    assert scores.competitive_advantage == pytest.approx(0.6)
    assert scores.confidence == 0.9


@pytest.mark.asyncio
@patch("ideascout.process.scorer.get_provider_for_task")
async def test_basic_delegated_viability_only(mock_get, llm_config, sample_items):
    mock_get.return_value = _mock_provider("0.85")
    scorer = RelevanceScorer(llm_config, BASIC)

    scores = await scorer.score(sample_items[0])

    assert scores.business_viability == pytest.approx(0.85)
    assert scores.competitive_advantage == 0.5
    assert scores.market_timing == pytest.approx(market_timing(sample_items[0].text.lower()))


@pytest.mark.asyncio
@patch("ideascout.process.scorer.get_provider_for_task")
async def test_unparseable_response_falls_back(mock_get, llm_config, sample_items):
    mock_get.return_value = _mock_provider("I think this idea is great!")
    scorer = RelevanceScorer(llm_config, PROFESSIONAL)

    scores = await scorer.score(sample_items[0])

    assert scores.business_viability == 0.5
    assert scores.competitive_advantage == 0.5
    assert scores.confidence == 0.5


@pytest.mark.asyncio
@patch("ideascout.process.scorer.get_provider_for_task")
async def test_failed_request_falls_back(mock_get, llm_config, sample_items):
    provider = MagicMock()
    provider.complete = AsyncMock(side_effect=RuntimeError("boom"))
    mock_get.return_value = provider
    scorer = RelevanceScorer(llm_config, BASIC)

    scores = await scorer.score(sample_items[0])
    assert scores.business_viability == 0.5
    assert scores.confidence == 0.5


@pytest.mark.asyncio
async def test_score_recent_writes_scores(sample_config, db_conn, make_item):
    strong = make_item(
        "Automation platform for enterprise SaaS billing",
        "A B2B saas dashboard with api integration, automation of invoices, "
        "clear business model, revenue stream and monetization for enterprise "
        "customers. Cloud based, scalable and secure, with proven market demand "
        "and measurable cost savings for finance teams.",
    )
    weak = make_item("Idea")
    stale = make_item("Old automation idea", hours_ago=24 * 5)
    ids = [insert_item(db_conn, item) for item in (strong, weak, stale)]

    scorer = RelevanceScorer(sample_config, PROFESSIONAL)
    processed, high_value = await scorer.score_recent(db_conn)

    assert processed == 2
    assert scorer.errors == []
    scored = get_item(db_conn, ids[0])
    assert scored.scores is not None
    assert scored.quality_score == pytest.approx(scored.scores.overall)
    assert get_item(db_conn, ids[2]).scores is None
    assert high_value == sum(int(get_item(db_conn, i).high_value) for i in ids)


@pytest.mark.asyncio
async def test_score_recent_skips_already_scored(sample_config, db_conn, make_item):
    insert_item(db_conn, make_item("SaaS idea for teams"))
    scorer = RelevanceScorer(sample_config)

    assert (await scorer.score_recent(db_conn))[0] == 1
    assert (await scorer.score_recent(db_conn))[0] == 0
