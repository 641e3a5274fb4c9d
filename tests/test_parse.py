"""Tests for typed parsing of delegated responses."""

from __future__ import annotations

from ideascout.llm.parse import (
    ParsedScores,
    ParsedText,
    ParseFailure,
    parse_label,
    parse_scores,
    parse_summary,
)


def test_parse_single_score():
    result = parse_scores("0.73", 1)
    assert isinstance(result, ParsedScores)
    assert result.values == (0.73,)


def test_parse_comma_separated_scores():
    result = parse_scores("0.8, 0.6,0.7 , 0.9.", 4)
    assert isinstance(result, ParsedScores)
    assert result.values == (0.8, 0.6, 0.7, 0.9)
    assert result.defaulted == 0


def test_parse_fenced_newline_scores():
    result = parse_scores("```\n0.1\n0.2\n```", 2)
    assert isinstance(result, ParsedScores)
    assert result.values == (0.1, 0.2)


def test_out_of_range_token_defaults():
    result = parse_scores("1.7, 0.4, abc, 0.5", 4)
    assert isinstance(result, ParsedScores)
    assert result.values == (0.5, 0.4, 0.5, 0.5)
    assert result.defaulted == 2


def test_custom_default_for_bad_tokens():
    result = parse_scores("0.9, nan", 2, default=0.0)
    assert isinstance(result, ParsedScores)
    assert result.values == (0.9, 0.0)


def test_too_few_scores_fails():
    result = parse_scores("0.8, 0.6", 4)
    assert isinstance(result, ParseFailure)
    assert "expected 4" in result.reason


def test_exact_count_required():
    assert isinstance(parse_scores("0.8, 0.6, 0.1", 2), ParsedScores)
    assert isinstance(parse_scores("0.8, 0.6, 0.1", 2, exact=True), ParseFailure)


def test_no_numbers_fails():
    result = parse_scores("high, medium", 2)
    assert isinstance(result, ParseFailure)
    assert result.raw == "high, medium"


def test_empty_response_fails():
    assert isinstance(parse_scores("", 1), ParseFailure)
    assert isinstance(parse_scores(None, 1), ParseFailure)


def test_parse_label():
    result = parse_label('Label: "Workflow Automation Tools".\nExtra text')
    assert result == ParsedText("Workflow Automation Tools")


def test_label_too_long_fails():
    result = parse_label("A very long label that keeps going well past six words")
    assert isinstance(result, ParseFailure)


def test_parse_summary_truncates():
    result = parse_summary("x" * 700, max_chars=100)
    assert isinstance(result, ParsedText)
    assert len(result.text) == 100
    assert result.text.endswith("...")
    assert isinstance(parse_summary("   "), ParseFailure)
