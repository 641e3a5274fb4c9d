"""Typed parsing of delegated LLM responses.

Every parser returns either a parsed value or a ``ParseFailure``; callers
branch on the type and pick their own fallback.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

NEUTRAL_SCORE = 0.5

MAX_LABEL_WORDS = 6
MAX_LABEL_CHARS = 60


@dataclass(frozen=True)
class ParsedScores:
    """Numbers in [0, 1] read from a bare or comma-separated response."""

    values: tuple[float, ...]
    defaulted: int = 0  # tokens that were unreadable or out of range


@dataclass(frozen=True)
class ParsedText:
    text: str


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw: str = ""


ScoreParse = Union[ParsedScores, ParseFailure]
TextParse = Union[ParsedText, ParseFailure]


def _strip_fences(text: str) -> str:
    fenced = re.search(r"```(?:\w+)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if fenced:
        return fenced.group(1)
    return text


def _to_score(token: str) -> float | None:
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0.0 or value > 1.0:
        return None
    return value


def parse_scores(
    text: str,
    expected: int,
    exact: bool = False,
    default: float = NEUTRAL_SCORE,
) -> ScoreParse:
    """Read ``expected`` scores from a response like ``"0.8, 0.6, 0.7"``.

    Individual unreadable or out-of-range tokens become ``default``. The
    whole response fails when it has too few tokens (or, with ``exact``,
    a different number of tokens) or when no token is a valid score.
    """
    body = _strip_fences(text or "").strip()
    if not body:
        return ParseFailure("empty response", text or "")

    tokens = [t.strip().rstrip(".") for t in re.split(r"[,\n]+", body) if t.strip()]
    if len(tokens) < expected or (exact and len(tokens) != expected):
        return ParseFailure(
            f"expected {expected} scores, got {len(tokens)}", text,
        )

    values = []
    defaulted = 0
    for token in tokens[:expected]:
        score = _to_score(token)
        if score is None:
            defaulted += 1
            score = default
        values.append(score)

    if defaulted == expected:
        return ParseFailure("no numeric score in response", text)
    return ParsedScores(tuple(values), defaulted)


def parse_label(text: str) -> TextParse:
    """Read a short topic label (one line, a few words)."""
    body = _strip_fences(text or "").strip()
    if not body:
        return ParseFailure("empty label", text or "")
    line = body.splitlines()[0].strip()
    if line.lower().startswith("label:"):
        line = line[len("label:"):]
    line = line.strip().rstrip(".").strip("\"'*#` ").rstrip(".")
    words = line.split()
    if not words or len(words) > MAX_LABEL_WORDS or len(line) > MAX_LABEL_CHARS:
        return ParseFailure(f"unusable label: {line[:80]!r}", text)
    return ParsedText(line)


def parse_summary(text: str, max_chars: int = 600) -> TextParse:
    """Read a free-text summary, trimmed to ``max_chars``."""
    body = (text or "").strip()
    if not body:
        return ParseFailure("empty summary", text or "")
    if len(body) > max_chars:
        body = body[: max_chars - 3].rstrip() + "..."
    return ParsedText(body)
