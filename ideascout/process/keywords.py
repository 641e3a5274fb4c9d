"""Curated vocabularies and whole-word keyword matching."""

from __future__ import annotations

import re
from collections import Counter
from functools import lru_cache

# Business vocabulary used by keyword clustering and topic naming
BUSINESS_VOCABULARY = (
    "automation", "integration", "api", "saas", "b2b", "enterprise",
    "workflow", "productivity", "efficiency", "platform", "solution",
    "analytics", "dashboard", "reporting", "management", "optimization",
    "compliance", "security", "scalability", "infrastructure", "customer",
    "user", "business", "professional", "commercial",
)

# Terms counted towards a cluster's business focus
BUSINESS_FOCUS_TERMS = (
    "revenue", "business", "professional", "enterprise", "commercial",
    "monetization", "market",
)

STOPWORDS = frozenset(
    {"the", "and", "for", "with", "that", "this", "are", "can", "has", "will"}
)


@lru_cache(maxsize=1024)
def _pattern(term: str) -> re.Pattern:
    # Whole words, optional plural: "api" matches "APIs" but not "rapid"
    return re.compile(r"\b" + re.escape(term) + r"s?\b", re.IGNORECASE)


def contains_term(text: str, term: str) -> bool:
    return _pattern(term).search(text) is not None


def matched_terms(text: str, terms) -> list[str]:
    """Terms from ``terms`` present in ``text``, in vocabulary order."""
    return [term for term in terms if contains_term(text, term)]


def count_matches(text: str, terms) -> int:
    return len(matched_terms(text, terms))


def extract_business_keywords(text: str) -> set[str]:
    return set(matched_terms(text, BUSINESS_VOCABULARY))


def top_keywords(texts: list[str], limit: int = 10, min_length: int = 3) -> list[dict]:
    """Most frequent words across ``texts`` as ``[{word, count}]``."""
    counts: Counter[str] = Counter()
    for text in texts:
        for word in re.findall(r"\b\w{%d,}\b" % min_length, text.lower()):
            if word not in STOPWORDS:
                counts[word] += 1
    return [{"word": word, "count": count} for word, count in counts.most_common(limit)]
