"""
Query routing heuristics: institution-specific vs global, and when to
supplement corpus results with web search.

All functions here are pure and deterministic.
"""

from __future__ import annotations

import re

from climate_rag.config.vocabulary import Vocabulary, get_vocabulary

_OUTSIDE_SCOPE = re.compile(
    r"\b(beyond kth|outside kth|outside of kth|not kth|global|worldwide|international)\b"
)
_MARKET_ACTORS = re.compile(r"\b(tech giants|investors|startups)\b")
_TIME_SENSITIVE = re.compile(r"\b(202[3-9]|latest|recent|today|current|now)\b")
_FUNDING = re.compile(
    r"\b(funding|raised|valuation|series|round|investment|investments)\b"
)
_HARD_KEYWORD_SPLIT = re.compile(r"[^a-z0-9+.-]+")

HARD_KEYWORD_STOPWORDS = frozenset({
    "what", "why", "how", "who", "when", "where", "which",
    "tell", "show", "find", "look", "up", "about", "more",
    "this", "that", "these", "those",
    "is", "are", "was", "were", "do", "does", "did",
    "in", "on", "at", "for", "of", "to", "and", "or",
    "the", "a", "an",
    "kth", "doing", "work", "working",
})

WEAK_SOURCE_COUNT = 3
WEAK_BEST_SCORE = 0.6


def is_kth_specific_query(message: str, vocabulary: Vocabulary | None = None) -> bool:
    """True when the message names the institution (case-insensitive substring)."""
    vocab = vocabulary or get_vocabulary()
    lower = (message or "").lower()
    return any(keyword in lower for keyword in vocab.kth_keywords)


def extract_hard_keywords(message: str, max_keywords: int = 5) -> list[str]:
    """Distinct tokens of 5+ chars that must appear in a relevant source."""
    words = [w for w in _HARD_KEYWORD_SPLIT.split((message or "").lower()) if w]
    seen: list[str] = []
    for word in words:
        if len(word) >= 5 and word not in HARD_KEYWORD_STOPWORDS and word not in seen:
            seen.append(word)
    return seen[:max_keywords]


def should_use_web_search(
    message: str,
    is_kth_query: bool,
    kth_source_count: int,
    best_kth_score: float,
    kth_weak_by_keyword: bool,
) -> bool:
    """
    Decide whether to pull external sources for this turn.

    Web search is used when the user asks beyond the institution, asks
    something time-sensitive, the institution's corpus answered weakly,
    or the query is not institution-specific at all.
    """
    m = (message or "").lower()

    explicit_outside = bool(_OUTSIDE_SCOPE.search(m) or _MARKET_ACTORS.search(m))
    time_sensitive = bool(_TIME_SENSITIVE.search(m) or _FUNDING.search(m))
    kth_weak = is_kth_query and (
        kth_source_count < WEAK_SOURCE_COUNT
        or best_kth_score < WEAK_BEST_SCORE
        or kth_weak_by_keyword
    )

    return explicit_outside or time_sensitive or kth_weak or not is_kth_query
