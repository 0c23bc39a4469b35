"""
Hybrid scorer - pure functions, no I/O.

fused = vector * VECTOR_WEIGHT + keyword * KEYWORD_WEIGHT + recency

Keyword match outweighs vector similarity: queries here are short and
acronym-heavy, where lexical overlap is the more reliable signal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from climate_rag.config.vocabulary import Vocabulary, get_vocabulary
from climate_rag.core.errors import EmbeddingDimensionError
from climate_rag.retrieval.document import Document

VECTOR_WEIGHT = 0.4
KEYWORD_WEIGHT = 0.6
TECHNICAL_TERM_WEIGHT = 3
DEFAULT_TERM_WEIGHT = 1
RECENCY_MAX_BOOST = 0.05
RECENCY_DECAY_YEARS = 10


@dataclass(frozen=True)
class ScoreBreakdown:
    """All components of a fused score."""

    fused: float
    vector_score: float
    keyword_score: float
    recency_boost: float


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity between two vectors.

    Raises:
        EmbeddingDimensionError: the vectors come from different models
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise EmbeddingDimensionError(expected=a.size, actual=b.size)

    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


def searchable_text(document: Document) -> str:
    """Lowercased text the keyword score matches against."""
    parts = (document.title, document.content, document.category, document.author)
    return " ".join(p or "" for p in parts).lower()


def keyword_match_score(
    document: Document,
    keywords: Iterable[str],
    vocabulary: Vocabulary | None = None,
) -> float:
    """Weighted fraction of keywords found as substrings of the document."""
    keywords = list(keywords)
    if not keywords:
        return 0.0

    vocab = vocabulary or get_vocabulary()
    text = searchable_text(document)

    total_weight = 0
    matched_weight = 0
    for keyword in keywords:
        lower = keyword.lower()
        weight = TECHNICAL_TERM_WEIGHT if lower in vocab.technical_terms else DEFAULT_TERM_WEIGHT
        total_weight += weight
        if lower in text:
            matched_weight += weight

    return matched_weight / total_weight if total_weight else 0.0


def recency_boost(year: int | None, current_year: int) -> float:
    """Linear decay from RECENCY_MAX_BOOST (this year) to 0 (10+ years old)."""
    if not year:
        return 0.0
    factor = 1 - (current_year - year) / RECENCY_DECAY_YEARS
    return min(max(factor, 0.0), 1.0) * RECENCY_MAX_BOOST


def hybrid_score(vector_score: float, keyword_score: float, boost: float = 0.0) -> float:
    return vector_score * VECTOR_WEIGHT + keyword_score * KEYWORD_WEIGHT + boost


def score(
    document: Document,
    keywords: Iterable[str],
    vector_score: float,
    current_year: int,
    vocabulary: Vocabulary | None = None,
) -> ScoreBreakdown:
    """Score one candidate for one query."""
    kw = keyword_match_score(document, keywords, vocabulary)
    boost = recency_boost(document.year, current_year)
    return ScoreBreakdown(
        fused=hybrid_score(vector_score, kw, boost),
        vector_score=vector_score,
        keyword_score=kw,
        recency_boost=boost,
    )
