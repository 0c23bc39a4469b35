"""
Retrieval module - hybrid vector + keyword search over the research corpus.

This module provides:
- Document / ScoredDocument: corpus rows and per-query results
- scoring: the hybrid scorer (pure functions)
- filters: content relevance, title dedup, generic-page filter
- PgVectorLookup / InMemoryVectorLookup / get_vector_lookup(): corpus lookups
- HybridSearchEngine: the ranking pipeline
- select_display_sources(): which results to show as citations

ARCHITECTURE:
-------------
1. Protocol defines the contract (VectorLookup in core.protocols)
2. Multiple implementations (PgVectorLookup, InMemoryVectorLookup)
3. Factory function for instantiation
4. Test doubles for fast unit tests
"""

from climate_rag.retrieval.document import Document, ScoredDocument
from climate_rag.retrieval.filters import (
    dedupe_by_title,
    filter_content_relevant,
    filter_generic_pages,
    is_content_relevant,
    is_generic_page,
)
from climate_rag.retrieval.scoring import (
    KEYWORD_WEIGHT,
    RECENCY_MAX_BOOST,
    TECHNICAL_TERM_WEIGHT,
    VECTOR_WEIGHT,
    ScoreBreakdown,
    cosine_similarity,
    hybrid_score,
    keyword_match_score,
    recency_boost,
    score,
)
from climate_rag.retrieval.search import HybridSearchEngine, normalize_bm25
from climate_rag.retrieval.seeds import get_research_documents, get_seed_documents, seed_lookup
from climate_rag.retrieval.sources import select_display_sources
from climate_rag.retrieval.store import (
    PGVECTOR_AVAILABLE,
    InMemoryVectorLookup,
    PgVectorLookup,
    get_vector_lookup,
    parse_embedding,
)

__all__ = [
    "Document",
    "ScoredDocument",
    "dedupe_by_title",
    "filter_content_relevant",
    "filter_generic_pages",
    "is_content_relevant",
    "is_generic_page",
    "KEYWORD_WEIGHT",
    "RECENCY_MAX_BOOST",
    "TECHNICAL_TERM_WEIGHT",
    "VECTOR_WEIGHT",
    "ScoreBreakdown",
    "cosine_similarity",
    "hybrid_score",
    "keyword_match_score",
    "recency_boost",
    "score",
    "HybridSearchEngine",
    "normalize_bm25",
    "get_research_documents",
    "get_seed_documents",
    "seed_lookup",
    "select_display_sources",
    "PGVECTOR_AVAILABLE",
    "InMemoryVectorLookup",
    "PgVectorLookup",
    "get_vector_lookup",
    "parse_embedding",
]
