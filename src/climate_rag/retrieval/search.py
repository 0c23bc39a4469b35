"""
Hybrid search engine - the composition root of the retrieval core.

Per query:
1. Embed the search text and ask the vector lookup for a wide candidate
   set: a loosened vector threshold and limit * 20 candidates
2. Re-rank every candidate with the hybrid scorer and cut at the
   caller's threshold (never the loosened vector threshold)
3. Drop candidates with no lexical overlap, duplicate titles and
   institutional navigation pages
4. If nothing survives, fall back to the full-text (BM25) lookup with
   scores normalized into [0.5, 0.9]

Missing database functions and provider failures degrade to a fallback
path or an empty list. Only EmbeddingDimensionError escapes search():
it means the corpus and the query model disagree, which is a bug.
"""

from __future__ import annotations

import logging
from datetime import date

import numpy as np

from climate_rag.config.settings import RetrievalConfig
from climate_rag.config.vocabulary import Vocabulary, get_vocabulary
from climate_rag.core.errors import (
    EmbeddingDimensionError,
    EmbeddingError,
    RetrievalError,
    RpcNotFoundError,
)
from climate_rag.core.protocols import EmbeddingProvider, MatchResult, VectorLookup
from climate_rag.observability import (
    RETRIEVAL_CANDIDATE_COUNT,
    RETRIEVAL_PATH,
    RETRIEVAL_RESULT_COUNT,
    RETRIEVAL_TOP_SCORE,
    TracerProtocol,
    get_tracer,
    search_attributes,
)
from climate_rag.query.keywords import extract_keywords, keywords_to_query
from climate_rag.retrieval.document import ScoredDocument
from climate_rag.retrieval.filters import (
    dedupe_by_title,
    filter_content_relevant,
    filter_generic_pages,
)
from climate_rag.retrieval.scoring import cosine_similarity, score

logger = logging.getLogger(__name__)

BM25_FLOOR = 0.5
BM25_RANGE = 0.4
BM25_DEFAULT = 0.7


def normalize_bm25(raw_scores: list[float]) -> list[float]:
    """
    Map raw full-text ranks into [0.5, 0.9]; the batch maximum maps to 0.9.

    ts_rank values are tiny (0.01-0.1), so unnormalized they could never
    clear a threshold tuned for cosine-scale scores.
    """
    if not raw_scores:
        return []
    top = max(raw_scores)
    if top <= 0:
        return [BM25_DEFAULT for _ in raw_scores]
    return [BM25_FLOOR + BM25_RANGE * (raw / top) for raw in raw_scores]


class HybridSearchEngine:
    """
    Vector + keyword hybrid retrieval over a VectorLookup.

    Dependencies are INJECTED: lookup, embedding provider, config,
    vocabulary and tracer. current_year pins the recency boost in tests.
    """

    def __init__(
        self,
        lookup: VectorLookup,
        embeddings: EmbeddingProvider,
        config: RetrievalConfig | None = None,
        vocabulary: Vocabulary | None = None,
        tracer: TracerProtocol | None = None,
        current_year: int | None = None,
    ):
        self._lookup = lookup
        self._embeddings = embeddings
        self._config = config or RetrievalConfig()
        self._vocabulary = vocabulary or get_vocabulary()
        self._tracer = tracer
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or date.today().year

    def search(
        self,
        query: str,
        limit: int = 5,
        threshold: float = 0.5,
        raw_query_text: str | None = None,
    ) -> list[ScoredDocument]:
        """
        Return up to `limit` documents sorted by fused score, descending.

        Args:
            query: Text to embed (the normalized search text)
            limit: Maximum number of results
            threshold: Minimum fused score of a result
            raw_query_text: Text to extract keywords from (defaults to query)

        Raises:
            EmbeddingDimensionError: corpus and query embeddings disagree
        """
        if not query or not query.strip() or limit <= 0:
            return []

        keyword_text = raw_query_text if raw_query_text is not None else query
        keywords = extract_keywords(keyword_text, self._vocabulary)
        vector_threshold = self._config.vector_threshold(threshold)
        match_count = limit * self._config.overfetch_factor

        logger.debug(
            f"Searching for {query!r} (threshold={threshold}, "
            f"vector_threshold={vector_threshold:.2f}, keywords={sorted(keywords)})"
        )

        tracer = self._tracer or get_tracer()
        with tracer.start_span(
            "hybrid_search",
            attributes=search_attributes(threshold, vector_threshold, limit, len(keywords)),
        ) as span:
            candidates, path = self._vector_candidates(query, vector_threshold, match_count)
            span.set_attribute(RETRIEVAL_CANDIDATE_COUNT, len(candidates))

            ranked = self._rank(candidates, keywords, threshold)
            results = ranked[:limit]

            if not ranked and keyword_text.strip():
                results = self._keyword_fallback(keywords, keyword_text, limit)
                path = "bm25" if results else "none"

            span.set_attribute(RETRIEVAL_PATH, path)
            span.set_attribute(RETRIEVAL_RESULT_COUNT, len(results))
            if results:
                span.set_attribute(RETRIEVAL_TOP_SCORE, results[0].similarity)

        return results

    # -----------------------------------------------------------------------
    # Candidate retrieval
    # -----------------------------------------------------------------------

    def _vector_candidates(
        self,
        query: str,
        vector_threshold: float,
        match_count: int,
    ) -> tuple[list[MatchResult], str]:
        try:
            embedding = self._embeddings.embed(query)
        except EmbeddingError as e:
            logger.warning(f"Embedding failed, skipping vector search: {e}")
            return [], "none"

        try:
            candidates = self._lookup.match(embedding, vector_threshold, match_count)
        except EmbeddingDimensionError:
            raise
        except RpcNotFoundError as e:
            logger.warning(f"{e}; using client-side similarity scan")
            return self._scan_candidates(embedding, vector_threshold, match_count), "client_scan"
        except RetrievalError as e:
            logger.error(f"Vector lookup failed: {e}")
            return [], "none"

        logger.debug(
            f"Found {len(candidates)} candidates from vector search "
            f"(threshold: {vector_threshold:.0%})"
        )
        return candidates, "rpc"

    def _scan_candidates(
        self,
        embedding: np.ndarray,
        vector_threshold: float,
        match_count: int,
    ) -> list[MatchResult]:
        """Client-side cosine scan over at most fallback_scan_limit rows."""
        try:
            documents = self._lookup.fetch_documents(self._config.fallback_scan_limit)
        except RetrievalError as e:
            logger.error(f"Error fetching documents for fallback scan: {e}")
            return []

        candidates = []
        skipped = 0
        compared = 0
        mismatch: EmbeddingDimensionError | None = None
        for doc in documents:
            if doc.embedding is None:
                skipped += 1
                continue
            try:
                similarity = cosine_similarity(embedding, doc.embedding)
            except EmbeddingDimensionError as e:
                logger.debug(f"Skipping {doc.id}: {e}")
                mismatch = mismatch or e
                skipped += 1
                continue
            compared += 1
            if similarity >= vector_threshold:
                candidates.append(MatchResult(document=doc, similarity=similarity))

        # No row shares the query's dimensionality: the corpus was embedded
        # with a different model
        if mismatch is not None and compared == 0:
            raise mismatch

        if skipped:
            logger.debug(f"Skipped {skipped} rows without a usable embedding")

        candidates.sort(key=lambda c: c.similarity, reverse=True)
        logger.debug(f"Client-side scan kept {len(candidates)} of {len(documents)} rows")
        return candidates[:match_count]

    # -----------------------------------------------------------------------
    # Ranking
    # -----------------------------------------------------------------------

    def _rank(
        self,
        candidates: list[MatchResult],
        keywords: set[str],
        threshold: float,
    ) -> list[ScoredDocument]:
        year = self.current_year
        scored = []
        for candidate in candidates:
            breakdown = score(
                candidate.document, keywords, candidate.similarity, year, self._vocabulary
            )
            scored.append(
                ScoredDocument(
                    document=candidate.document,
                    vector_score=breakdown.vector_score,
                    keyword_score=breakdown.keyword_score,
                    similarity=breakdown.fused,
                )
            )

        scored.sort(key=lambda d: d.similarity, reverse=True)

        if logger.isEnabledFor(logging.DEBUG):
            for i, doc in enumerate(scored[:5], start=1):
                logger.debug(
                    f"  {i}. [hybrid {doc.similarity:.1%} = vec {doc.vector_score:.1%} "
                    f"+ kwd {doc.keyword_score:.1%}] {doc.title[:50]}"
                )

        above = [d for d in scored if d.similarity >= threshold]
        logger.debug(f"{len(above)} documents above threshold {threshold}")

        relevant = filter_content_relevant(above, keywords)
        logger.debug(f"{len(relevant)} documents after content filtering")

        unique = dedupe_by_title(relevant)
        logger.debug(f"{len(unique)} unique documents")

        return filter_generic_pages(
            unique, self._vocabulary, self._config.min_content_chars
        )

    def _keyword_fallback(
        self,
        keywords: set[str],
        keyword_text: str,
        limit: int,
    ) -> list[ScoredDocument]:
        query_text = keywords_to_query(keywords) if keywords else keyword_text
        logger.info(f"No hybrid results, trying BM25 fallback with {query_text!r}")

        try:
            matches = self._lookup.search_keyword(
                query_text, limit * self._config.keyword_fetch_factor
            )
        except RpcNotFoundError as e:
            logger.warning(f"{e}; keyword fallback unavailable")
            return []
        except RetrievalError as e:
            logger.error(f"BM25 search error: {e}")
            return []

        if not matches:
            return []

        normalized = normalize_bm25([m.similarity for m in matches])
        results = dedupe_by_title([
            ScoredDocument(
                document=m.document,
                vector_score=0.0,
                keyword_score=value,
                similarity=value,
            )
            for m, value in zip(matches, normalized)
        ])[:limit]

        logger.info(
            "Top BM25 results: "
            + " | ".join(f"[{d.similarity:.0%}] {d.title[:50]}" for d in results)
        )
        return results
