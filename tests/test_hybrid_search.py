"""
Unit Tests for HybridSearchEngine

Covers the full ranking pipeline: loosened vector lookup, hybrid
re-rank, filters, the client-side scan when match_documents is missing,
and the BM25 fallback.

STAFF ENGINEER PATTERNS:
------------------------
1. Hand-built 3-d embeddings so every score is predictable
2. MagicMock lookups to verify exactly what the database is asked
3. Recording tracer to assert which retrieval path served a query
4. current_year pinned so recency never drifts
"""

from contextlib import contextmanager

import numpy as np
import pytest
from unittest.mock import MagicMock

from climate_rag.config.settings import RetrievalConfig
from climate_rag.config.vocabulary import Vocabulary
from climate_rag.core.errors import (
    EmbeddingDimensionError,
    EmbeddingError,
    LookupUnavailableError,
    RpcNotFoundError,
)
from climate_rag.core.protocols import MatchResult
from climate_rag.observability import RETRIEVAL_PATH, NoOpTracer
from climate_rag.retrieval.document import Document
from climate_rag.retrieval.search import HybridSearchEngine, normalize_bm25
from climate_rag.retrieval.store import InMemoryVectorLookup


class RecordingTracer:
    """NoOpTracer that keeps every span it opens."""

    def __init__(self):
        self._inner = NoOpTracer()
        self.spans = []

    @contextmanager
    def start_span(self, name, attributes=None):
        with self._inner.start_span(name, attributes) as span:
            self.spans.append((name, span))
            yield span

    def last(self, name):
        return [span for span_name, span in self.spans if span_name == name][-1]


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def embeddings():
    embeddings = MagicMock()
    embeddings.embed.return_value = np.array([1.0, 0.0, 0.0])
    return embeddings


@pytest.fixture
def corpus():
    return [
        Document(
            id="beccs",
            title="BECCS Research Overview",
            content="BECCS combines bioenergy with carbon capture and storage.",
            year=2024,
            embedding=np.array([0.9, 0.1, 0.0]),
        ),
        Document(
            id="exergi",
            title="BECCS at Stockholm Exergi",
            content="Full-scale BECCS capture at a biomass CHP plant.",
            year=2023,
            embedding=np.array([0.7, 0.7, 0.0]),
        ),
        Document(
            id="wind",
            title="Offshore Wind Integration",
            content="Offshore wind farms in the Baltic Sea.",
            year=2022,
            embedding=np.array([0.95, 0.3, 0.05]),
        ),
        Document(
            id="nav",
            title="Research | KTH",
            content="Research at KTH covers BECCS and energy.",
            embedding=np.array([1.0, 0.0, 0.0]),
        ),
        Document(
            id="solar",
            title="Urban Solar Photovoltaics",
            content="Rooftop solar potential.",
            year=2015,
            embedding=np.array([0.0, 0.0, 1.0]),
        ),
    ]


@pytest.fixture
def tracer():
    return RecordingTracer()


def make_engine(lookup, embeddings, tracer=None, config=None):
    return HybridSearchEngine(
        lookup,
        embeddings,
        config=config,
        vocabulary=Vocabulary(),
        tracer=tracer or NoOpTracer(),
        current_year=2024,
    )


def make_doc(doc_id, title, content="", year=None):
    return Document(id=doc_id, title=title, content=content, year=year)


# ---------------------------------------------------------------------------
# BM25 NORMALIZATION
# ---------------------------------------------------------------------------


class TestNormalizeBm25:

    def test_range(self):
        values = normalize_bm25([0.08, 0.02, 0.0])
        assert values == pytest.approx([0.9, 0.6, 0.5])
        assert all(0.5 <= v <= 0.9 for v in values)

    def test_max_maps_to_top(self):
        assert max(normalize_bm25([0.001, 0.004, 0.002])) == pytest.approx(0.9)

    def test_all_zero(self):
        assert normalize_bm25([0.0, 0.0]) == [0.7, 0.7]

    def test_empty(self):
        assert normalize_bm25([]) == []


# ---------------------------------------------------------------------------
# RANKING PIPELINE
# ---------------------------------------------------------------------------


class TestHybridRanking:

    def test_beccs_query_ranks_overview_first(self, corpus, embeddings, tracer):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings, tracer)

        results = engine.search("What is BECCS?", limit=5, threshold=0.5)

        assert [r.id for r in results] == ["beccs", "exergi"]
        assert results[0].similarity >= 0.55
        assert results[0].keyword_score == 1.0
        assert tracer.last("hybrid_search").attributes[RETRIEVAL_PATH] == "rpc"

    def test_fused_score_components(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        top = engine.search("What is BECCS?", limit=1, threshold=0.5)[0]

        expected = top.vector_score * 0.4 + top.keyword_score * 0.6 + 0.05
        assert top.similarity == pytest.approx(expected)

    def test_sorted_and_limited(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        results = engine.search("What is BECCS?", limit=1, threshold=0.5)

        assert len(results) == 1
        assert results[0].id == "beccs"

    def test_results_respect_final_threshold(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        for threshold in (0.5, 0.7, 0.95):
            results = engine.search("What is BECCS?", limit=5, threshold=threshold)
            assert all(r.similarity >= threshold for r in results)

    def test_lexically_unrelated_documents_dropped(self, corpus, embeddings):
        """Offshore wind scores 0.42 on vectors alone but never mentions BECCS."""
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        results = engine.search("What is BECCS?", limit=5, threshold=0.3)

        assert "wind" not in [r.id for r in results]

    def test_generic_pages_dropped(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        results = engine.search("BECCS", limit=5, threshold=0.3)

        assert "nav" not in [r.id for r in results]

    def test_duplicate_titles_collapsed(self, embeddings):
        docs = [
            Document(id="dup-a", title="BECCS pilot", content="BECCS", embedding=np.array([1.0, 0.0, 0.0])),
            Document(id="dup-b", title="BECCS pilot", content="BECCS", embedding=np.array([0.5, 0.5, 0.0])),
        ]
        engine = make_engine(InMemoryVectorLookup(documents=docs), embeddings)

        results = engine.search("BECCS", limit=5, threshold=0.5)

        assert [r.id for r in results] == ["dup-a"]

    def test_deterministic(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        first = engine.search("What is BECCS?", limit=5, threshold=0.5)
        second = engine.search("What is BECCS?", limit=5, threshold=0.5)

        assert [(r.id, r.similarity) for r in first] == [(r.id, r.similarity) for r in second]

    def test_empty_query(self, corpus, embeddings):
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        assert engine.search("   ") == []
        assert engine.search("BECCS", limit=0) == []
        embeddings.embed.assert_not_called()


# ---------------------------------------------------------------------------
# LOOKUP CONTRACT
# ---------------------------------------------------------------------------


class TestLookupParameters:

    def test_loosened_threshold_and_overfetch(self, embeddings):
        lookup = MagicMock()
        lookup.match.return_value = [
            MatchResult(make_doc("strong", "BECCS pilot", "BECCS capture"), 0.9),
            MatchResult(make_doc("weak", "Wind farms", "offshore"), 0.9),
        ]
        engine = make_engine(lookup, embeddings)

        results = engine.search("BECCS", limit=5, threshold=0.5)

        _, vector_threshold, match_count = lookup.match.call_args[0]
        assert vector_threshold == pytest.approx(0.15)
        assert match_count == 100
        # The weak candidate (0.36) passed the lookup but not the final cut
        assert [r.id for r in results] == ["strong"]
        lookup.search_keyword.assert_not_called()

    def test_vector_threshold_floor(self, embeddings):
        lookup = MagicMock()
        lookup.match.return_value = []
        lookup.search_keyword.return_value = []
        engine = make_engine(lookup, embeddings)

        engine.search("BECCS", limit=3, threshold=0.3)

        _, vector_threshold, match_count = lookup.match.call_args[0]
        assert vector_threshold == pytest.approx(0.10)
        assert match_count == 60

    def test_keywords_from_raw_query_text(self, embeddings):
        lookup = MagicMock()
        lookup.match.return_value = [
            MatchResult(make_doc("h2", "Green steel", "hydrogen direct reduction"), 0.5),
        ]
        engine = make_engine(lookup, embeddings)

        results = engine.search(
            "carbon capture", limit=5, threshold=0.5, raw_query_text="what about hydrogen?"
        )

        assert [r.id for r in results] == ["h2"]
        assert results[0].keyword_score == 1.0


# ---------------------------------------------------------------------------
# CLIENT-SIDE SCAN
# ---------------------------------------------------------------------------


class TestClientSideScan:

    def test_same_ranking_without_match_function(self, corpus, embeddings, tracer):
        with_rpc = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)
        without_rpc = make_engine(
            InMemoryVectorLookup(documents=corpus, missing_functions={"match"}),
            embeddings,
            tracer,
        )

        expected = with_rpc.search("What is BECCS?", limit=5, threshold=0.5)
        actual = without_rpc.search("What is BECCS?", limit=5, threshold=0.5)

        assert [(r.id, r.similarity) for r in actual] == [(r.id, r.similarity) for r in expected]
        assert tracer.last("hybrid_search").attributes[RETRIEVAL_PATH] == "client_scan"

    def test_rows_without_embedding_skipped(self, corpus, embeddings):
        corrupt = Document(id="corrupt", title="BECCS notes", content="BECCS", embedding=None)
        lookup = InMemoryVectorLookup(documents=corpus + [corrupt], missing_functions={"match"})
        engine = make_engine(lookup, embeddings)

        results = engine.search("What is BECCS?", limit=5, threshold=0.5)

        assert "corrupt" not in [r.id for r in results]
        assert results

    def test_scan_bounded(self, embeddings):
        lookup = MagicMock()
        lookup.match.side_effect = RpcNotFoundError("match_documents")
        lookup.fetch_documents.return_value = []
        lookup.search_keyword.return_value = []
        engine = make_engine(lookup, embeddings, config=RetrievalConfig(fallback_scan_limit=2))

        engine.search("BECCS", limit=5, threshold=0.5)

        lookup.fetch_documents.assert_called_once_with(2)

    def test_dimension_mismatch_propagates(self, corpus):
        embeddings = MagicMock()
        embeddings.embed.return_value = np.ones(4)
        engine = make_engine(InMemoryVectorLookup(documents=corpus), embeddings)

        with pytest.raises(EmbeddingDimensionError):
            engine.search("What is BECCS?")

    def test_wrong_length_row_skipped_in_scan(self, embeddings):
        good = Document(
            id="g",
            title="BECCS Research Overview",
            content="BECCS combines bioenergy with carbon capture.",
            year=2024,
            embedding=np.array([0.9, 0.1, 0.0]),
        )
        bad = Document(
            id="b",
            title="BECCS pilot notes",
            content="BECCS pilot.",
            year=2024,
            embedding=np.array([1.0, 0.0]),
        )
        lookup = InMemoryVectorLookup(documents=[good, bad], missing_functions={"match"})
        engine = make_engine(lookup, embeddings)

        results = engine.search("What is BECCS?", limit=5, threshold=0.5)

        assert [r.id for r in results] == ["g"]

    def test_dimension_mismatch_propagates_from_scan(self, corpus):
        embeddings = MagicMock()
        embeddings.embed.return_value = np.ones(4)
        lookup = InMemoryVectorLookup(documents=corpus, missing_functions={"match"})
        engine = make_engine(lookup, embeddings)

        with pytest.raises(EmbeddingDimensionError):
            engine.search("What is BECCS?")


# ---------------------------------------------------------------------------
# BM25 FALLBACK
# ---------------------------------------------------------------------------


@pytest.fixture
def bm25_lookup():
    lookup = MagicMock()
    lookup.match.return_value = []
    lookup.search_keyword.return_value = [
        MatchResult(make_doc("d1", "BECCS capture costs"), 0.08),
        MatchResult(make_doc("d2", "Capture solvents"), 0.02),
        MatchResult(make_doc("d3", "Storage sites"), 0.0),
    ]
    return lookup


class TestKeywordFallback:

    def test_used_when_hybrid_finds_nothing(self, bm25_lookup, embeddings, tracer):
        engine = make_engine(bm25_lookup, embeddings, tracer)

        results = engine.search("BECCS capture", limit=5, threshold=0.5)

        bm25_lookup.search_keyword.assert_called_once_with("BECCS capture", 10)
        assert [r.similarity for r in results] == pytest.approx([0.9, 0.6, 0.5])
        assert all(r.vector_score == 0.0 for r in results)
        assert all(r.keyword_score == r.similarity for r in results)
        assert tracer.last("hybrid_search").attributes[RETRIEVAL_PATH] == "bm25"

    def test_limit_applied(self, bm25_lookup, embeddings):
        engine = make_engine(bm25_lookup, embeddings)

        results = engine.search("BECCS capture", limit=2, threshold=0.5)

        bm25_lookup.search_keyword.assert_called_once_with("BECCS capture", 4)
        assert len(results) == 2

    def test_duplicates_removed(self, embeddings):
        lookup = MagicMock()
        lookup.match.return_value = []
        lookup.search_keyword.return_value = [
            MatchResult(make_doc("a", "Same title"), 0.05),
            MatchResult(make_doc("b", "Same title"), 0.01),
        ]
        engine = make_engine(lookup, embeddings)

        results = engine.search("BECCS", limit=5, threshold=0.5)

        assert [r.id for r in results] == ["a"]

    def test_raw_text_when_no_keywords(self, bm25_lookup, embeddings):
        engine = make_engine(bm25_lookup, embeddings)

        engine.search("what is it?", limit=5, threshold=0.5)

        bm25_lookup.search_keyword.assert_called_once_with("what is it?", 10)

    def test_embedding_failure_goes_straight_to_bm25(self, bm25_lookup):
        embeddings = MagicMock()
        embeddings.embed.side_effect = EmbeddingError("quota exceeded")
        engine = make_engine(bm25_lookup, embeddings)

        results = engine.search("BECCS capture", limit=5, threshold=0.5)

        bm25_lookup.match.assert_not_called()
        assert len(results) == 3

    def test_vector_lookup_failure_goes_to_bm25(self, bm25_lookup, embeddings):
        bm25_lookup.match.side_effect = LookupUnavailableError("connection refused")
        engine = make_engine(bm25_lookup, embeddings)

        assert len(engine.search("BECCS capture", limit=5, threshold=0.5)) == 3

    def test_missing_keyword_function_returns_empty(self, embeddings, tracer):
        lookup = MagicMock()
        lookup.match.return_value = []
        lookup.search_keyword.side_effect = RpcNotFoundError("search_keyword_documents")
        engine = make_engine(lookup, embeddings, tracer)

        assert engine.search("BECCS", limit=5, threshold=0.5) == []
        assert tracer.last("hybrid_search").attributes[RETRIEVAL_PATH] == "none"

    def test_keyword_lookup_failure_returns_empty(self, embeddings):
        lookup = MagicMock()
        lookup.match.return_value = []
        lookup.search_keyword.side_effect = LookupUnavailableError("timeout")
        engine = make_engine(lookup, embeddings)

        assert engine.search("BECCS", limit=5, threshold=0.5) == []
