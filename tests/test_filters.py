"""
Unit Tests for Ranking Filters and Display-Source Selection

STAFF ENGINEER PATTERNS:
------------------------
1. Generic-page rules tested one rule at a time
2. Dedup idempotence checked directly
3. Source selection covers strict, fallback and empty paths
"""

import pytest

from climate_rag.config.vocabulary import Vocabulary
from climate_rag.retrieval.document import Document, ScoredDocument
from climate_rag.retrieval.filters import (
    dedupe_by_title,
    filter_content_relevant,
    filter_generic_pages,
    is_content_relevant,
    is_generic_page,
)
from climate_rag.retrieval.sources import select_display_sources


@pytest.fixture
def vocab():
    return Vocabulary()


def make_scored(doc_id, title, similarity, content="Research content."):
    return ScoredDocument(
        document=Document(id=doc_id, title=title, content=content),
        vector_score=similarity,
        keyword_score=similarity,
        similarity=similarity,
    )


# ---------------------------------------------------------------------------
# CONTENT RELEVANCE
# ---------------------------------------------------------------------------


class TestContentRelevance:

    def test_keyword_in_content_any_case(self):
        doc = make_scored("1", "Overview", 0.8, content="Our beccs pilot plant.")
        assert is_content_relevant(doc, {"BECCS"})

    def test_keyword_in_title(self):
        doc = make_scored("1", "Offshore wind in the Baltic", 0.8, content="")
        assert is_content_relevant(doc, {"wind"})

    def test_unrelated_document(self):
        doc = make_scored("1", "Heat pumps", 0.8, content="District heating networks.")
        assert not is_content_relevant(doc, {"BECCS"})

    def test_no_keywords_keeps_everything(self):
        doc = make_scored("1", "Heat pumps", 0.8)
        assert is_content_relevant(doc, set())

    def test_filter(self):
        docs = [
            make_scored("1", "BECCS pilot", 0.9),
            make_scored("2", "Heat pumps", 0.8),
        ]
        assert [d.id for d in filter_content_relevant(docs, {"BECCS"})] == ["1"]


# ---------------------------------------------------------------------------
# DEDUP
# ---------------------------------------------------------------------------


class TestDedupeByTitle:

    def test_keeps_highest_score(self):
        docs = [
            make_scored("low", "BECCS Research Overview", 0.6),
            make_scored("other", "Heat pumps", 0.7),
            make_scored("high", "BECCS Research Overview", 0.8),
        ]
        result = dedupe_by_title(docs)

        assert [d.id for d in result] == ["high", "other"]

    def test_idempotent(self):
        docs = [
            make_scored("a", "Same", 0.9),
            make_scored("b", "Same", 0.5),
            make_scored("c", "Different", 0.7),
        ]
        once = dedupe_by_title(docs)
        assert dedupe_by_title(once) == once

    def test_titles_compared_exactly(self):
        docs = [make_scored("a", "BECCS", 0.9), make_scored("b", "beccs", 0.8)]
        assert len(dedupe_by_title(docs)) == 2


# ---------------------------------------------------------------------------
# GENERIC PAGES
# ---------------------------------------------------------------------------


class TestIsGenericPage:

    def test_known_generic_title(self, vocab):
        assert is_generic_page("Research | KTH", vocabulary=vocab)
        assert is_generic_page("news from kth | KTH", vocabulary=vocab)

    def test_school_index_page(self, vocab):
        assert is_generic_page("School of Engineering Sciences | KTH", vocabulary=vocab)
        assert is_generic_page("Division of Energy Technology | KTH", vocabulary=vocab)

    def test_suffix_without_research_indicator(self, vocab):
        assert is_generic_page("Contact us | KTH", vocabulary=vocab)

    def test_short_title_with_indicator(self, vocab):
        assert is_generic_page("Energy | KTH", vocabulary=vocab)

    def test_research_page_with_suffix_kept(self, vocab):
        assert not is_generic_page("BECCS Research Overview | KTH", vocabulary=vocab)

    def test_plain_research_title_kept(self, vocab):
        assert not is_generic_page("BECCS Research Overview", vocabulary=vocab)

    def test_short_content_rule(self, vocab):
        assert is_generic_page("Some paper", "short", vocab, min_content_chars=200)
        assert not is_generic_page("Some paper", "short", vocab)

    def test_empty_title(self, vocab):
        assert not is_generic_page("", vocabulary=vocab)

    def test_custom_site_suffix(self):
        vocab = Vocabulary().merged({"site_suffix": "Chalmers"})
        assert is_generic_page("Contact us | Chalmers", vocabulary=vocab)
        assert not is_generic_page("Contact us | KTH", vocabulary=vocab)

    def test_filter_generic_pages(self, vocab):
        docs = [
            make_scored("nav", "Research | KTH", 0.95),
            make_scored("paper", "BECCS Research Overview | KTH", 0.9),
        ]
        assert [d.id for d in filter_generic_pages(docs, vocab)] == ["paper"]


# ---------------------------------------------------------------------------
# DISPLAY SOURCES
# ---------------------------------------------------------------------------


class TestSelectDisplaySources:

    def test_strict_threshold(self):
        docs = [make_scored(str(i), f"T{i}", s) for i, s in enumerate([0.9, 0.6, 0.5])]
        assert [d.similarity for d in select_display_sources(docs)] == [0.9, 0.6]

    def test_strict_capped_at_five(self):
        docs = [make_scored(str(i), f"T{i}", 0.9) for i in range(8)]
        assert len(select_display_sources(docs)) == 5

    def test_fallback_to_top_three(self):
        """Nothing clears 0.55, so the top 3 at >= 0.45 are shown."""
        docs = [make_scored(str(i), f"T{i}", s) for i, s in enumerate([0.52, 0.5, 0.48, 0.46, 0.3])]
        assert [d.similarity for d in select_display_sources(docs)] == [0.52, 0.5, 0.48]

    def test_fallback_can_be_empty(self):
        docs = [make_scored("1", "T", 0.41)]
        assert select_display_sources(docs) == []

    def test_no_documents(self):
        assert select_display_sources([]) == []
