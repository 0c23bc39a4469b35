"""
Unit Tests for Component Factories

Offline builds only: mock embeddings, rule-based query understanding,
no chat provider.

STAFF ENGINEER PATTERNS:
------------------------
1. Factories exercised end to end over the seeded development corpus
2. No API keys required
"""

import pytest

from climate_rag.assistant import build_assistant, build_normalizer, build_search_engine
from climate_rag.config.settings import Settings
from climate_rag.config.vocabulary import reset_vocabulary
from climate_rag.embeddings import CachedEmbeddings
from climate_rag.retrieval.search import HybridSearchEngine


@pytest.fixture
def offline_settings(monkeypatch):
    monkeypatch.delenv("CLIMATE_RAG_VOCABULARY", raising=False)
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)
    reset_vocabulary()
    settings = Settings()
    settings.embedding.use_mock = True
    yield settings
    reset_vocabulary()


class TestBuildSearchEngine:

    def test_offline_engine(self, offline_settings):
        engine = build_search_engine(offline_settings)

        assert isinstance(engine, HybridSearchEngine)
        assert isinstance(engine._embeddings, CachedEmbeddings)

    def test_seeded_corpus_answers_keyword_queries(self, offline_settings):
        engine = build_search_engine(offline_settings)

        results = engine.search("BECCS", limit=5, threshold=0.5)

        assert results
        assert any("BECCS" in r.title for r in results)
        assert len(results) <= 5


class TestBuildNormalizer:

    def test_offline_is_rule_based(self, offline_settings):
        normalizer = build_normalizer(offline_settings, offline=True)

        assert normalizer.normalize("hello").is_small_talk
        assert normalizer.normalize("who are they?", [{"role": "user", "content": "BECCS"}]).search_text == "who are they?"


class TestBuildAssistant:

    def test_offline_assistant_prepares_turns(self, offline_settings):
        assistant = build_assistant(offline_settings, offline=True)

        turn = assistant.prepare_turn("What is KTH doing with BECCS?")

        assert turn.query.is_kth_specific
        assert not turn.used_web_search

    def test_offline_assistant_cannot_respond(self, offline_settings):
        assistant = build_assistant(offline_settings, offline=True)

        with pytest.raises(ValueError):
            assistant.respond("hi")
