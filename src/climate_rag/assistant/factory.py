"""
Factory functions wiring the components from Settings.

One embedding cache and one spelling cache are created per factory call
and shared by everything built from it. `offline=True` replaces every
LLM-backed step with its deterministic counterpart (rule-based small
talk, no spelling correction, no rewriting) so the pipeline runs without
API keys.
"""

from __future__ import annotations

from climate_rag.assistant.pipeline import ResearchAssistant
from climate_rag.cache import TTLCache
from climate_rag.config.settings import Settings, get_settings
from climate_rag.config.vocabulary import get_vocabulary
from climate_rag.core.protocols import ChatCompletionProvider
from climate_rag.embeddings import get_embedding_provider
from climate_rag.llm import get_chat_provider
from climate_rag.query.normalizer import QueryNormalizer
from climate_rag.query.rewriter import QueryRewriter
from climate_rag.query.small_talk import LLMSmallTalkClassifier, RuleBasedSmallTalkClassifier
from climate_rag.query.spelling import LLMSpellCorrector
from climate_rag.retrieval.search import HybridSearchEngine
from climate_rag.retrieval.store import get_vector_lookup
from climate_rag.web.search import WebSearchClient


def build_search_engine(settings: Settings | None = None) -> HybridSearchEngine:
    settings = settings or get_settings()
    cache = TTLCache(settings.cache.ttl_seconds, settings.cache.max_entries)
    embeddings = get_embedding_provider(
        use_mock=settings.embedding.use_mock,
        model=settings.embedding.model,
        cache=cache,
    )
    lookup = get_vector_lookup(settings.retrieval, embeddings)
    return HybridSearchEngine(lookup, embeddings, config=settings.retrieval)


def build_normalizer(
    settings: Settings | None = None,
    chat: ChatCompletionProvider | None = None,
    offline: bool = False,
) -> QueryNormalizer:
    settings = settings or get_settings()
    vocabulary = get_vocabulary()

    if offline:
        return QueryNormalizer(RuleBasedSmallTalkClassifier(), vocabulary=vocabulary)

    chat = chat or get_chat_provider(settings.query.classifier_model)
    cfg = settings.query
    return QueryNormalizer(
        classifier=LLMSmallTalkClassifier(chat),
        corrector=LLMSpellCorrector(
            chat,
            cache=TTLCache(settings.cache.ttl_seconds, settings.cache.max_entries),
            protected_terms=vocabulary.protected_terms,
            min_chars=cfg.spell_min_chars,
            max_words=cfg.spell_max_words,
        ),
        rewriter=QueryRewriter(chat, cfg),
        vocabulary=vocabulary,
    )


def build_assistant(
    settings: Settings | None = None,
    offline: bool = False,
) -> ResearchAssistant:
    """Assemble a ResearchAssistant; offline builds one with no chat provider."""
    settings = settings or get_settings()

    query_chat = None if offline else get_chat_provider(settings.query.classifier_model)
    answer_chat = None if offline else get_chat_provider(settings.assistant.answer_model)
    web = WebSearchClient(settings.web) if settings.web.enabled and not offline else None

    return ResearchAssistant(
        normalizer=build_normalizer(settings, chat=query_chat, offline=offline),
        search_engine=build_search_engine(settings),
        chat=answer_chat,
        web_client=web,
        config=settings.assistant,
    )
