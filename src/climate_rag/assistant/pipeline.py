"""
Research assistant - one chat turn from raw message to answer.

Flow:
1. Normalize the message (small talk, spelling, rewrite, keywords)
2. Small talk skips retrieval entirely
3. Search the corpus with the institution or global threshold/limit
4. Choose display sources; build the LLM context block
5. Optionally add web search sources when the corpus answered weakly
6. Assemble system prompt + recent history + message; complete

Streaming and the chat/voice UIs are outside this package; respond()
does one non-streaming completion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from climate_rag.assistant.prompts import build_system_prompt
from climate_rag.config.settings import AssistantConfig
from climate_rag.core.protocols import ChatCompletionProvider, ChatMessage
from climate_rag.observability import (
    RETRIEVAL_RESULT_COUNT,
    RETRIEVAL_WEB_SOURCE_COUNT,
    TracerProtocol,
    get_config,
    get_tracer,
    query_attributes,
)
from climate_rag.query.normalizer import NormalizedQuery, QueryNormalizer
from climate_rag.query.routing import extract_hard_keywords, should_use_web_search
from climate_rag.retrieval.document import ScoredDocument
from climate_rag.retrieval.search import HybridSearchEngine
from climate_rag.retrieval.sources import select_display_sources
from climate_rag.web.search import WebSearchClient, WebSearchResponse

logger = logging.getLogger(__name__)


@dataclass
class TurnContext:
    """Everything retrieved for one turn, before generation."""

    query: NormalizedQuery
    documents: list[ScoredDocument] = field(default_factory=list)
    sources: list[dict] = field(default_factory=list)
    context: str = ""
    web: WebSearchResponse | None = None
    system_prompt: str = ""

    @property
    def used_web_search(self) -> bool:
        return self.web is not None


@dataclass
class AssistantReply:
    text: str
    turn: TurnContext

    @property
    def sources(self) -> list[dict]:
        return self.turn.sources


def build_context_block(documents: Sequence[ScoredDocument], max_chars: int = 800) -> str:
    """Numbered [Source N] blocks for the system prompt."""
    blocks = []
    for i, doc in enumerate(documents, start=1):
        d = doc.document
        blocks.append(
            f"[Source {i}]\n"
            f"Title: {d.title or 'Untitled'}\n"
            f"Authors: {d.author or 'Unknown'}\n"
            f"Department: {d.department or 'KTH'}\n"
            f"Category: {d.category or 'General'}\n"
            f"Content: {d.content[:max_chars]}...\n"
        )
    return "\n---\n".join(blocks)


def web_citations(response: WebSearchResponse) -> list[dict]:
    return [
        {
            "title": r.title,
            "url": r.url,
            "authors": r.source,
            "department": "Web",
            "category": "web",
        }
        for r in response.results
    ]


def merge_sources(*groups: Sequence[dict]) -> list[dict]:
    """Concatenate citation lists, dropping repeats by URL (or title)."""
    seen: set[str] = set()
    merged = []
    for group in groups:
        for source in group:
            key = (source.get("url") or source.get("title") or "").lower()
            if key in seen:
                continue
            seen.add(key)
            merged.append(source)
    return merged


def mentions_hard_keyword(documents: Sequence[ScoredDocument], hard_keywords: list[str]) -> bool:
    """True when no hard keywords exist or any document contains one."""
    if not hard_keywords:
        return True
    for doc in documents:
        haystack = f"{doc.title}\n{doc.content}".lower()
        if any(k in haystack for k in hard_keywords):
            return True
    return False


class ResearchAssistant:
    """
    Orchestrates query understanding, retrieval and generation.

    Dependencies are INJECTED: normalizer, search engine, chat provider,
    optional web search client, config and tracer.
    """

    def __init__(
        self,
        normalizer: QueryNormalizer,
        search_engine: HybridSearchEngine,
        chat: ChatCompletionProvider | None = None,
        web_client: WebSearchClient | None = None,
        config: AssistantConfig | None = None,
        tracer: TracerProtocol | None = None,
    ):
        self._normalizer = normalizer
        self._search = search_engine
        self._chat = chat
        self._web = web_client
        self.config = config or AssistantConfig()
        self._tracer = tracer

    def prepare_turn(
        self,
        message: str,
        history: Sequence[ChatMessage] | None = None,
    ) -> TurnContext:
        """Run everything up to (not including) the answer completion."""
        tracer = self._tracer or get_tracer()
        with tracer.start_span("prepare_turn") as span:
            query = self._normalizer.normalize(message, history)
            capture = get_config().capture_llm_content
            for key, value in query_attributes(
                query.is_small_talk,
                query.is_kth_specific,
                query.was_rewritten,
                query.is_list_names_query,
                query.search_text if capture else None,
            ).items():
                span.set_attribute(key, value)

            if query.is_small_talk:
                logger.info("Small talk detected, skipping retrieval")
                return TurnContext(
                    query=query,
                    system_prompt=build_system_prompt(True, query.is_kth_specific, ""),
                )

            turn = self._retrieve(query)
            span.set_attribute(RETRIEVAL_RESULT_COUNT, len(turn.documents))
            span.set_attribute(
                RETRIEVAL_WEB_SOURCE_COUNT, len(turn.web.results) if turn.web else 0
            )
            return turn

    def _retrieve(self, query: NormalizedQuery) -> TurnContext:
        cfg = self.config
        is_kth = query.is_kth_specific
        threshold = cfg.kth_threshold if is_kth else cfg.global_threshold
        limit = cfg.kth_limit if is_kth else cfg.global_limit

        logger.info(
            f"Searching ({'KTH' if is_kth else 'global'}, threshold={threshold}): "
            f"{query.search_text!r}"
        )
        documents = self._search.search(query.search_text, limit=limit, threshold=threshold)

        display = select_display_sources(
            documents,
            display_threshold=cfg.display_threshold,
            max_sources=cfg.max_display_sources,
            fallback_threshold=cfg.display_fallback_threshold,
            fallback_count=cfg.display_fallback_count,
        )
        sources = [d.to_citation() for d in display]
        context = build_context_block(documents, cfg.context_chars)
        logger.info(f"Found {len(documents)} documents, {len(sources)} shown as sources")

        web = self._maybe_web_search(query, documents, len(sources))
        if web is not None:
            sources = merge_sources(sources, web_citations(web))

        return TurnContext(
            query=query,
            documents=documents,
            sources=sources,
            context=context,
            web=web,
            system_prompt=build_system_prompt(
                False, is_kth, context, web.answer if web else ""
            ),
        )

    def _maybe_web_search(
        self,
        query: NormalizedQuery,
        documents: list[ScoredDocument],
        source_count: int,
    ) -> WebSearchResponse | None:
        if self._web is None or not self._web.enabled:
            return None

        message = query.corrected_text
        best_score = max((d.similarity for d in documents), default=0.0)
        weak_by_keyword = query.is_kth_specific and not mentions_hard_keyword(
            documents, extract_hard_keywords(message)
        )

        if not should_use_web_search(
            message, query.is_kth_specific, source_count, best_score, weak_by_keyword
        ):
            return None

        logger.info("Supplementing with web search")
        return self._web.search(message, limit=5)

    def build_messages(
        self,
        turn: TurnContext,
        history: Sequence[ChatMessage] | None = None,
    ) -> list[ChatMessage]:
        """System prompt, the last history turns, then the user message."""
        messages: list[ChatMessage] = [{"role": "system", "content": turn.system_prompt}]
        for msg in list(history or [])[-self.config.history_turns:]:
            if msg.get("role") and msg.get("content"):
                messages.append({"role": msg["role"], "content": msg["content"]})
        messages.append({"role": "user", "content": turn.query.raw_text})
        return messages

    def respond(
        self,
        message: str,
        history: Sequence[ChatMessage] | None = None,
        temperature: float = 0.7,
    ) -> AssistantReply:
        """
        Answer one message.

        Raises:
            ValueError: no chat provider configured
            CompletionError: the answer completion failed
        """
        if self._chat is None:
            raise ValueError("ResearchAssistant.respond() needs a chat provider")

        turn = self.prepare_turn(message, history)
        text = self._chat.complete(self.build_messages(turn, history), temperature=temperature)
        return AssistantReply(text=text, turn=turn)
