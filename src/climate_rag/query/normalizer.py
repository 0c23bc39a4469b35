"""
Query normalizer - turns a raw chat message into what retrieval needs.

Pipeline per message:
1. Small-talk classification and spelling correction run concurrently
   (independent LLM calls) and are joined
2. Vague-query rewriting runs on the corrected text
3. Keywords and the institution flag are derived from the final search text

Every step degrades locally: a failing provider never aborts the turn.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

from climate_rag.config.vocabulary import Vocabulary, get_vocabulary
from climate_rag.core.protocols import (
    SMALL_TALK,
    ChatMessage,
    Corrector,
    MessageClassifier,
)
from climate_rag.query.keywords import extract_keywords
from climate_rag.query.rewriter import QueryRewriter
from climate_rag.query.routing import is_kth_specific_query
from climate_rag.query.spelling import NoOpCorrector

logger = logging.getLogger(__name__)


@dataclass
class NormalizedQuery:
    """Per-request query state handed to retrieval."""

    raw_text: str
    corrected_text: str
    search_text: str
    keywords: set[str] = field(default_factory=set)
    is_small_talk: bool = False
    is_kth_specific: bool = False
    is_list_names_query: bool = False
    was_rewritten: bool = False

    def to_dict(self) -> dict:
        return {
            "raw_text": self.raw_text,
            "corrected_text": self.corrected_text,
            "search_text": self.search_text,
            "keywords": sorted(self.keywords),
            "is_small_talk": self.is_small_talk,
            "is_kth_specific": self.is_kth_specific,
            "is_list_names_query": self.is_list_names_query,
            "was_rewritten": self.was_rewritten,
        }


class QueryNormalizer:
    """
    Compose the three query-understanding steps.

    All collaborators are injected so each can be replaced by a
    rule-based or fake implementation in tests.
    """

    def __init__(
        self,
        classifier: MessageClassifier,
        corrector: Corrector | None = None,
        rewriter: QueryRewriter | None = None,
        vocabulary: Vocabulary | None = None,
    ):
        self._classifier = classifier
        self._corrector = corrector or NoOpCorrector()
        self._rewriter = rewriter
        self._vocabulary = vocabulary or get_vocabulary()

    def normalize(
        self,
        raw_text: str,
        history: Sequence[ChatMessage] | None = None,
    ) -> NormalizedQuery:
        text = (raw_text or "").strip()
        context = list(history or [])

        with ThreadPoolExecutor(max_workers=2) as pool:
            label_future = pool.submit(self._classifier.classify, text, context)
            corrected_future = pool.submit(self._corrector.correct, text)
            label = label_future.result()
            corrected = corrected_future.result()

        search_text = corrected
        was_rewritten = False
        is_list_names = False

        if self._rewriter is not None:
            result = self._rewriter.rewrite(corrected, context, original_text=text)
            search_text = result.search_text
            was_rewritten = result.was_rewritten
            is_list_names = result.is_list_names_query

        normalized = NormalizedQuery(
            raw_text=text,
            corrected_text=corrected,
            search_text=search_text,
            keywords=extract_keywords(search_text, self._vocabulary),
            is_small_talk=label == SMALL_TALK,
            is_kth_specific=is_kth_specific_query(search_text, self._vocabulary),
            is_list_names_query=is_list_names,
            was_rewritten=was_rewritten,
        )

        logger.debug(
            f"Normalized query: search_text={normalized.search_text!r}, "
            f"small_talk={normalized.is_small_talk}, kth={normalized.is_kth_specific}, "
            f"keywords={sorted(normalized.keywords)}"
        )
        return normalized
