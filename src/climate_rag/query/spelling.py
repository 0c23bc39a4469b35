"""
Spelling correction for short queries.

Correction is best effort: it must never raise and never block the
pipeline. Any provider failure returns the input unchanged.
"""

from __future__ import annotations

import logging
from typing import Sequence

from climate_rag.cache import TTLCache
from climate_rag.config.vocabulary import get_vocabulary
from climate_rag.core.protocols import ChatCompletionProvider
from climate_rag.query.prompts import build_spelling_messages

logger = logging.getLogger(__name__)


class LLMSpellCorrector:
    """
    Fix obvious typos with a deterministic (temperature 0) LLM call.

    Skips very short inputs and long, well-formed prose. Successful results
    (including "no change needed") are cached by normalized input.
    """

    def __init__(
        self,
        chat: ChatCompletionProvider,
        cache: TTLCache[str] | None = None,
        protected_terms: Sequence[str] | None = None,
        min_chars: int = 3,
        max_words: int = 12,
        max_tokens: int = 100,
    ):
        self._chat = chat
        self._cache: TTLCache[str] = cache if cache is not None else TTLCache()
        self._protected_terms = tuple(
            protected_terms if protected_terms is not None else get_vocabulary().protected_terms
        )
        self._min_chars = min_chars
        self._max_words = max_words
        self._max_tokens = max_tokens

    def should_correct(self, text: str) -> bool:
        """Only short-ish queries are worth a correction call."""
        return len(text) >= self._min_chars and len(text.split()) <= self._max_words

    def correct(self, text: str) -> str:
        if not self.should_correct(text):
            return text

        cached = self._cache.get(text)
        if cached is not None:
            logger.debug(f"Spell cache hit: {text!r} -> {cached!r}")
            return cached

        try:
            corrected = self._chat.complete(
                build_spelling_messages(text, self._protected_terms),
                temperature=0,
                max_tokens=self._max_tokens,
            ).strip()
        except Exception as e:
            logger.debug(f"Spell correction failed, using original query: {e}")
            return text

        if not corrected:
            corrected = text
        if corrected != text:
            logger.info(f"Spell correction: {text!r} -> {corrected!r}")

        self._cache.set(text, corrected)
        return corrected


class NoOpCorrector:
    """Corrector that returns its input; used when correction is disabled."""

    def correct(self, text: str) -> str:
        return text
