"""
Small-talk classification: does this message need retrieval at all?

Two implementations of the MessageClassifier protocol:
- RuleBasedSmallTalkClassifier: deterministic regexes, fully testable
  offline, and the contract of last resort
- LLMSmallTalkClassifier: asks the chat model, falls back to the rules on
  any provider failure

Both default to SUBSTANTIVE when unsure, so a real question is never
silently dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from climate_rag.core.protocols import (
    SMALL_TALK,
    SUBSTANTIVE,
    ChatCompletionProvider,
    ChatMessage,
    MessageClassifier,
)
from climate_rag.query.prompts import build_small_talk_messages

logger = logging.getLogger(__name__)

SMALL_TALK_PATTERNS = (
    re.compile(r"^(hi|hello|hey)$"),
    re.compile(r"^(bye|goodbye)$"),
    re.compile(r"^(thanks?|thank\s+you)$"),
    # Meta-questions about the conversation itself
    re.compile(r"non[- ]?climate", re.IGNORECASE),
    re.compile(r"^i (have|want).*(non|different)", re.IGNORECASE),
)

SUBSTANTIVE_TRIGGERS = (
    "show", "tell", "what", "who", "how", "papers", "researchers", "pubs",
    "more", "another", "explain",
)


class RuleBasedSmallTalkClassifier:
    """Conservative pattern matcher: only pure greetings/thanks/goodbyes."""

    def classify(self, text: str, context: Sequence[ChatMessage] | None = None) -> str:
        lower = (text or "").lower().strip()

        if any(trigger in lower for trigger in SUBSTANTIVE_TRIGGERS):
            return SUBSTANTIVE

        if any(pattern.search(lower) for pattern in SMALL_TALK_PATTERNS):
            return SMALL_TALK

        return SUBSTANTIVE


class LLMSmallTalkClassifier:
    """
    LLM-backed classifier with a deterministic fallback.

    Dependencies are INJECTED: the chat provider and the fallback
    classifier can both be replaced in tests.
    """

    def __init__(
        self,
        chat: ChatCompletionProvider,
        fallback: MessageClassifier | None = None,
        temperature: float = 0.1,
        max_tokens: int = 10,
    ):
        self._chat = chat
        self._fallback = fallback or RuleBasedSmallTalkClassifier()
        self._temperature = temperature
        self._max_tokens = max_tokens

    def classify(self, text: str, context: Sequence[ChatMessage] | None = None) -> str:
        messages = build_small_talk_messages(text, has_history=bool(context))
        try:
            reply = self._chat.complete(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.warning(f"Small talk detection failed, using rules: {e}")
            return self._fallback.classify(text, context)

        label = SMALL_TALK if reply.strip().upper() == SMALL_TALK else SUBSTANTIVE
        logger.debug(f"Small talk detection: {text!r} -> {label}")
        return label


def is_small_talk(
    classifier: MessageClassifier,
    text: str,
    context: Sequence[ChatMessage] | None = None,
) -> bool:
    return classifier.classify(text, context) == SMALL_TALK
