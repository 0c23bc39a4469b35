"""
Vague-query rewriting.

Follow-ups like "who are they?" or "tell me more about it" cannot be
searched on their own. When there is conversation history and the message
is short, an LLM either resolves the references into a standalone query
or answers KEEP_ORIGINAL.

"List the people" queries get a second, deterministic pass: the role
nouns are stripped so the search targets the topic. Documents about
BECCS rarely say "BECCS researchers", so searching for the role noun
under-matches.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from climate_rag.config.settings import QueryConfig
from climate_rag.core.protocols import ChatCompletionProvider, ChatMessage
from climate_rag.query.prompts import KEEP_ORIGINAL, build_rewrite_messages, format_history

logger = logging.getLogger(__name__)

LIST_NAMES_PATTERN = re.compile(
    r"\b(researchers?|authors?|scientists?|professors?|names?|people|team|groups?)\b",
    re.IGNORECASE,
)

RELATIONAL_WORDS = re.compile(
    r"\b(names?|of|the|researchers?|authors?|at|kth|professors?|scientists?"
    r"|team|group|people|who|working|on|in)\b",
    re.IGNORECASE,
)

_WRAPPING_QUOTES = re.compile(r"^[\"']+|[\"']+$")
_ESCAPED_QUOTES = re.compile(r"\\[\"']")
_ALL_CAPS = re.compile(r"^[A-Z]{3,}$")
_CAMEL_CASE = re.compile(r"[A-Z][a-z]+[A-Z]")

MIN_REWRITE_CHARS = 3


@dataclass
class RewriteResult:
    """Outcome of the rewrite step."""

    search_text: str
    was_rewritten: bool = False
    is_list_names_query: bool = False
    failed: bool = False


def sanitize_rewrite(reply: str) -> str:
    """Strip wrapping and escaped quotes the model sometimes adds."""
    text = _WRAPPING_QUOTES.sub("", reply.strip())
    text = _ESCAPED_QUOTES.sub("", text)
    return text.strip()


def extract_topic_terms(text: str) -> str:
    """
    Reduce a "list the people" query to its topic terms.

    Technical tokens (all caps, camelCase, or longer than 6 chars) win;
    otherwise the first three remaining words are used.

    Example:
        >>> extract_topic_terms("BECCS researchers at KTH")
        'BECCS'
    """
    topic_words = [w for w in RELATIONAL_WORDS.sub(" ", text).split() if len(w) > 3]
    technical = [
        w for w in topic_words
        if _ALL_CAPS.match(w) or len(w) > 6 or _CAMEL_CASE.search(w)
    ]
    return " ".join(technical if technical else topic_words[:3])


class QueryRewriter:
    """
    Resolve context-dependent follow-ups into standalone search queries.

    Dependencies are INJECTED: the chat provider and the query config.
    """

    def __init__(
        self,
        chat: ChatCompletionProvider,
        config: QueryConfig | None = None,
        temperature: float = 0.3,
        max_tokens: int = 60,
    ):
        self._chat = chat
        self._config = config or QueryConfig()
        self._temperature = temperature
        self._max_tokens = max_tokens

    def should_rewrite(self, text: str, history: Sequence[ChatMessage] | None) -> bool:
        return bool(history) and len(text.split()) < self._config.rewrite_max_words

    def rewrite(
        self,
        text: str,
        history: Sequence[ChatMessage] | None,
        original_text: str | None = None,
    ) -> RewriteResult:
        """
        Rewrite `text` (the spell-corrected message) using `history`.

        On provider failure the search falls back to `original_text`
        (the uncorrected message) when given.
        """
        if not self.should_rewrite(text, history):
            return RewriteResult(search_text=text)

        history_text = format_history(
            history,
            max_turns=self._config.rewrite_history_turns,
            max_chars=self._config.rewrite_turn_chars,
        )

        try:
            reply = self._chat.complete(
                build_rewrite_messages(text, history_text),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.warning(f"Query rewriting failed, using original: {e}")
            return RewriteResult(search_text=original_text or text, failed=True)

        rewritten = sanitize_rewrite(reply)

        if rewritten == KEEP_ORIGINAL:
            logger.debug(f"Query is already specific: {text!r}")
            return RewriteResult(search_text=text)

        if len(rewritten) <= MIN_REWRITE_CHARS:
            logger.debug(f"Rewrite output too short ({rewritten!r}), using original query")
            return RewriteResult(search_text=text)

        logger.info(f"Query rewritten: {text!r} -> {rewritten!r}")

        if not LIST_NAMES_PATTERN.search(rewritten):
            return RewriteResult(search_text=rewritten, was_rewritten=True)

        topic = extract_topic_terms(rewritten)
        search_text = topic if len(topic) > 2 else rewritten
        if search_text != rewritten:
            logger.info(f"List-names query, searching topic {search_text!r} (from {rewritten!r})")
        return RewriteResult(
            search_text=search_text,
            was_rewritten=True,
            is_list_names_query=True,
        )
