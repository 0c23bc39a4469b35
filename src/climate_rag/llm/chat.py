"""
Chat-completion adapter.

Wraps LangChain's ChatOpenAI behind the ChatCompletionProvider protocol:
role/content dicts in, reply text out. The query-understanding classifiers
call it at low temperature with tight token limits; the assistant uses it
for non-streaming replies.

The model is injectable, so tests pass a fake chat model or a MagicMock
and never touch the network.
"""

from __future__ import annotations

import logging
import os
from typing import Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import OpenAIError

from climate_rag.core.errors import CompletionError
from climate_rag.core.protocols import ChatMessage
from climate_rag.observability import TracerProtocol, genai_attributes, get_tracer

logger = logging.getLogger(__name__)


def to_langchain_messages(messages: Sequence[ChatMessage]) -> list[BaseMessage]:
    """
    Convert role/content dicts to LangChain message objects.

    PURE FUNCTION - unknown roles are treated as user messages.
    """
    converted: list[BaseMessage] = []
    for message in messages:
        role = message.get("role", "user")
        content = message.get("content", "")
        if role == "system":
            converted.append(SystemMessage(content=content))
        elif role == "assistant":
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


class LangChainChatProvider:
    """
    ChatCompletionProvider backed by a LangChain chat model.

    Dependencies are INJECTED: pass any BaseChatModel, or let the
    constructor build a ChatOpenAI for the given model name.
    """

    def __init__(
        self,
        model: BaseChatModel | None = None,
        model_name: str | None = None,
        timeout: float = 15.0,
        tracer: TracerProtocol | None = None,
    ):
        self._model = model or ChatOpenAI(
            model=model_name or os.environ.get("QUERY_MODEL", "gpt-4o-mini"),
            temperature=0,
            timeout=timeout,
            max_retries=1,
        )
        self._tracer = tracer

    @property
    def model_name(self) -> str | None:
        name = getattr(self._model, "model_name", None)
        return name if isinstance(name, str) else None

    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> str:
        """Run one completion and return the stripped reply text."""
        params: dict = {"temperature": temperature}
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        tracer = self._tracer or get_tracer()
        with tracer.start_span(
            "chat_completion", attributes=genai_attributes("openai", self.model_name)
        ):
            try:
                response = self._model.bind(**params).invoke(to_langchain_messages(messages))
            except OpenAIError as e:
                raise CompletionError(f"Chat completion failed: {e}") from e

        content = response.content if isinstance(response.content, str) else ""
        content = content.strip()
        if not content:
            raise CompletionError("Chat completion returned an empty reply")
        return content


def get_chat_provider(model_name: str | None = None) -> LangChainChatProvider:
    """Factory for the default ChatOpenAI-backed provider."""
    return LangChainChatProvider(model_name=model_name)
