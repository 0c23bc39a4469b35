"""
LLM module - chat-completion provider used by query understanding and replies.
"""

from climate_rag.llm.chat import (
    LangChainChatProvider,
    get_chat_provider,
    to_langchain_messages,
)

__all__ = [
    "LangChainChatProvider",
    "get_chat_provider",
    "to_langchain_messages",
]
