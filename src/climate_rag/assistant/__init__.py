"""
Assistant layer - a chat turn built on the retrieval core.

Query understanding and retrieval feed the system prompt; the answer is a
single completion through the injected chat provider.
"""

from climate_rag.assistant.pipeline import (
    AssistantReply,
    ResearchAssistant,
    TurnContext,
    build_context_block,
    merge_sources,
    mentions_hard_keyword,
    web_citations,
)
from climate_rag.assistant.prompts import build_system_prompt
from climate_rag.assistant.factory import build_assistant, build_normalizer, build_search_engine

__all__ = [
    "AssistantReply",
    "ResearchAssistant",
    "TurnContext",
    "build_context_block",
    "merge_sources",
    "mentions_hard_keyword",
    "web_citations",
    "build_system_prompt",
    "build_assistant",
    "build_normalizer",
    "build_search_engine",
]
