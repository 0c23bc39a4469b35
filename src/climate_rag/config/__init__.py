"""
Configuration module - env-driven settings and curated vocabulary.
"""

from climate_rag.config.settings import (
    RetrievalConfig,
    EmbeddingConfig,
    CacheConfig,
    QueryConfig,
    WebSearchConfig,
    AssistantConfig,
    Settings,
    get_settings,
    reset_settings,
)
from climate_rag.config.vocabulary import (
    Vocabulary,
    get_vocabulary,
    reset_vocabulary,
)

__all__ = [
    "RetrievalConfig",
    "EmbeddingConfig",
    "CacheConfig",
    "QueryConfig",
    "WebSearchConfig",
    "AssistantConfig",
    "Settings",
    "get_settings",
    "reset_settings",
    "Vocabulary",
    "get_vocabulary",
    "reset_vocabulary",
]
