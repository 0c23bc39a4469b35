"""
Runtime settings loaded from environment variables.

Each concern has its own dataclass with a from_env() classmethod, and
get_settings() lazily builds the process-wide bundle. Tests construct the
dataclasses directly or call reset_settings() after monkeypatching env.

Environment Variables:
    DATABASE_URL: Postgres connection string for the corpus
    CLIMATE_RAG_DOCUMENTS_TABLE: Corpus table name (default: documents)
    USE_POSTGRES: Use PgVectorLookup instead of the seeded in-memory corpus
    USE_MOCK_EMBEDDINGS: Use hash embeddings instead of OpenAI (default: false)
    EMBEDDING_MODEL: Must match the corpus (default: text-embedding-3-small)
    QUERY_MODEL: Model for classification/correction/rewrite (default: gpt-4o-mini)
    ANSWER_MODEL: Model for replies (default: gpt-4o-mini)
    PERPLEXITY_API_KEY: Enables web search fallback when set
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


@dataclass
class RetrievalConfig:
    """Settings for the corpus lookups and the ranking pipeline."""

    database_url: str = "postgresql://localhost/climate_rag"
    documents_table: str = "documents"
    match_function: str = "match_documents"
    keyword_function: str = "search_keyword_documents"
    use_postgres: bool = False

    # The vector lookup runs at a looser threshold than the caller's
    # final threshold and over-fetches so the keyword re-rank has room.
    vector_threshold_offset: float = 0.35
    vector_threshold_floor: float = 0.10
    overfetch_factor: int = 20
    keyword_fetch_factor: int = 2

    # Client-side scan bound when match_documents is not provisioned
    fallback_scan_limit: int = 1000

    # Documents with shorter content are treated as landing pages; 0 disables
    min_content_chars: int = 0

    @classmethod
    def from_env(cls) -> "RetrievalConfig":
        return cls(
            database_url=os.environ.get("DATABASE_URL", "postgresql://localhost/climate_rag"),
            documents_table=os.environ.get("CLIMATE_RAG_DOCUMENTS_TABLE", "documents"),
            use_postgres=_env_bool("USE_POSTGRES"),
            fallback_scan_limit=int(os.environ.get("CLIMATE_RAG_FALLBACK_SCAN_LIMIT", "1000")),
            min_content_chars=int(os.environ.get("CLIMATE_RAG_MIN_CONTENT_CHARS", "0")),
        )

    def vector_threshold(self, threshold: float) -> float:
        """Loosened threshold handed to the vector lookup."""
        return max(threshold - self.vector_threshold_offset, self.vector_threshold_floor)


@dataclass
class EmbeddingConfig:
    """Embedding provider settings."""

    model: str = "text-embedding-3-small"
    use_mock: bool = False

    @classmethod
    def from_env(cls) -> "EmbeddingConfig":
        return cls(
            model=os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small"),
            use_mock=_env_bool("USE_MOCK_EMBEDDINGS"),
        )


@dataclass
class CacheConfig:
    """Shared settings for the embedding and spelling caches."""

    ttl_seconds: float = 3600.0
    max_entries: int = 500

    @classmethod
    def from_env(cls) -> "CacheConfig":
        return cls(
            ttl_seconds=float(os.environ.get("CLIMATE_RAG_CACHE_TTL", "3600")),
            max_entries=int(os.environ.get("CLIMATE_RAG_CACHE_SIZE", "500")),
        )


@dataclass
class QueryConfig:
    """Query-understanding settings."""

    classifier_model: str = "gpt-4o-mini"
    spell_min_chars: int = 3
    spell_max_words: int = 12
    rewrite_max_words: int = 15
    rewrite_history_turns: int = 6
    rewrite_turn_chars: int = 400

    @classmethod
    def from_env(cls) -> "QueryConfig":
        return cls(classifier_model=os.environ.get("QUERY_MODEL", "gpt-4o-mini"))


@dataclass
class WebSearchConfig:
    """Web search fallback settings. Disabled when api_key is empty."""

    api_key: str | None = None
    api_url: str = "https://api.perplexity.ai/chat/completions"
    model: str = "sonar"
    timeout_seconds: float = 10.0
    title_timeout_seconds: float = 1.5
    max_tokens: int = 900

    @classmethod
    def from_env(cls) -> "WebSearchConfig":
        return cls(api_key=os.environ.get("PERPLEXITY_API_KEY") or None)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass
class AssistantConfig:
    """Thresholds and limits used when preparing a chat turn."""

    answer_model: str = "gpt-4o-mini"
    kth_threshold: float = 0.45
    global_threshold: float = 0.40
    kth_limit: int = 5
    global_limit: int = 3
    display_threshold: float = 0.55
    display_fallback_threshold: float = 0.45
    max_display_sources: int = 5
    display_fallback_count: int = 3
    context_chars: int = 800
    history_turns: int = 10

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        return cls(answer_model=os.environ.get("ANSWER_MODEL", "gpt-4o-mini"))


@dataclass
class Settings:
    """All settings in one bundle."""

    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    web: WebSearchConfig = field(default_factory=WebSearchConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            retrieval=RetrievalConfig.from_env(),
            embedding=EmbeddingConfig.from_env(),
            cache=CacheConfig.from_env(),
            query=QueryConfig.from_env(),
            web=WebSearchConfig.from_env(),
            assistant=AssistantConfig.from_env(),
        )


# Global settings singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings (lazy-loaded from env)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
