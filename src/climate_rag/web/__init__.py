"""Web search fallback."""

from climate_rag.web.search import (
    WebSearchClient,
    WebSearchResponse,
    WebSearchResult,
    clean_title,
    fallback_title,
    safe_hostname,
)

__all__ = [
    "WebSearchClient",
    "WebSearchResponse",
    "WebSearchResult",
    "clean_title",
    "fallback_title",
    "safe_hostname",
]
