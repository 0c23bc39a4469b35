"""
Embeddings module - text embedding generation.

1. Protocol (EmbeddingProvider, in core.protocols) defines the interface
2. Production implementation (OpenAIEmbeddings)
3. Test double (MockEmbeddings) for fast testing
4. Caching decorator (CachedEmbeddings)
5. Factory function (get_embedding_provider)
"""

from climate_rag.embeddings.openai_embeddings import (
    OpenAIEmbeddings,
    MockEmbeddings,
    CachedEmbeddings,
    get_embedding_provider,
)

__all__ = [
    "OpenAIEmbeddings",
    "MockEmbeddings",
    "CachedEmbeddings",
    "get_embedding_provider",
]
