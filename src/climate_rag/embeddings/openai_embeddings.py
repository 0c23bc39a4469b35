"""
Embeddings Module - Single Responsibility: Generate text embeddings.

It has ONE job: convert text to vector embeddings.

The query embedding model MUST be the model the corpus was embedded with
(text-embedding-3-small by default). Mixing models silently corrupts
cosine similarity, so the model name is configuration, not a per-call
choice.
"""

from __future__ import annotations

import hashlib
import logging
import os

import numpy as np
from openai import OpenAI, OpenAIError

from climate_rag.cache import TTLCache
from climate_rag.core.errors import EmbeddingError
from climate_rag.core.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions).
    Any API or response failure is raised as EmbeddingError.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        client: OpenAI | None = None,
    ):
        self.model = model
        self._client = client or OpenAI(api_key=api_key or os.environ.get("OPENAI_API_KEY"))

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        model_dims = {
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
            "text-embedding-ada-002": 1536,
        }
        return model_dims.get(self.model, 1536)

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        try:
            response = self._client.embeddings.create(input=text, model=self.model)
        except OpenAIError as e:
            raise EmbeddingError(f"Embedding API error: {e}") from e

        if not response.data or not response.data[0].embedding:
            raise EmbeddingError("Invalid embedding response")
        return np.array(response.data[0].embedding, dtype=np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts efficiently."""
        if not texts:
            return []

        try:
            response = self._client.embeddings.create(input=texts, model=self.model)
        except OpenAIError as e:
            raise EmbeddingError(f"Embedding API error: {e}") from e

        return [
            np.array(item.embedding, dtype=np.float32)
            for item in response.data
        ]


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic unit-length pseudo-embeddings seeded from the
    text hash. NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = 1536):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic pseudo-embedding from text hash."""
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self._dimensions)
        return (vector / np.linalg.norm(vector)).astype(np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        return [self.embed(text) for text in texts]


class CachedEmbeddings:
    """
    Caching decorator around any EmbeddingProvider.

    Query embeddings are cached by normalized text so a repeated question
    (even with different casing or spacing) skips the network call.
    Failures are not cached.
    """

    def __init__(self, inner: EmbeddingProvider, cache: TTLCache[np.ndarray] | None = None):
        self._inner = inner
        self._cache: TTLCache[np.ndarray] = cache if cache is not None else TTLCache()

    @property
    def cache(self) -> TTLCache[np.ndarray]:
        return self._cache

    def embed(self, text: str) -> np.ndarray:
        cached = self._cache.get(text)
        if cached is not None:
            logger.debug(f"Embedding cache hit for: {text[:30]!r}")
            return cached

        embedding = self._inner.embed(text)
        self._cache.set(text, embedding)
        return embedding

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Batch calls (corpus documents) bypass the query cache."""
        return self._inner.embed_batch(texts)


def get_embedding_provider(
    use_mock: bool = False,
    model: str = "text-embedding-3-small",
    cache: TTLCache[np.ndarray] | None = None,
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing)
        model: Embedding model; must match the stored corpus
        cache: Optional cache; when given the provider is wrapped in CachedEmbeddings
    """
    provider: EmbeddingProvider = MockEmbeddings() if use_mock else OpenAIEmbeddings(model=model)
    if cache is not None:
        return CachedEmbeddings(provider, cache)
    return provider
