"""
Core protocols defining contracts for the retrieval core.

All infrastructure components implement these protocols,
enabling dependency injection and easy testing.

PATTERN: Protocol → Production impl → Test double → Factory
- EmbeddingProvider: OpenAIEmbeddings / MockEmbeddings / CachedEmbeddings
- VectorLookup: PgVectorLookup / InMemoryVectorLookup
- ChatCompletionProvider: LangChainChatProvider / test fakes

Each query-understanding classifier is also a narrow protocol so the LLM
call can be swapped for a rule-based or ML classifier without touching
the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from climate_rag.retrieval.document import Document


# A chat message is a plain {"role": ..., "content": ...} mapping.
ChatMessage = dict[str, str]


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations must use the same model as the stored corpus.
    Failures raise climate_rag.core.errors.EmbeddingError.
    """

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        ...


# ---------------------------------------------------------------------------
# VECTOR LOOKUP PROTOCOL
# ---------------------------------------------------------------------------


@dataclass
class MatchResult:
    """A corpus row returned by a lookup, with the lookup's own raw score."""

    document: Document
    similarity: float


@runtime_checkable
class VectorLookup(Protocol):
    """
    Contract for the corpus query interface.

    Implementations:
    - PgVectorLookup (production, Postgres functions)
    - InMemoryVectorLookup (testing/development)

    A procedure that is not provisioned raises RpcNotFoundError so the
    caller can route to its local fallback.
    """

    def match(
        self,
        query_embedding: np.ndarray,
        vector_threshold: float,
        match_count: int,
    ) -> list[MatchResult]:
        """Vector-similarity lookup; similarity is cosine (0..1)."""
        ...

    def search_keyword(self, query_text: str, match_count: int) -> list[MatchResult]:
        """Full-text lookup; similarity is the raw BM25/ts_rank score."""
        ...

    def fetch_documents(self, limit: int) -> list[Document]:
        """Read stored rows for the client-side fallback scan."""
        ...


# ---------------------------------------------------------------------------
# CHAT COMPLETION PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class ChatCompletionProvider(Protocol):
    """
    Contract for single-turn chat completions.

    Used by the query-understanding classifiers (low temperature) and by
    the assistant for non-streaming replies. Failures raise CompletionError.
    """

    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> str:
        """Return the assistant reply text."""
        ...


# ---------------------------------------------------------------------------
# QUERY UNDERSTANDING PROTOCOLS
# ---------------------------------------------------------------------------

SMALL_TALK = "SMALL_TALK"
SUBSTANTIVE = "SUBSTANTIVE"


@runtime_checkable
class MessageClassifier(Protocol):
    """Contract for the small-talk classifier: returns SMALL_TALK or SUBSTANTIVE."""

    def classify(self, text: str, context: Sequence[ChatMessage] | None = None) -> str:
        ...


@runtime_checkable
class Corrector(Protocol):
    """Contract for spelling correction. Must never raise."""

    def correct(self, text: str) -> str:
        ...
