"""
Exception hierarchy for the retrieval core.

Provider adapters translate third-party failures (openai, langchain,
psycopg, httpx) into these types. Components that own a fallback catch
the recoverable ones; only EmbeddingDimensionError is allowed to escape
HybridSearchEngine.search().
"""

from __future__ import annotations


class RetrievalError(Exception):
    """Base class for every error raised by climate_rag."""


class EmbeddingError(RetrievalError):
    """The embedding provider failed (quota, network, malformed response)."""


class EmbeddingDimensionError(RetrievalError):
    """
    Query and corpus vectors have different dimensionality.

    This means the corpus was embedded with a different model than the
    one used for queries. It is a configuration bug, not a transient
    failure, so it is never swallowed.
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: query has {expected}, stored vector has {actual}"
        )


class RpcNotFoundError(RetrievalError):
    """A database procedure (match/keyword search) is not provisioned."""

    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"Database function not found: {function_name}")


class LookupUnavailableError(RetrievalError):
    """The corpus store could not be reached or returned an error."""


class CompletionError(RetrievalError):
    """The chat-completion provider failed or returned an empty reply."""
