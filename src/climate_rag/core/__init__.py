"""
Core module - shared protocols, types and errors for the retrieval core.

USAGE:
------
from climate_rag.core import VectorLookup, EmbeddingProvider

class MyLookup:
    '''Implements VectorLookup protocol.'''
    ...
"""

from climate_rag.core.protocols import (
    # Protocols
    EmbeddingProvider,
    VectorLookup,
    ChatCompletionProvider,
    MessageClassifier,
    Corrector,
    # Data classes / types
    ChatMessage,
    MatchResult,
    # Labels
    SMALL_TALK,
    SUBSTANTIVE,
)
from climate_rag.core.errors import (
    RetrievalError,
    EmbeddingError,
    EmbeddingDimensionError,
    RpcNotFoundError,
    LookupUnavailableError,
    CompletionError,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "VectorLookup",
    "ChatCompletionProvider",
    "MessageClassifier",
    "Corrector",
    # Data classes / types
    "ChatMessage",
    "MatchResult",
    "SMALL_TALK",
    "SUBSTANTIVE",
    # Errors
    "RetrievalError",
    "EmbeddingError",
    "EmbeddingDimensionError",
    "RpcNotFoundError",
    "LookupUnavailableError",
    "CompletionError",
]
