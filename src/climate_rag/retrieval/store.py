"""
Corpus lookups following the gold standard pattern.

Pattern: Protocol → Production impl → Test double → Factory

This module contains:
1. PgVectorLookup - Postgres functions match_documents / search_keyword_documents
2. InMemoryVectorLookup - In-memory corpus (testing/development)
3. get_vector_lookup() - Factory function

Both implementations raise RpcNotFoundError for a procedure that is not
provisioned, so HybridSearchEngine can route to its local fallback
without knowing which backend it talks to.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections import Counter
from typing import Any

import numpy as np

from climate_rag.config.settings import RetrievalConfig
from climate_rag.core.errors import (
    EmbeddingDimensionError,
    LookupUnavailableError,
    RpcNotFoundError,
)
from climate_rag.core.protocols import EmbeddingProvider, MatchResult
from climate_rag.retrieval.document import Document
from climate_rag.retrieval.scoring import cosine_similarity

logger = logging.getLogger(__name__)

# Optional: Only import psycopg if available (for local dev without postgres)
try:
    import psycopg
    from pgvector.psycopg import register_vector
    from psycopg.rows import dict_row

    PGVECTOR_AVAILABLE = True
except ImportError:
    PGVECTOR_AVAILABLE = False

# pgvector: "different vector dimensions 1536 and 3"
DIMENSION_MISMATCH = "different vector dimensions"
_DIMENSIONS = re.compile(r"(\d+) and (\d+)")


def parse_embedding(raw: Any) -> np.ndarray | None:
    """
    Parse a stored embedding (JSON text, list or vector).

    Returns None for missing or corrupt values so the row can be skipped.
    """
    if raw is None:
        return None
    try:
        if isinstance(raw, str):
            raw = json.loads(raw)
        vector = np.asarray(raw, dtype=np.float64)
    except (ValueError, TypeError):
        return None
    if vector.ndim != 1 or vector.size == 0:
        return None
    return vector


def _dimension_error(message: str, query_dimensions: int) -> EmbeddingDimensionError:
    """Build an EmbeddingDimensionError from a pgvector error message."""
    match = _DIMENSIONS.search(message)
    if not match:
        return EmbeddingDimensionError(query_dimensions, 0)
    sizes = [int(match.group(1)), int(match.group(2))]
    stored = next((s for s in sizes if s != query_dimensions), sizes[0])
    return EmbeddingDimensionError(query_dimensions, stored)


# ---------------------------------------------------------------------------
# PGVECTOR LOOKUP (Production)
# ---------------------------------------------------------------------------


class PgVectorLookup:
    """
    Corpus lookups backed by Postgres + pgvector.

    The ranking logic lives in HybridSearchEngine; this class only calls
    the provisioned SQL functions and maps rows to Documents.
    """

    def __init__(self, config: RetrievalConfig, conn: Any = None):
        """
        Args:
            config: Retrieval configuration (connection, function names)
            conn: Existing psycopg connection (injected in tests)
        """
        self.config = config
        self._conn = conn

    def connect(self) -> None:
        """Establish database connection."""
        if not PGVECTOR_AVAILABLE:
            raise ImportError(
                "pgvector not available. Install with: pip install pgvector psycopg[binary]"
            )

        try:
            self._conn = psycopg.connect(
                self.config.database_url, autocommit=True, row_factory=dict_row
            )
            register_vector(self._conn)
        except psycopg.Error as e:
            raise LookupUnavailableError(f"Could not connect to corpus database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _execute(
        self,
        function_name: str,
        sql: str,
        params: tuple,
        query_dimensions: int | None = None,
    ) -> list[dict]:
        if not self._conn:
            self.connect()
        try:
            return list(self._conn.execute(sql, params).fetchall())
        except psycopg.errors.UndefinedFunction as e:
            raise RpcNotFoundError(function_name) from e
        except psycopg.errors.DataException as e:
            if query_dimensions is not None and DIMENSION_MISMATCH in str(e):
                raise _dimension_error(str(e), query_dimensions) from e
            raise LookupUnavailableError(f"{function_name} failed: {e}") from e
        except psycopg.Error as e:
            raise LookupUnavailableError(f"{function_name} failed: {e}") from e

    def match(
        self,
        query_embedding: np.ndarray,
        vector_threshold: float,
        match_count: int,
    ) -> list[MatchResult]:
        name = self.config.match_function
        rows = self._execute(
            name,
            f"SELECT * FROM {name}(%s, %s, %s)",
            (np.asarray(query_embedding, dtype=np.float32), vector_threshold, match_count),
            query_dimensions=len(query_embedding),
        )
        return [
            MatchResult(document=Document.from_row(row), similarity=float(row["similarity"]))
            for row in rows
        ]

    def search_keyword(self, query_text: str, match_count: int) -> list[MatchResult]:
        name = self.config.keyword_function
        rows = self._execute(
            name,
            f"SELECT * FROM {name}(%s, %s)",
            (query_text, match_count),
        )
        return [
            MatchResult(
                document=Document.from_row(row),
                similarity=float(row.get("similarity") or 0.0),
            )
            for row in rows
        ]

    def fetch_documents(self, limit: int) -> list[Document]:
        """Read raw rows; corrupt `embeddings` JSON leaves embedding None."""
        table = self.config.documents_table
        rows = self._execute(table, f"SELECT * FROM {table} LIMIT %s", (limit,))

        documents = []
        for row in rows:
            doc = Document.from_row(row)
            doc.embedding = parse_embedding(row.get("embeddings", row.get("embedding")))
            if doc.embedding is None:
                logger.debug(f"Skipping stored embedding for {doc.id}: missing or corrupt")
            documents.append(doc)
        return documents


# ---------------------------------------------------------------------------
# IN-MEMORY LOOKUP (Testing/Development)
# ---------------------------------------------------------------------------

_TERM = re.compile(r"\w+")


class InMemoryVectorLookup:
    """
    In-memory corpus for development/testing.

    Implements the same interface as PgVectorLookup but doesn't require
    Postgres. Names in `missing_functions` ("match", "search_keyword")
    raise RpcNotFoundError to simulate an unprovisioned database.
    """

    def __init__(
        self,
        embeddings: EmbeddingProvider | None = None,
        documents: list[Document] | None = None,
        missing_functions: set[str] | None = None,
    ):
        self._embeddings = embeddings
        self._documents: dict[str, Document] = {}
        self.missing_functions = set(missing_functions or ())
        if documents:
            self.insert_documents_batch(documents)

    def __len__(self) -> int:
        return len(self._documents)

    def insert_document(self, doc: Document) -> None:
        """Insert document into memory."""
        self.insert_documents_batch([doc])

    def insert_documents_batch(self, docs: list[Document]) -> None:
        """Batch insert, embedding documents that arrive without a vector."""
        to_embed = [doc for doc in docs if doc.embedding is None]

        if to_embed and self._embeddings is not None:
            vectors = self._embeddings.embed_batch([f"{d.title}\n{d.content}" for d in to_embed])
            for doc, vector in zip(to_embed, vectors):
                doc.embedding = vector

        for doc in docs:
            self._documents[doc.id] = doc

    def _check_available(self, function_name: str) -> None:
        if function_name in self.missing_functions:
            raise RpcNotFoundError(function_name)

    def match(
        self,
        query_embedding: np.ndarray,
        vector_threshold: float,
        match_count: int,
    ) -> list[MatchResult]:
        """Cosine similarity over every stored vector."""
        self._check_available("match")

        results = []
        for doc in self._documents.values():
            if doc.embedding is None:
                continue
            similarity = cosine_similarity(query_embedding, doc.embedding)
            if similarity >= vector_threshold:
                results.append(MatchResult(document=doc, similarity=similarity))

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:match_count]

    def search_keyword(self, query_text: str, match_count: int) -> list[MatchResult]:
        """Length-normalized term frequency, roughly the scale of ts_rank."""
        self._check_available("search_keyword")

        terms = {t.lower() for t in _TERM.findall(query_text)}
        if not terms:
            return []

        results = []
        for doc in self._documents.values():
            tokens = [t.lower() for t in _TERM.findall(f"{doc.title} {doc.content}")]
            if not tokens:
                continue
            counts = Counter(tokens)
            hits = sum(counts[t] for t in terms)
            if hits:
                rank = hits / (len(tokens) * math.log(len(tokens) + 1, 2))
                results.append(MatchResult(document=doc, similarity=rank))

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:match_count]

    def fetch_documents(self, limit: int) -> list[Document]:
        self._check_available("fetch_documents")
        return list(self._documents.values())[:limit]


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_vector_lookup(
    config: RetrievalConfig | None = None,
    embeddings: EmbeddingProvider | None = None,
) -> PgVectorLookup | InMemoryVectorLookup:
    """
    Factory function to get the appropriate corpus lookup.

    Args:
        config: Retrieval configuration (from env if not provided)
        embeddings: Used to embed the in-memory seed corpus

    Returns:
        VectorLookup implementation. The in-memory lookup is seeded with
        the development corpus.
    """
    if config is None:
        from climate_rag.config.settings import get_settings

        config = get_settings().retrieval

    if config.use_postgres:
        if PGVECTOR_AVAILABLE:
            return PgVectorLookup(config)
        logger.warning("USE_POSTGRES is set but psycopg/pgvector are not installed")

    from climate_rag.retrieval.seeds import seed_lookup

    lookup = InMemoryVectorLookup(embeddings)
    seed_lookup(lookup)
    return lookup
