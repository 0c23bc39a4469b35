"""
Document model for the retrieval system.

Single responsibility: Define the structure of corpus rows and of the
per-query scored results built from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class Document:
    """
    A corpus row with its embedding.

    Rows are read-only to this package. The database column `source_url`
    is mapped to `url` by the lookups.
    """
    id: str
    title: str
    content: str
    author: str | None = None
    department: str | None = None
    category: str | None = None
    year: int | None = None
    url: str | None = None
    doi: str | None = None
    publication_date: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding: np.ndarray | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Document":
        """Build a Document from a database/RPC row (dict)."""
        year = row.get("year")
        return cls(
            id=str(row.get("id", "")),
            title=row.get("title") or "",
            content=row.get("content") or "",
            author=row.get("author"),
            department=row.get("department"),
            category=row.get("category"),
            year=int(year) if year is not None else None,
            url=row.get("url") or row.get("source_url"),
            doi=row.get("doi"),
            publication_date=(
                str(row["publication_date"]) if row.get("publication_date") else None
            ),
            metadata=row.get("metadata") or {},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "department": self.department,
            "category": self.category,
            "year": self.year,
            "url": self.url,
            "doi": self.doi,
            "publication_date": self.publication_date,
            "metadata": self.metadata,
        }


@dataclass
class ScoredDocument:
    """
    A Document annotated with its ranking scores for one query.

    similarity is the fused score (0..~1.05 after the recency boost).
    Never persisted.
    """
    document: Document
    vector_score: float
    keyword_score: float
    similarity: float

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def content(self) -> str:
        return self.document.content

    @property
    def url(self) -> str | None:
        return self.document.url

    @property
    def year(self) -> int | None:
        return self.document.year

    def to_citation(self) -> dict:
        """Fields a client needs to render a source."""
        doc = self.document
        return {
            "title": doc.title,
            "url": doc.url,
            "authors": doc.author,
            "department": doc.department,
            "category": doc.category,
            "year": doc.year,
            "similarity": round(self.similarity, 4),
        }

    def to_dict(self) -> dict:
        return {
            **self.document.to_dict(),
            "vector_score": self.vector_score,
            "keyword_score": self.keyword_score,
            "similarity": self.similarity,
        }
