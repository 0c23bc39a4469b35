"""
Seed data for development and tests.

Separating data from infrastructure keeps the in-memory lookup usable
without a database and gives tests a controlled corpus.
"""

from climate_rag.retrieval.seeds.research_corpus import (
    get_generic_pages,
    get_research_documents,
    get_seed_documents,
    seed_lookup,
)

__all__ = [
    "get_generic_pages",
    "get_research_documents",
    "get_seed_documents",
    "seed_lookup",
]
