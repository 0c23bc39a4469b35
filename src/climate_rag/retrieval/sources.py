"""
Display-source selection.

Retrieval uses a looser cutoff for LLM context than for the sources shown
to the user. If the strict cutoff would leave nothing to show while weak
but real matches exist, the top few at a looser cutoff are shown instead.
"""

from __future__ import annotations

from typing import Sequence

from climate_rag.retrieval.document import ScoredDocument


def select_display_sources(
    documents: Sequence[ScoredDocument],
    display_threshold: float = 0.55,
    max_sources: int = 5,
    fallback_threshold: float = 0.45,
    fallback_count: int = 3,
) -> list[ScoredDocument]:
    """Pick the documents to cite, in the order given."""
    strict = [d for d in documents if d.similarity >= display_threshold][:max_sources]
    if strict or not documents:
        return strict
    return [d for d in documents if d.similarity >= fallback_threshold][:fallback_count]
