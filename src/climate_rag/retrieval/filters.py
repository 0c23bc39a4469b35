"""
Post-scoring filters for the ranking pipeline.

The corpus mixes research documents with scraped institutional navigation
pages. These filters drop candidates that are lexically unrelated,
duplicated, or landing pages with no research content.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from climate_rag.config.vocabulary import Vocabulary, get_vocabulary
from climate_rag.retrieval.document import ScoredDocument

logger = logging.getLogger(__name__)

MAX_SHORT_TITLE_WORDS = 2


def is_content_relevant(scored: ScoredDocument, keywords: Iterable[str]) -> bool:
    """At least one keyword appears in title or content (case-insensitive)."""
    keywords = [k.lower() for k in keywords]
    if not keywords:
        return True
    text = f"{scored.title} {scored.content}".lower()
    return any(k in text for k in keywords)


def filter_content_relevant(
    documents: list[ScoredDocument],
    keywords: Iterable[str],
) -> list[ScoredDocument]:
    keywords = list(keywords)
    return [d for d in documents if is_content_relevant(d, keywords)]


def dedupe_by_title(documents: list[ScoredDocument]) -> list[ScoredDocument]:
    """
    Keep one document per exact title: the highest scored.

    Order of first appearance is preserved, so a list already sorted by
    score stays sorted.
    """
    best: dict[str, ScoredDocument] = {}
    order: list[str] = []
    for doc in documents:
        current = best.get(doc.title)
        if current is None:
            order.append(doc.title)
            best[doc.title] = doc
        elif doc.similarity > current.similarity:
            best[doc.title] = doc
    return [best[title] for title in order]


def _category_patterns(suffix: str) -> tuple[re.Pattern, ...]:
    tail = rf" \|\s*{re.escape(suffix)}$"
    return tuple(
        re.compile(rf"^{prefix} .+{tail}", re.IGNORECASE)
        for prefix in ("school of", "department of", "the school of", "division of")
    )


def is_generic_page(
    title: str,
    content: str | None = None,
    vocabulary: Vocabulary | None = None,
    min_content_chars: int = 0,
) -> bool:
    """
    True for institutional navigation/landing pages.

    Rules, in order:
    1. exact match against the known generic titles
    2. school/department/division index pages ending in the site suffix
    3. any other title ending in the site suffix, unless it carries a
       research indicator and has more than two words before the "|"
    4. content shorter than min_content_chars (when enabled)
    """
    if not title:
        return False

    vocab = vocabulary or get_vocabulary()
    lower_title = title.lower().strip()

    if lower_title in vocab.generic_page_titles:
        return True

    if any(p.search(title) for p in _category_patterns(vocab.site_suffix)):
        return True

    if re.search(rf"\s*\|\s*{re.escape(vocab.site_suffix)}$", title, re.IGNORECASE):
        if not any(ind.lower() in lower_title for ind in vocab.research_indicators):
            return True
        lead = title.split("|")[0].split()
        return len(lead) <= MAX_SHORT_TITLE_WORDS

    if min_content_chars > 0 and content and len(content) < min_content_chars:
        return True

    return False


def filter_generic_pages(
    documents: list[ScoredDocument],
    vocabulary: Vocabulary | None = None,
    min_content_chars: int = 0,
) -> list[ScoredDocument]:
    kept = []
    dropped = []
    for doc in documents:
        if is_generic_page(doc.title, doc.content, vocabulary, min_content_chars):
            dropped.append(doc.title[:40])
        else:
            kept.append(doc)

    if dropped:
        logger.debug(f"Filtered {len(dropped)} generic pages: {', '.join(dropped)}")
    return kept
