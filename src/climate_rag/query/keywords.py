"""
Keyword extraction for hybrid scoring.

This is a PURE FUNCTION - no I/O, no LLM. It turns free text into the set
of significant terms used by the keyword half of the hybrid score, the
content-relevance filter and the BM25 fallback query.

Rules:
- punctuation becomes whitespace, then split
- acronyms (2-6 uppercase letters, or in the acronym allowlist) are kept
  uppercase and bypass both the stopword list and the length rule
- the institution's own name is dropped in every casing
- everything else is lowercased; stopwords and tokens under 3 chars go
"""

from __future__ import annotations

import re

from climate_rag.config.vocabulary import Vocabulary, get_vocabulary

_PUNCTUATION = re.compile(r"[^\w\s]")
_ACRONYM = re.compile(r"^[A-Z]{2,6}$")

MIN_KEYWORD_LENGTH = 3


def tokenize(text: str) -> list[str]:
    """Split on whitespace after replacing punctuation with spaces."""
    return _PUNCTUATION.sub(" ", text or "").split()


def is_acronym(token: str, vocabulary: Vocabulary | None = None) -> bool:
    """True for all-caps 2-6 letter tokens and allowlisted acronyms (any case)."""
    vocab = vocabulary or get_vocabulary()
    return bool(_ACRONYM.match(token)) or token.lower() in vocab.acronyms


def extract_keywords(text: str, vocabulary: Vocabulary | None = None) -> set[str]:
    """
    Extract significant search terms from text.

    Example:
        >>> sorted(extract_keywords("What is BECCS doing at KTH?"))
        ['BECCS']
    """
    vocab = vocabulary or get_vocabulary()
    keywords: set[str] = set()

    for token in tokenize(text):
        lower = token.lower()
        if lower in vocab.institution_stopwords:
            continue

        if is_acronym(token, vocab):
            keywords.add(token.upper())
        elif len(lower) >= MIN_KEYWORD_LENGTH and lower not in vocab.stopwords:
            keywords.add(lower)

    return keywords


def keywords_to_query(keywords: set[str]) -> str:
    """Join keywords into a stable, space-separated lookup string."""
    return " ".join(sorted(keywords))
