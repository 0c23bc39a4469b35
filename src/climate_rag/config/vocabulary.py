"""
Curated term lists used by query understanding and ranking.

These lists are corpus-specific data, not algorithm. They are kept in one
place so they can be reviewed and overridden without touching the ranking
code: Vocabulary.from_json() merges a JSON file over the defaults, and
get_vocabulary() honours CLIMATE_RAG_VOCABULARY.

JSON override format (every key optional, values are lists of strings):

    {
      "stopwords": [...],
      "acronyms": [...],
      "technical_terms": [...],
      "generic_page_titles": [...],
      "research_indicators": [...],
      "kth_keywords": [...],
      "protected_terms": [...]
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path


# ---------------------------------------------------------------------------
# STOPWORDS (grouped by category)
# ---------------------------------------------------------------------------

ARTICLES_AND_PREPOSITIONS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but", "in",
    "with", "to", "for", "of", "as", "by", "from",
})

QUESTION_WORDS = frozenset({
    "what", "how", "why", "when", "where", "who", "whom", "whose",
    "does", "do", "did",
})

AUXILIARY_VERBS = frozenset({
    "has", "have", "had", "can", "could", "would", "should", "will", "are",
    "was", "were", "been", "being", "get", "got",
})

DOMAIN_FILLER = frozenset({
    "research", "doing", "work", "working", "about", "royal", "institute",
    "technology",
})

PRONOUNS = frozenset({
    "their", "them", "they", "this", "that", "these", "those", "its", "it",
    "we", "our", "you", "your", "i", "me", "my",
})

GENERIC_ADJECTIVES = frozenset({
    "new", "recent", "latest", "good", "best", "great", "really", "very",
    "much", "more", "most", "some", "any", "all",
})

CONVERSATIONAL_FILLER = frozenset({
    "everyone", "everybody", "someone", "somebody", "anyone", "anybody",
    "thing", "things", "stuff", "talking", "saying", "think", "thinking",
    "know", "knowing", "tell", "told", "say", "said", "like", "want", "need",
    "going", "gonna", "actually", "basically", "literally", "cool",
    "interesting", "important", "matter", "matters", "deal", "big", "lot",
    "lots",
})

QUESTION_TYPOS = frozenset({
    "waht", "bout", "abot", "whats", "hows", "whys",
})

DEFAULT_STOPWORDS = (
    ARTICLES_AND_PREPOSITIONS
    | QUESTION_WORDS
    | AUXILIARY_VERBS
    | DOMAIN_FILLER
    | PRONOUNS
    | GENERIC_ADJECTIVES
    | CONVERSATIONAL_FILLER
    | QUESTION_TYPOS
)

# Dropped in every casing, including all-caps.
DEFAULT_INSTITUTION_STOPWORDS = frozenset({"kth"})


# ---------------------------------------------------------------------------
# ACRONYMS AND TECHNICAL TERMS
# ---------------------------------------------------------------------------

DEFAULT_ACRONYMS = frozenset({
    "seed", "beccs", "ccs", "ccus", "dac", "itm", "abe", "eecs", "sci", "cbh",
})

DEFAULT_TECHNICAL_TERMS = frozenset({
    "beccs", "ccs", "ccus", "dac", "carbon capture", "carbon dioxide", "co2",
    "hydrogen", "solar", "wind", "nuclear", "biofuel", "bioenergy", "biogas",
    "heat pump", "district heating", "energy storage", "battery",
    "electric vehicle", "emission", "greenhouse", "climate", "sustainable",
    "renewable", "fossil", "photovoltaic", "geothermal", "hydropower",
    "biomass", "sequestration", "negative emission", "net zero",
    "carbon neutral", "decarbonization",
})

# Preserved verbatim by the spelling corrector and the rewriter prompt.
DEFAULT_PROTECTED_TERMS = (
    "BECCS", "CCS", "CCUS", "DAC", "KTH", "Stockholm", "Exergi", "Vinnova",
)


# ---------------------------------------------------------------------------
# GENERIC PAGE FILTER
# ---------------------------------------------------------------------------

DEFAULT_GENERIC_PAGE_TITLES = frozenset({
    "research | kth",
    "forskning | kth",
    "news from kth | kth",
    "studies at kth | kth | sweden",
    "studies at kth | kth",
    "about kth | kth",
    "contact | kth",
    "kth's president and management | kth",
    "business and community | kth",
    "kth innovation | kth",
    "environment and sustainable development at kth | kth",
    "national infrastructures | kth",
    "research centres | kth",
    "research environments | kth",
    "kth's research environments | kth",
    "kth:s strategic research initiatives | kth",
})

DEFAULT_RESEARCH_INDICATORS = (
    "research overview", "project", "study", "assessment", "analysis",
    "beccs", "carbon capture", "energy", "climate", "sustainable",
    "workshop", "award", "initiative",
)

DEFAULT_SITE_SUFFIX = "KTH"


# ---------------------------------------------------------------------------
# QUERY ROUTING
# ---------------------------------------------------------------------------

DEFAULT_KTH_KEYWORDS = (
    "kth",
    "royal institute of technology",
    "at kth",
    "kth research",
    "kth doing",
    "kth working",
    "stockholm university",
)


@dataclass(frozen=True)
class Vocabulary:
    """All curated lists in one immutable bundle."""

    stopwords: frozenset[str] = DEFAULT_STOPWORDS
    institution_stopwords: frozenset[str] = DEFAULT_INSTITUTION_STOPWORDS
    acronyms: frozenset[str] = DEFAULT_ACRONYMS
    technical_terms: frozenset[str] = DEFAULT_TECHNICAL_TERMS
    protected_terms: tuple[str, ...] = DEFAULT_PROTECTED_TERMS
    generic_page_titles: frozenset[str] = DEFAULT_GENERIC_PAGE_TITLES
    research_indicators: tuple[str, ...] = DEFAULT_RESEARCH_INDICATORS
    site_suffix: str = DEFAULT_SITE_SUFFIX
    kth_keywords: tuple[str, ...] = DEFAULT_KTH_KEYWORDS

    @classmethod
    def from_json(cls, path: str | Path) -> "Vocabulary":
        """Load overrides from a JSON file on top of the defaults."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls().merged(data)

    def merged(self, overrides: dict) -> "Vocabulary":
        """Return a copy with the given lists replaced."""
        changes = {}
        for f in fields(self):
            if f.name not in overrides:
                continue
            value = overrides[f.name]
            current = getattr(self, f.name)
            if isinstance(current, str):
                changes[f.name] = str(value)
            elif isinstance(current, frozenset):
                changes[f.name] = frozenset(str(v).lower() for v in value)
            else:
                changes[f.name] = tuple(str(v) for v in value)
        return replace(self, **changes)


# Global vocabulary singleton
_vocabulary: Vocabulary | None = None


def get_vocabulary() -> Vocabulary:
    """Get the global vocabulary (defaults, or CLIMATE_RAG_VOCABULARY overrides)."""
    global _vocabulary
    if _vocabulary is None:
        path = os.environ.get("CLIMATE_RAG_VOCABULARY")
        _vocabulary = Vocabulary.from_json(path) if path else Vocabulary()
    return _vocabulary


def reset_vocabulary() -> None:
    """Reset vocabulary (useful for testing)."""
    global _vocabulary
    _vocabulary = None
