"""
Query understanding: keyword extraction, small-talk classification,
spelling correction, vague-query rewriting and routing heuristics.
"""

from climate_rag.query.keywords import (
    MIN_KEYWORD_LENGTH,
    extract_keywords,
    is_acronym,
    keywords_to_query,
    tokenize,
)
from climate_rag.query.normalizer import NormalizedQuery, QueryNormalizer
from climate_rag.query.prompts import KEEP_ORIGINAL
from climate_rag.query.rewriter import (
    LIST_NAMES_PATTERN,
    QueryRewriter,
    RewriteResult,
    extract_topic_terms,
    sanitize_rewrite,
)
from climate_rag.query.routing import (
    extract_hard_keywords,
    is_kth_specific_query,
    should_use_web_search,
)
from climate_rag.query.small_talk import (
    LLMSmallTalkClassifier,
    RuleBasedSmallTalkClassifier,
    is_small_talk,
)
from climate_rag.query.spelling import LLMSpellCorrector, NoOpCorrector

__all__ = [
    "MIN_KEYWORD_LENGTH",
    "extract_keywords",
    "is_acronym",
    "keywords_to_query",
    "tokenize",
    "NormalizedQuery",
    "QueryNormalizer",
    "KEEP_ORIGINAL",
    "LIST_NAMES_PATTERN",
    "QueryRewriter",
    "RewriteResult",
    "extract_topic_terms",
    "sanitize_rewrite",
    "extract_hard_keywords",
    "is_kth_specific_query",
    "should_use_web_search",
    "LLMSmallTalkClassifier",
    "RuleBasedSmallTalkClassifier",
    "is_small_talk",
    "LLMSpellCorrector",
    "NoOpCorrector",
]
