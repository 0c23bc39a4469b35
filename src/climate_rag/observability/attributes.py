"""
Semantic Conventions for Span Attributes

Attribute keys following OpenTelemetry GenAI conventions plus custom
namespaces for retrieval and query understanding.

Reference: https://opentelemetry.io/docs/specs/semconv/gen-ai/
"""

# ---------------------------------------------------------------------------
# GENAI NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

GEN_AI_SYSTEM = "gen_ai.system"  # "openai", "perplexity"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"  # "gpt-4o-mini"


# ---------------------------------------------------------------------------
# RETRIEVAL NAMESPACE (custom)
# ---------------------------------------------------------------------------

RETRIEVAL_THRESHOLD = "retrieval.threshold"  # caller's final threshold
RETRIEVAL_VECTOR_THRESHOLD = "retrieval.vector_threshold"  # loosened lookup threshold
RETRIEVAL_LIMIT = "retrieval.limit"
RETRIEVAL_KEYWORDS = "retrieval.keywords"
RETRIEVAL_CANDIDATE_COUNT = "retrieval.candidate_count"
RETRIEVAL_RESULT_COUNT = "retrieval.result_count"
RETRIEVAL_PATH = "retrieval.path"  # "rpc", "client_scan", "bm25", "none"
RETRIEVAL_TOP_SCORE = "retrieval.top_score"
RETRIEVAL_WEB_SOURCE_COUNT = "retrieval.web_source_count"


# ---------------------------------------------------------------------------
# QUERY NAMESPACE (custom)
# ---------------------------------------------------------------------------

QUERY_IS_SMALL_TALK = "query.is_small_talk"
QUERY_IS_KTH_SPECIFIC = "query.is_kth_specific"
QUERY_WAS_REWRITTEN = "query.was_rewritten"
QUERY_IS_LIST_NAMES = "query.is_list_names"
QUERY_SEARCH_TEXT = "query.search_text"  # only with PHOENIX_CAPTURE_LLM_CONTENT


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def genai_attributes(system: str, model: str | None) -> dict:
    """Create attributes dict for a model call span."""
    attrs = {GEN_AI_SYSTEM: system}
    if model:
        attrs[GEN_AI_REQUEST_MODEL] = model
    return attrs


def search_attributes(
    threshold: float,
    vector_threshold: float,
    limit: int,
    keyword_count: int,
) -> dict:
    """Create attributes dict for a search span."""
    return {
        RETRIEVAL_THRESHOLD: threshold,
        RETRIEVAL_VECTOR_THRESHOLD: vector_threshold,
        RETRIEVAL_LIMIT: limit,
        RETRIEVAL_KEYWORDS: keyword_count,
    }


def query_attributes(
    is_small_talk: bool,
    is_kth_specific: bool,
    was_rewritten: bool,
    is_list_names: bool,
    search_text: str | None = None,
) -> dict:
    """Create attributes dict for a query-understanding span."""
    attrs = {
        QUERY_IS_SMALL_TALK: is_small_talk,
        QUERY_IS_KTH_SPECIFIC: is_kth_specific,
        QUERY_WAS_REWRITTEN: was_rewritten,
        QUERY_IS_LIST_NAMES: is_list_names,
    }
    if search_text is not None:
        attrs[QUERY_SEARCH_TEXT] = search_text
    return attrs
