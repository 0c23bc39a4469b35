"""
Observability Module - Phoenix + OpenTelemetry Integration

LLM-native tracing for retrieval and chat turns using Arize Phoenix with
OpenInference auto-instrumentation.

USAGE:
------
# At application startup:
from climate_rag.observability import init_phoenix

init_phoenix()  # Starts local Phoenix UI if PHOENIX_ENABLED=true

# In code that needs tracing:
from climate_rag.observability import get_tracer

tracer = get_tracer()
with tracer.start_span("hybrid_search", attributes={"retrieval.limit": 5}) as span:
    ...
    span.set_attribute("retrieval.result_count", 3)
"""

from __future__ import annotations

import logging

from climate_rag.observability.attributes import (
    GEN_AI_REQUEST_MODEL,
    GEN_AI_SYSTEM,
    QUERY_IS_KTH_SPECIFIC,
    QUERY_IS_LIST_NAMES,
    QUERY_IS_SMALL_TALK,
    QUERY_SEARCH_TEXT,
    QUERY_WAS_REWRITTEN,
    RETRIEVAL_CANDIDATE_COUNT,
    RETRIEVAL_KEYWORDS,
    RETRIEVAL_LIMIT,
    RETRIEVAL_PATH,
    RETRIEVAL_RESULT_COUNT,
    RETRIEVAL_THRESHOLD,
    RETRIEVAL_TOP_SCORE,
    RETRIEVAL_VECTOR_THRESHOLD,
    RETRIEVAL_WEB_SOURCE_COUNT,
    genai_attributes,
    query_attributes,
    search_attributes,
)
from climate_rag.observability.config import (
    PhoenixConfig,
    get_config,
    reset_config,
)
from climate_rag.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    SpanProtocol,
    TracerProtocol,
    get_tracer,
    reset_tracer,
)

logger = logging.getLogger(__name__)

_phoenix_initialized = False


def init_phoenix(config: PhoenixConfig | None = None) -> bool:
    """
    Initialize Phoenix observability.

    Sets up the OpenTelemetry tracer provider and registers the
    auto-instrumentors. Call once at application startup.

    Returns:
        True if Phoenix was initialized, False if disabled or failed
    """
    global _phoenix_initialized
    if _phoenix_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Phoenix observability disabled")
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        if config.collector_endpoint:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

            exporter = OTLPSpanExporter(endpoint=config.collector_endpoint)
            logger.info(f"Phoenix connecting to remote: {config.collector_endpoint}")
        else:
            import phoenix as px
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

            session = px.launch_app()
            exporter = OTLPSpanExporter(endpoint=f"{session.url.rstrip('/')}/v1/traces")
            logger.info(f"Phoenix UI available at: {session.url}")

        provider = TracerProvider(
            resource=Resource.create({"openinference.project.name": config.project_name})
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)

        from climate_rag.observability.instrumentation import register_instrumentors

        register_instrumentors()

        _phoenix_initialized = True
        return True

    except ImportError as e:
        logger.warning(f"Phoenix not installed, observability disabled: {e}")
        return False
    except Exception as e:
        logger.error(f"Failed to initialize Phoenix: {e}")
        return False


def shutdown_phoenix() -> None:
    """Flush spans and reset the observability singletons."""
    global _phoenix_initialized

    if not _phoenix_initialized:
        return

    try:
        from opentelemetry import trace

        provider = trace.get_tracer_provider()
        if hasattr(provider, "shutdown"):
            provider.shutdown()
    except Exception as e:
        logger.warning(f"Error shutting down Phoenix: {e}")

    reset_tracer()
    reset_config()
    _phoenix_initialized = False


__all__ = [
    "init_phoenix",
    "shutdown_phoenix",
    "PhoenixConfig",
    "get_config",
    "reset_config",
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    "GEN_AI_SYSTEM",
    "GEN_AI_REQUEST_MODEL",
    "RETRIEVAL_THRESHOLD",
    "RETRIEVAL_VECTOR_THRESHOLD",
    "RETRIEVAL_LIMIT",
    "RETRIEVAL_KEYWORDS",
    "RETRIEVAL_CANDIDATE_COUNT",
    "RETRIEVAL_RESULT_COUNT",
    "RETRIEVAL_PATH",
    "RETRIEVAL_TOP_SCORE",
    "RETRIEVAL_WEB_SOURCE_COUNT",
    "QUERY_IS_SMALL_TALK",
    "QUERY_IS_KTH_SPECIFIC",
    "QUERY_WAS_REWRITTEN",
    "QUERY_IS_LIST_NAMES",
    "QUERY_SEARCH_TEXT",
    "genai_attributes",
    "search_attributes",
    "query_attributes",
]
