"""
Observability Module - OpenTelemetry tracing

Wraps store operations and RAG pipeline steps in spans, exported over
OTLP/HTTP when enabled.

USAGE:
------
# At application startup:
from mini_rag.observability import init_tracing

init_tracing()  # No-op unless TRACING_ENABLED=true

# In code that needs tracing:
from mini_rag.observability import get_tracer

tracer = get_tracer()
with tracer.start_span("my_operation", attributes={"key": "value"}) as span:
    # ... do work ...
    span.set_attribute("result", "success")
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from mini_rag.observability.config import (
    TracingConfig,
    get_config,
    reset_config,
)
from mini_rag.observability.tracer import (
    TracerProtocol,
    SpanProtocol,
    NoOpTracer,
    NoOpSpan,
    get_tracer,
    reset_tracer,
)
from mini_rag.observability.attributes import (
    DB_SYSTEM,
    DB_COLLECTION_NAME,
    DB_OPERATION,
    ERROR_TYPE,
    HTTP_RESPONSE_STATUS_CODE,
    STORE_FALLBACK_USED,
    STORE_REMOVED,
    RAG_STEP,
    RAG_RETRIEVED_DOC_COUNT,
    store_operation_attributes,
    rag_step_attributes,
)

logger = logging.getLogger(__name__)

_tracing_initialized = False


def init_tracing(config: TracingConfig | None = None) -> bool:
    """
    Initialize OpenTelemetry tracing.

    This should be called once at application startup.

    Args:
        config: Optional config (uses env vars if not provided)

    Returns:
        True if tracing was initialized, False if disabled
    """
    global _tracing_initialized
    if _tracing_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Tracing disabled")
        return False

    if config.collector_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.collector_endpoint)
        logger.info("Exporting spans to %s", config.collector_endpoint)
    else:
        exporter = OTLPSpanExporter()
        logger.info("Exporting spans to the default OTLP endpoint")

    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: config.service_name}),
        sampler=ParentBased(TraceIdRatioBased(config.sample_ratio)),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    reset_tracer()
    _tracing_initialized = True
    return True


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider."""
    global _tracing_initialized

    if not _tracing_initialized:
        return

    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()

    reset_tracer()
    reset_config()
    _tracing_initialized = False


__all__ = [
    # Initialization
    "init_tracing",
    "shutdown_tracing",
    # Config
    "TracingConfig",
    "get_config",
    "reset_config",
    # Tracer
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    # Attributes
    "DB_SYSTEM",
    "DB_COLLECTION_NAME",
    "DB_OPERATION",
    "ERROR_TYPE",
    "HTTP_RESPONSE_STATUS_CODE",
    "STORE_FALLBACK_USED",
    "STORE_REMOVED",
    "RAG_STEP",
    "RAG_RETRIEVED_DOC_COUNT",
    "store_operation_attributes",
    "rag_step_attributes",
]
