"""
Unit Tests for Observability Module

Tests the OpenTelemetry integration with focus on:
1. Graceful degradation (NoOpTracer when disabled)
2. Configuration loading from environment
3. Span creation and attribute setting on store operations

STAFF ENGINEER PATTERNS:
------------------------
1. Spans are captured with the SDK's in-memory exporter, no collector needed
2. Environment variable handling tested with patch.dict
3. Zero-overhead when disabled
"""

from unittest.mock import patch

import numpy as np
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from mini_rag.core.errors import QueryError, TransportError
from mini_rag.observability.config import (
    TracingConfig,
    get_config,
    reset_config,
)
from mini_rag.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    OTelTracer,
    get_tracer,
    reset_tracer,
)
from mini_rag.observability.attributes import (
    DB_COLLECTION_NAME,
    DB_OPERATION,
    DB_SYSTEM,
    ERROR_TYPE,
    GEN_AI_REQUEST_MODEL,
    HTTP_RESPONSE_STATUS_CODE,
    RAG_STEP,
    STORE_FALLBACK_USED,
    STORE_REMOVED,
    STORE_SOURCE_PREFIX,
    rag_step_attributes,
    store_operation_attributes,
)


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def otel_tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return OTelTracer(provider.get_tracer("mini-rag-test"))


# ---------------------------------------------------------------------------
# CONFIG TESTS
# ---------------------------------------------------------------------------


class TestTracingConfig:
    """Test configuration loading."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_config_defaults(self):
        """Config should have sensible defaults when env vars not set."""
        with patch.dict("os.environ", {}, clear=True):
            config = TracingConfig.from_env()

            assert config.enabled is False
            assert config.service_name == "mini-rag"
            assert config.collector_endpoint is None
            # Customer questions stay out of spans unless explicitly enabled
            assert config.capture_content is False

    @pytest.mark.parametrize("value", ["true", "1", "yes", "TRUE"])
    def test_config_enabled_values(self, value):
        with patch.dict("os.environ", {"TRACING_ENABLED": value}):
            assert TracingConfig.from_env().enabled is True

    @pytest.mark.parametrize("value", ["false", "0", "no", ""])
    def test_config_disabled_values(self, value):
        with patch.dict("os.environ", {"TRACING_ENABLED": value}):
            assert TracingConfig.from_env().enabled is False

    def test_config_endpoint_and_service(self):
        with patch.dict(
            "os.environ",
            {
                "OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4318/v1/traces",
                "TRACING_SERVICE_NAME": "rag-api",
            },
        ):
            config = TracingConfig.from_env()
            assert config.collector_endpoint == "http://collector:4318/v1/traces"
            assert config.service_name == "rag-api"

    def test_get_config_singleton(self):
        assert get_config() is get_config()

    @pytest.mark.parametrize("value, expected", [("0.25", 0.25), ("5", 1.0), ("-1", 0.0), ("", 1.0)])
    def test_sample_ratio_is_clamped(self, value, expected):
        with patch.dict("os.environ", {"TRACING_SAMPLE_RATIO": value}):
            assert TracingConfig.from_env().sample_ratio == expected

    def test_reset_rereads_environment(self):
        with patch.dict("os.environ", {"TRACING_SERVICE_NAME": "first"}):
            assert get_config().service_name == "first"
        with patch.dict("os.environ", {"TRACING_SERVICE_NAME": "second"}):
            assert get_config().service_name == "first"
            reset_config()
            assert get_config().service_name == "second"


# ---------------------------------------------------------------------------
# NOOP TRACER TESTS
# ---------------------------------------------------------------------------


class TestNoOpTracer:
    """Test NoOpTracer for graceful degradation."""

    def test_noop_tracer_creates_spans(self):
        with NoOpTracer().start_span("test_span") as span:
            assert isinstance(span, NoOpSpan)

    def test_noop_span_accepts_everything(self):
        with NoOpTracer().start_span("test_span", attributes={"key": "value"}) as span:
            span.set_attribute("number", 42)
            span.set_status("error", "Something went wrong")
            span.record_exception(ValueError("test error"))


class TestGetTracer:
    """Test the get_tracer factory function."""

    def setup_method(self):
        reset_tracer()
        reset_config()

    def teardown_method(self):
        reset_tracer()
        reset_config()

    def test_disabled_returns_noop(self):
        with patch.dict("os.environ", {"TRACING_ENABLED": "false"}):
            assert isinstance(get_tracer(), NoOpTracer)

    def test_enabled_returns_otel(self):
        with patch.dict("os.environ", {"TRACING_ENABLED": "true"}):
            assert isinstance(get_tracer(), OTelTracer)

    def test_tracer_is_cached(self):
        with patch.dict("os.environ", {"TRACING_ENABLED": "false"}):
            assert get_tracer() is get_tracer()


# ---------------------------------------------------------------------------
# OTEL TRACER
# ---------------------------------------------------------------------------


class TestOTelTracer:
    def test_span_attributes_exported(self, otel_tracer, span_exporter):
        with otel_tracer.start_span("op", attributes={"a": 1}) as span:
            span.set_attribute("b", "two")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "op"
        assert finished.attributes["a"] == 1
        assert finished.attributes["b"] == "two"

    def test_error_status(self, otel_tracer, span_exporter):
        with otel_tracer.start_span("op") as span:
            span.set_status("error", "boom")

        (finished,) = span_exporter.get_finished_spans()
        assert not finished.status.is_ok

    def test_ok_status(self, otel_tracer, span_exporter):
        with otel_tracer.start_span("op") as span:
            span.set_status("ok")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.is_ok

    def test_transport_error_tags_span(self, otel_tracer, span_exporter):
        with pytest.raises(TransportError):
            with otel_tracer.start_span("op"):
                raise TransportError("Schema fetch failed with HTTP 503", status_code=503)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.attributes[ERROR_TYPE] == "TransportError"
        assert finished.attributes[HTTP_RESPONSE_STATUS_CODE] == 503
        assert not finished.status.is_ok
        assert finished.events[0].name == "exception"

    def test_query_error_has_no_status_code(self, otel_tracer, span_exporter):
        with pytest.raises(QueryError):
            with otel_tracer.start_span("op"):
                raise QueryError("bad query")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.attributes[ERROR_TYPE] == "QueryError"
        assert HTTP_RESPONSE_STATUS_CODE not in finished.attributes


# ---------------------------------------------------------------------------
# ATTRIBUTE HELPERS
# ---------------------------------------------------------------------------


class TestAttributeHelpers:
    def test_store_operation_attributes(self):
        attrs = store_operation_attributes("weaviate", "DocumentChunk", "count")
        assert attrs == {DB_SYSTEM: "weaviate", DB_COLLECTION_NAME: "DocumentChunk", DB_OPERATION: "count"}

    def test_store_operation_attributes_with_prefix(self):
        attrs = store_operation_attributes("weaviate", "DocumentChunk", "clear_by_prefix", prefix="test_")
        assert attrs[STORE_SOURCE_PREFIX] == "test_"

    def test_rag_step_attributes(self):
        assert rag_step_attributes("ask") == {RAG_STEP: "ask"}
        assert rag_step_attributes("ask", model="llama3.2")[GEN_AI_REQUEST_MODEL] == "llama3.2"


# ---------------------------------------------------------------------------
# STORE SPANS
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestStoreSpans:
    async def test_fallback_is_recorded(self, store, fake_weaviate, otel_tracer, span_exporter):
        store._tracer = otel_tracer
        fake_weaviate.create()
        fake_weaviate.aggregate_errors = [{"message": "nope"}]

        await store.get_document_count()

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "weaviate.count"
        assert span.attributes[DB_SYSTEM] == "weaviate"
        assert span.attributes[STORE_FALLBACK_USED] is True

    async def test_clear_records_removed(self, store, fake_weaviate, otel_tracer, span_exporter):
        store._tracer = otel_tracer
        fake_weaviate.create()
        fake_weaviate.insert("a", "s", [1.0])

        await store.clear_all_documents()

        clear_span = next(s for s in span_exporter.get_finished_spans() if s.name == "weaviate.clear_all")
        assert clear_span.attributes[STORE_REMOVED] == 1

    async def test_failed_search_records_error_type(self, store, fake_weaviate, otel_tracer, span_exporter):
        store._tracer = otel_tracer
        fake_weaviate.create()
        fake_weaviate.graphql_status = 500

        with pytest.raises(TransportError):
            await store.search_by_similarity(np.array([1.0]), top_k=1)

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "weaviate.search"
        assert span.attributes[ERROR_TYPE] == "TransportError"
        assert span.attributes[HTTP_RESPONSE_STATUS_CODE] == 500
