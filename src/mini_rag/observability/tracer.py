"""
Span plumbing for the store client and the RAG pipeline.

get_tracer() hands out one of two tracers with the same context-manager API:

- OTelTracer when TRACING_ENABLED is set. Spans go to whatever
  TracerProvider init_tracing() installed.
- NoOpTracer otherwise. Nothing is recorded.

A library error leaving a span tags it with error.type, and a transport
failure also with the HTTP status, so a failed GraphQL/REST fallback chain
reads straight off the trace view.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from typing import Any, Iterator, Protocol

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from mini_rag.core.errors import MiniRagError, TransportError
from mini_rag.observability.attributes import ERROR_TYPE, HTTP_RESPONSE_STATUS_CODE
from mini_rag.observability.config import get_config

INSTRUMENTATION_SCOPE = "mini_rag"

Attributes = dict[str, Any]


class SpanProtocol(Protocol):
    def set_attribute(self, key: str, value: Any) -> None: ...

    def set_status(self, status: str, description: str | None = None) -> None: ...

    def record_exception(self, exception: BaseException) -> None: ...


class TracerProtocol(Protocol):
    def start_span(
        self, name: str, attributes: Attributes | None = None
    ) -> AbstractContextManager[SpanProtocol]: ...


# ---------------------------------------------------------------------------
# DISABLED
# ---------------------------------------------------------------------------


class NoOpSpan:
    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_status(self, status: str, description: str | None = None) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


_NOOP_SPAN = NoOpSpan()


class NoOpTracer:
    @contextmanager
    def start_span(self, name: str, attributes: Attributes | None = None) -> Iterator[NoOpSpan]:
        yield _NOOP_SPAN


# ---------------------------------------------------------------------------
# OPENTELEMETRY
# ---------------------------------------------------------------------------


def error_attributes(error: MiniRagError) -> Attributes:
    """Attributes describing a library error on the span it escaped from."""
    attributes: Attributes = {ERROR_TYPE: type(error).__name__}
    if isinstance(error, TransportError) and error.status_code is not None:
        attributes[HTTP_RESPONSE_STATUS_CODE] = error.status_code
    return attributes


class OTelSpan:
    __slots__ = ("_span",)

    def __init__(self, span: trace.Span):
        self._span = span

    def set_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, value)

    def set_status(self, status: str, description: str | None = None) -> None:
        # OTel drops descriptions on OK statuses
        if status == "ok":
            self._span.set_status(Status(StatusCode.OK))
        else:
            self._span.set_status(Status(StatusCode.ERROR, description))

    def record_exception(self, exception: BaseException) -> None:
        self._span.record_exception(exception)


class OTelTracer:
    def __init__(self, tracer: trace.Tracer):
        self._tracer = tracer

    @contextmanager
    def start_span(self, name: str, attributes: Attributes | None = None) -> Iterator[OTelSpan]:
        # start_as_current_span records the exception and sets ERROR itself
        with self._tracer.start_as_current_span(name, attributes=attributes) as span:
            try:
                yield OTelSpan(span)
            except MiniRagError as e:
                span.set_attributes(error_attributes(e))
                raise


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


_tracer: TracerProtocol | None = None


def get_tracer() -> TracerProtocol:
    """Process-wide tracer, chosen from TRACING_ENABLED on first use."""
    global _tracer
    if _tracer is None:
        if get_config().enabled:
            _tracer = OTelTracer(trace.get_tracer(INSTRUMENTATION_SCOPE))
        else:
            _tracer = NoOpTracer()
    return _tracer


def reset_tracer() -> None:
    global _tracer
    _tracer = None
