"""
Semantic Conventions for Span Attributes

Defines attribute keys following OpenTelemetry database conventions
plus a custom namespace for the RAG pipeline.

Reference: https://opentelemetry.io/docs/specs/semconv/database/
"""

# ---------------------------------------------------------------------------
# DB NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

DB_SYSTEM = "db.system"  # "weaviate", "in_memory"
DB_COLLECTION_NAME = "db.collection.name"  # "DocumentChunk"
DB_OPERATION = "db.operation"  # "count", "clear_all", ...

# Set when a library error escapes a span
ERROR_TYPE = "error.type"  # "TransportError", "QueryError", ...
HTTP_RESPONSE_STATUS_CODE = "http.response.status_code"


# ---------------------------------------------------------------------------
# STORE NAMESPACE (custom)
# ---------------------------------------------------------------------------

STORE_FALLBACK_USED = "store.fallback_used"  # bool, REST path taken
STORE_COUNT_BEFORE = "store.count_before"
STORE_COUNT_AFTER = "store.count_after"
STORE_REMOVED = "store.removed"
STORE_SOURCE_PREFIX = "store.source_prefix"
STORE_TOP_K = "store.top_k"
STORE_RESULT_COUNT = "store.result_count"


# ---------------------------------------------------------------------------
# RAG NAMESPACE (custom)
# ---------------------------------------------------------------------------

RAG_STEP = "rag.step"  # "ask", "seed", "initialize", ...
RAG_QUESTION = "rag.question"  # only when capture_content is on
RAG_ANSWER = "rag.answer"  # only when capture_content is on
RAG_RETRIEVED_DOC_COUNT = "rag.retrieved_doc_count"
RAG_RETRIEVED_DOC_IDS = "rag.retrieved_doc_ids"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def store_operation_attributes(
    system: str,
    collection: str,
    operation: str,
    prefix: str | None = None,
) -> dict:
    """Create attributes dict for a store operation span."""
    attrs = {
        DB_SYSTEM: system,
        DB_COLLECTION_NAME: collection,
        DB_OPERATION: operation,
    }
    if prefix is not None:
        attrs[STORE_SOURCE_PREFIX] = prefix
    return attrs


def rag_step_attributes(step: str, model: str | None = None) -> dict:
    """Create attributes dict for a pipeline step span."""
    attrs = {RAG_STEP: step}
    if model:
        attrs[GEN_AI_REQUEST_MODEL] = model
    return attrs
