"""
Document store implementations following the gold standard pattern.

Pattern: Protocol → Production impl → Test double → Factory

This module contains:
1. WeaviateDocumentStore - GraphQL + REST client (production)
2. InMemoryDocumentStore - In-memory store (testing/development)
3. get_document_store() - Factory function

EVENTUAL CONSISTENCY:
---------------------
Weaviate acknowledges a batch delete before the new count is visible.
Deletes therefore MEASURE what they removed: count before, delete, wait a
settling interval, count again, return the difference. The delete
endpoint's own acknowledgement is never trusted for the number. If the
difference is not what you expected, the returned number is still the
authoritative one; no exception is raised for a mismatch.

The settling interval is a single fixed wait (WeaviateConfig.settle_seconds).
It is a heuristic, not a guarantee.

DUAL PATHS:
-----------
Counting tries the GraphQL Aggregate query first and falls back to the REST
objects endpoint on QueryError/TransportError. If both fail, the REST error
is raised, chained from the GraphQL one.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, TypeVar

import numpy as np

from mini_rag.core.errors import (
    CollectionNotFoundError,
    ConstructionError,
    MiniRagError,
    QueryError,
    TransportError,
)
from mini_rag.core.protocols import DocumentStore, RecreateReport
from mini_rag.observability.attributes import (
    STORE_COUNT_AFTER,
    STORE_COUNT_BEFORE,
    STORE_FALLBACK_USED,
    STORE_REMOVED,
    STORE_RESULT_COUNT,
    STORE_TOP_K,
    store_operation_attributes,
)
from mini_rag.observability.tracer import SpanProtocol, get_tracer
from mini_rag.retrieval.config import WeaviateConfig
from mini_rag.retrieval.document import Document
from mini_rag.retrieval.executor import QueryExecutor
from mini_rag.retrieval.models import AggregatePayload, DocumentHit, GetPayload
from mini_rag.retrieval.objects import ObjectsClient
from mini_rag.retrieval.query_builder import (
    FilterOperator,
    Query,
    count_query,
    filtered_count_query,
    full_scan_query,
    prefix_filter,
    search_query,
)
from mini_rag.retrieval.schema import SchemaManager
from mini_rag.retrieval.transport import HttpTransport, HttpxTransport

logger = logging.getLogger(__name__)

R = TypeVar("R")
Sleep = Callable[[float], Awaitable[None]]

MSG_PREVIOUS_CLASS = "Previous existing class with {count} documents"
MSG_CLASS_REMOVED = "Previous class removed"
MSG_CLASS_CREATED = "New class created"
MSG_CHECK_OK = "Check: class successfully recreated"
MSG_CHECK_FAILED = "WARNING: class may not have been created correctly"


def _as_vector(embedding: np.ndarray | list[float], expected_dim: int | None) -> np.ndarray:
    """Flatten an embedding and enforce the collection's dimensionality."""
    vector = np.asarray(embedding, dtype=np.float64).ravel()
    if vector.size == 0:
        raise ConstructionError("Embedding must not be empty")
    if expected_dim is not None and vector.size != expected_dim:
        raise ConstructionError(f"Embedding has {vector.size} dimensions, collection expects {expected_dim}")
    return vector


# ---------------------------------------------------------------------------
# WEAVIATE STORE (Production)
# ---------------------------------------------------------------------------


class WeaviateDocumentStore:
    """
    Orchestration façade over the Weaviate GraphQL and REST endpoints.

    Dependencies are INJECTED, not created internally: pass a transport
    to talk to a fake store, and a sleep function to make settling
    intervals instant in tests.
    """

    system = "weaviate"

    def __init__(
        self,
        config: WeaviateConfig | None = None,
        transport: HttpTransport | None = None,
        sleep: Sleep | None = None,
    ):
        """
        Initialize with injected dependencies.

        Args:
            config: Store configuration (loaded from env if omitted)
            transport: HTTP transport (httpx against config.url if omitted)
            sleep: Awaitable used for settling waits (asyncio.sleep if omitted)
        """
        self.config = config or WeaviateConfig.from_env()
        self._transport = transport or HttpxTransport(
            self.config.url, timeout=self.config.timeout_seconds
        )
        self._schema = SchemaManager(self._transport, self.config)
        self._executor = QueryExecutor(self._transport, self.config.graphql_endpoint)
        self._objects = ObjectsClient(self._transport, self.config)
        self._sleep = sleep or asyncio.sleep
        self._tracer = get_tracer()

    @property
    def class_name(self) -> str:
        return self.config.class_name

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "WeaviateDocumentStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @contextmanager
    def _span(self, operation: str, prefix: str | None = None) -> Iterator[SpanProtocol]:
        attributes = store_operation_attributes(self.system, self.class_name, operation, prefix)
        with self._tracer.start_span(f"weaviate.{operation}", attributes=attributes) as span:
            yield span

    async def _settle(self, seconds: float) -> None:
        logger.debug("Waiting %.2fs for the store to settle", seconds)
        await self._sleep(seconds)

    async def _with_fallback(
        self,
        operation: str,
        primary: Callable[[], Awaitable[R]],
        fallback: Callable[[], Awaitable[R]],
        span: SpanProtocol,
    ) -> R:
        """Try the GraphQL path, then the REST path; surface the last error."""
        try:
            return await primary()
        except (QueryError, TransportError) as primary_error:
            logger.warning(
                "%s via GraphQL failed (%s), falling back to REST", operation, primary_error.message
            )
            span.set_attribute(STORE_FALLBACK_USED, True)
            try:
                return await fallback()
            except (QueryError, TransportError) as fallback_error:
                raise fallback_error from primary_error

    # -----------------------------------------------------------------------
    # SCHEMA
    # -----------------------------------------------------------------------

    async def class_exists(self) -> bool:
        with self._span("class_exists"):
            return await self._schema.exists()

    async def create_class(self) -> None:
        with self._span("create_class"):
            await self._schema.create()

    async def recreate_class(self) -> RecreateReport:
        """
        Drop (if present) and recreate the collection.

        Every step is attempted even when an earlier one failed; failures
        are collected in report.errors. Cancellation leaves the collection
        in whatever state the last completed step produced.
        """
        report = RecreateReport()
        with self._span("recreate_class") as span:
            report.existed_before = await self._schema.exists()

            if report.existed_before:
                try:
                    report.previous_count = await self.get_document_count()
                    report.steps.append(MSG_PREVIOUS_CLASS.format(count=report.previous_count))
                except MiniRagError as e:
                    report.errors.append(f"Could not count documents before delete: {e.message}")

                try:
                    await self._schema.delete()
                    report.steps.append(MSG_CLASS_REMOVED)
                except TransportError as e:
                    report.errors.append(f"Failed to delete class: {e.message}")

                await self._settle(self.config.schema_settle_seconds)

            try:
                await self._schema.create()
                report.steps.append(MSG_CLASS_CREATED)
            except TransportError as e:
                report.errors.append(f"Failed to create class: {e.message}")

            await self._settle(self.config.schema_settle_seconds)

            report.exists_after = await self._schema.exists()
            report.steps.append(MSG_CHECK_OK if report.exists_after else MSG_CHECK_FAILED)

            span.set_attribute(STORE_COUNT_BEFORE, report.previous_count)
            if report.errors:
                logger.warning("Recreate of %s finished with errors: %s", self.class_name, report.errors)
            else:
                logger.info("Recreated class %s: %s", self.class_name, report)
        return report

    # -----------------------------------------------------------------------
    # INGESTION & SEARCH
    # -----------------------------------------------------------------------

    async def add_document(self, text: str, source: str, embedding: np.ndarray) -> str:
        """Persist one chunk. Returns the store-assigned id, or '' if none was echoed."""
        vector = _as_vector(embedding, self.config.embedding_dim)
        with self._span("add_document"):
            body = await self._objects.add({"text": text, "source": source}, vector.tolist())
        doc_id = body.get("id") or ""
        if not doc_id:
            logger.warning("Store did not echo an id for document from %s", source)
        return doc_id

    async def search_by_similarity(self, embedding: np.ndarray, top_k: int = 10) -> list[Document]:
        """
        nearVector search. Errors propagate; there is no fallback for search.

        Every returned Document carries the QUERY embedding.
        """
        if top_k <= 0:
            raise ConstructionError(f"top_k must be positive, got {top_k}")
        limit = top_k
        if limit > self.config.default_limit:
            logger.warning("top_k=%d clamped to %d", top_k, self.config.default_limit)
            limit = self.config.default_limit

        query_embedding = np.asarray(embedding)
        vector = _as_vector(embedding, self.config.embedding_dim)

        with self._span("search") as span:
            span.set_attribute(STORE_TOP_K, limit)
            query = search_query(self.class_name, vector, limit)
            payload: GetPayload = await self._executor.fetch(query, GetPayload)
            documents = [self._to_document(hit, query_embedding) for hit in payload.hits(self.class_name)]
            span.set_attribute(STORE_RESULT_COUNT, len(documents))

        logger.info("Found %d documents", len(documents))
        return documents

    async def list_documents(self, limit: int | None = None) -> list[Document]:
        """Full scan of up to `limit` documents (no vectors, no ranking)."""
        with self._span("list_documents"):
            query = full_scan_query(self.class_name, limit=limit or self.config.full_scan_limit)
            payload: GetPayload = await self._executor.fetch(query, GetPayload)
        return [self._to_document(hit, None) for hit in payload.hits(self.class_name)]

    @staticmethod
    def _to_document(hit: DocumentHit, embedding: np.ndarray | None) -> Document:
        additional = hit.additional
        return Document(
            id=additional.id if additional else "",
            text=hit.text or "",
            source=hit.source or "",
            embedding=embedding,
            distance=additional.distance if additional else None,
            certainty=additional.certainty if additional else None,
        )

    # -----------------------------------------------------------------------
    # COUNTING
    # -----------------------------------------------------------------------

    async def _graphql_count(self, query: Query) -> int:
        payload: AggregatePayload = await self._executor.fetch(query, AggregatePayload)
        count = payload.count(self.class_name)
        if count is None:
            raise QueryError(f"Aggregate response carried no count for {self.class_name}")
        return count

    async def get_document_count(self) -> int:
        """Aggregate count, falling back to the REST objects listing."""

        async def rest_count() -> int:
            response = await self._objects.list_objects(limit=self.config.full_scan_limit)
            return response.count

        with self._span("count") as span:
            return await self._with_fallback(
                "count",
                lambda: self._graphql_count(count_query(self.class_name)),
                rest_count,
                span,
            )

    async def count_documents_by_prefix(self, prefix: str) -> int:
        """Count documents whose source starts with the literal prefix."""
        where = prefix_filter(prefix)

        async def rest_count() -> int:
            response = await self._objects.list_objects(where=where, limit=self.config.default_limit)
            return response.count

        with self._span("count_by_prefix", prefix=prefix) as span:
            query = filtered_count_query(self.class_name, "source", FilterOperator.LIKE, where.value)
            return await self._with_fallback(
                "count_by_prefix",
                lambda: self._graphql_count(query),
                rest_count,
                span,
            )

    # -----------------------------------------------------------------------
    # DELETION
    # -----------------------------------------------------------------------

    async def _batch_delete_succeeded(self, where=None) -> bool:
        try:
            response = await self._objects.batch_delete(where)
        except TransportError as e:
            logger.error("Batch delete on %s did not reach the store: %s", self.class_name, e.message)
            return False
        if not response.ok:
            logger.error("Batch delete on %s failed with HTTP %d", self.class_name, response.status_code)
        return response.ok

    async def clear_all_documents(self) -> int:
        """
        Delete every document and return how many went away.

        Empty collection: returns 0 without issuing a delete.
        Delete accepted: settle, re-count, return before - after.
        Delete failed: drop and recreate the collection, return before.
        """
        with self._span("clear_all") as span:
            before = await self.get_document_count()
            span.set_attribute(STORE_COUNT_BEFORE, before)
            if before == 0:
                return 0

            if await self._batch_delete_succeeded():
                await self._settle(self.config.settle_seconds)
                after = await self.get_document_count()
                removed = before - after
                span.set_attribute(STORE_COUNT_AFTER, after)
                span.set_attribute(STORE_REMOVED, removed)
                if after != 0:
                    logger.warning(
                        "%d documents still visible in %s after clear", after, self.class_name
                    )
                return removed

            logger.warning("Falling back to recreating class %s", self.class_name)
            report = await self.recreate_class()
            if report.errors:
                logger.error("Recreate after failed delete reported errors: %s", report.errors)
            span.set_attribute(STORE_REMOVED, before)
            return before

    async def clear_documents_by_prefix(self, prefix: str) -> int:
        """
        Delete documents whose source starts with prefix.

        Same mutate/settle/re-measure protocol as clear_all_documents, but a
        failed delete simply returns 0: a scoped clear never drops the class.
        """
        with self._span("clear_by_prefix", prefix=prefix) as span:
            before = await self.count_documents_by_prefix(prefix)
            span.set_attribute(STORE_COUNT_BEFORE, before)
            if before == 0:
                return 0

            if not await self._batch_delete_succeeded(prefix_filter(prefix)):
                return 0

            await self._settle(self.config.settle_seconds)
            after = await self.count_documents_by_prefix(prefix)
            span.set_attribute(STORE_COUNT_AFTER, after)
            span.set_attribute(STORE_REMOVED, before - after)
            return before - after


# ---------------------------------------------------------------------------
# IN-MEMORY STORE (Testing/Development)
# ---------------------------------------------------------------------------


class InMemoryDocumentStore:
    """
    In-memory document store for development/testing.

    Implements the same protocol as WeaviateDocumentStore but needs no
    server. Uses cosine similarity for searching and is immediately
    consistent, so clears report exactly what they removed.

    Without a configured embedding_dim, the first inserted vector pins the
    dimensionality until the class is recreated.
    """

    system = "in_memory"

    def __init__(self, class_name: str = "DocumentChunk", embedding_dim: int | None = None):
        self.class_name = class_name
        self._configured_dim = embedding_dim
        self._embedding_dim = embedding_dim
        self._exists = False
        self._documents: dict[str, Document] = {}

    def _require_class(self) -> None:
        if not self._exists:
            raise CollectionNotFoundError(self.class_name)

    def _cosine_similarity(self, a: np.ndarray, b: np.ndarray) -> float:
        """Calculate cosine similarity between two vectors."""
        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm == 0:
            return 0.0
        return float(np.dot(a, b) / norm)

    async def class_exists(self) -> bool:
        return self._exists

    async def create_class(self) -> None:
        self._exists = True

    async def recreate_class(self) -> RecreateReport:
        report = RecreateReport(existed_before=self._exists)
        if self._exists:
            report.previous_count = len(self._documents)
            report.steps.append(MSG_PREVIOUS_CLASS.format(count=report.previous_count))
            self._documents.clear()
            report.steps.append(MSG_CLASS_REMOVED)
        self._embedding_dim = self._configured_dim
        self._exists = True
        report.steps.append(MSG_CLASS_CREATED)
        report.exists_after = True
        report.steps.append(MSG_CHECK_OK)
        return report

    async def add_document(self, text: str, source: str, embedding: np.ndarray) -> str:
        self._require_class()
        vector = _as_vector(embedding, self._embedding_dim)
        if self._embedding_dim is None:
            self._embedding_dim = vector.size
        doc_id = str(uuid.uuid4())
        self._documents[doc_id] = Document(id=doc_id, text=text, source=source, embedding=vector)
        return doc_id

    async def search_by_similarity(self, embedding: np.ndarray, top_k: int = 10) -> list[Document]:
        if top_k <= 0:
            raise ConstructionError(f"top_k must be positive, got {top_k}")
        self._require_class()
        query_embedding = np.asarray(embedding)
        query = _as_vector(embedding, self._embedding_dim)

        scored = [
            (doc, self._cosine_similarity(query, doc.embedding))
            for doc in self._documents.values()
        ]
        scored.sort(key=lambda x: x[1], reverse=True)

        return [
            Document(
                id=doc.id,
                text=doc.text,
                source=doc.source,
                embedding=query_embedding,
                distance=1.0 - score,
                certainty=(1.0 + score) / 2.0,
            )
            for doc, score in scored[:top_k]
        ]

    async def get_document_count(self) -> int:
        return len(self._documents)

    async def count_documents_by_prefix(self, prefix: str) -> int:
        return sum(1 for doc in self._documents.values() if doc.source.startswith(prefix))

    async def clear_all_documents(self) -> int:
        removed = len(self._documents)
        self._documents.clear()
        return removed

    async def clear_documents_by_prefix(self, prefix: str) -> int:
        doomed = [key for key, doc in self._documents.items() if doc.source.startswith(prefix)]
        for key in doomed:
            del self._documents[key]
        return len(doomed)

    async def list_documents(self, limit: int | None = None) -> list[Document]:
        docs = list(self._documents.values())
        return docs[:limit] if limit else docs


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_document_store(
    use_weaviate: bool | None = None,
    config: WeaviateConfig | None = None,
    transport: HttpTransport | None = None,
) -> DocumentStore:
    """
    Factory function to get the appropriate document store.

    Args:
        use_weaviate: Use the Weaviate store (default: true unless
            USE_IN_MEMORY_STORE=true)
        config: Store configuration (loaded from env if not provided)
        transport: Optional HTTP transport for the Weaviate store

    Returns:
        DocumentStore implementation
    """
    if use_weaviate is None:
        use_weaviate = os.environ.get("USE_IN_MEMORY_STORE", "false").lower() not in ("true", "1", "yes")

    config = config or WeaviateConfig.from_env()

    if use_weaviate:
        return WeaviateDocumentStore(config, transport=transport)
    return InMemoryDocumentStore(class_name=config.class_name, embedding_dim=config.embedding_dim)
