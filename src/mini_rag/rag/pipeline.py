"""
RAG Pipeline - the application façade over store, embeddings and LLM.

ask() is the full pipeline:
    question → embedding → similarity search → grounded answer

Everything else is maintenance: health, seeding demo data, scoped and full
clears, schema recreation, stats, model download and first-run
initialization.

INTERVIEW TALKING POINT:
------------------------
"The pipeline only knows three protocols: DocumentStore, EmbeddingProvider
and AnswerGenerator. The embedding and chat clients are blocking SDK calls,
so they run in worker threads via asyncio.to_thread and never stall the
event loop the store client lives on."
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from mini_rag.core.errors import CollectionNotFoundError, MiniRagError
from mini_rag.core.protocols import (
    INPUT_TYPE_QUERY,
    AnswerGenerator,
    DocumentStore,
    EmbeddingProvider,
    RecreateReport,
)
from mini_rag.observability.attributes import (
    RAG_ANSWER,
    RAG_QUESTION,
    RAG_RETRIEVED_DOC_COUNT,
    RAG_RETRIEVED_DOC_IDS,
    rag_step_attributes,
)
from mini_rag.observability.config import get_config
from mini_rag.observability.tracer import get_tracer
from mini_rag.retrieval.document import Document
from mini_rag.retrieval.seeds import SeedReport, seed_document_store

logger = logging.getLogger(__name__)

TEST_SOURCE_PREFIX = "test_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# RESULT TYPES
# ---------------------------------------------------------------------------


@dataclass
class RagAnswer:
    question: str
    answer: str
    documents: list[Document]

    @property
    def document_count(self) -> int:
        return len(self.documents)


@dataclass
class HealthReport:
    """Status of every collaborator the pipeline depends on."""

    class_exists: bool
    model_available: bool
    document_count: int
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def has_data(self) -> bool:
        return self.document_count > 0

    @property
    def services(self) -> dict[str, str]:
        return {
            "store": "OK - Class exists" if self.class_exists else "Warning - Class not found",
            "llm": "OK" if self.model_available else "Warning - Model not available",
        }


@dataclass
class ClearReport:
    removed: int
    message: str
    before: int | None = None
    after: int | None = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class StoreStats:
    total: int
    test: int
    class_exists: bool = True
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def production(self) -> int:
        return self.total - self.test

    @property
    def has_data(self) -> bool:
        return self.total > 0


@dataclass
class SetupReport:
    message: str
    pulled: bool
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class InitReport:
    """Steps that succeeded and steps that failed, in execution order."""

    steps: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def partial(self) -> bool:
        return bool(self.errors)

    @property
    def message(self) -> str:
        return "Partial initialization" if self.partial else "System successfully initialized"


# ---------------------------------------------------------------------------
# PIPELINE
# ---------------------------------------------------------------------------


class RagPipeline:
    """Orchestrates retrieval and generation over injected collaborators."""

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingProvider,
        generator: AnswerGenerator,
        test_prefix: str = TEST_SOURCE_PREFIX,
    ):
        self.store = store
        self.embeddings = embeddings
        self.generator = generator
        self.test_prefix = test_prefix
        self._tracer = get_tracer()

    @property
    def class_name(self) -> str:
        return getattr(self.store, "class_name", "DocumentChunk")

    async def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()
        close_generator = getattr(self.generator, "close", None)
        if close_generator is not None:
            close_generator()

    async def __aenter__(self) -> "RagPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _require_class(self, hint: str) -> None:
        if not await self.store.class_exists():
            raise CollectionNotFoundError(self.class_name, hint)

    # -----------------------------------------------------------------------
    # QUESTION ANSWERING
    # -----------------------------------------------------------------------

    async def search(self, query: str, top_k: int = 10) -> list[Document]:
        """Embed the query and return the top_k most similar chunks."""
        with self._tracer.start_span("rag.search", attributes=rag_step_attributes("search")) as span:
            embedding = await asyncio.to_thread(self.embeddings.embed, query, INPUT_TYPE_QUERY)
            documents = await self.store.search_by_similarity(embedding, top_k)
            span.set_attribute(RAG_RETRIEVED_DOC_COUNT, len(documents))
            span.set_attribute(RAG_RETRIEVED_DOC_IDS, [doc.id for doc in documents])
        return documents

    async def ask(self, question: str, top_k: int = 5) -> RagAnswer:
        """
        Full pipeline: retrieve context, then generate a grounded answer.

        Raises:
            EmbeddingError, TransportError, QueryError, GenerationError
        """
        capture = get_config().capture_content
        attributes = rag_step_attributes("ask", model=self.generator.model)
        with self._tracer.start_span("rag.ask", attributes=attributes) as span:
            if capture:
                span.set_attribute(RAG_QUESTION, question)

            documents = await self.search(question, top_k)
            answer = await asyncio.to_thread(self.generator.generate, question, documents)

            if capture:
                span.set_attribute(RAG_ANSWER, answer)

        logger.info("Answered question with %d context documents", len(documents))
        return RagAnswer(question=question, answer=answer, documents=documents)

    # -----------------------------------------------------------------------
    # STATUS
    # -----------------------------------------------------------------------

    async def health(self) -> HealthReport:
        with self._tracer.start_span("rag.health", attributes=rag_step_attributes("health")):
            class_exists = await self.store.class_exists()
            model_available = await asyncio.to_thread(self.generator.is_model_available)
            document_count = await self.store.get_document_count() if class_exists else 0
        return HealthReport(
            class_exists=class_exists,
            model_available=model_available,
            document_count=document_count,
        )

    async def stats(self) -> StoreStats:
        """Total, test and production document counts."""
        with self._tracer.start_span("rag.stats", attributes=rag_step_attributes("stats")):
            if not await self.store.class_exists():
                return StoreStats(total=0, test=0, class_exists=False)
            total = await self.store.get_document_count()
            test = await self.store.count_documents_by_prefix(self.test_prefix)
        return StoreStats(total=total, test=test)

    # -----------------------------------------------------------------------
    # DATA MANAGEMENT
    # -----------------------------------------------------------------------

    async def seed_test_data(self) -> SeedReport:
        """Embed and insert the demo price list. Needs an existing collection."""
        with self._tracer.start_span("rag.seed", attributes=rag_step_attributes("seed")):
            await self._require_class('Run "initialize" first')
            return await seed_document_store(self.store, self.embeddings)

    async def clear_all(self) -> ClearReport:
        with self._tracer.start_span("rag.clear_all", attributes=rag_step_attributes("clear_all")):
            await self._require_class("Nothing to clear.")

            before = await self.store.get_document_count()
            if before == 0:
                return ClearReport(removed=0, message="Database already empty.", before=0, after=0)

            removed = await self.store.clear_all_documents()
            after = await self.store.get_document_count()
        return ClearReport(removed=removed, message="Database cleared", before=before, after=after)

    async def clear_test_data(self, prefix: str | None = None) -> ClearReport:
        """Remove documents whose source starts with the test prefix."""
        prefix = prefix or self.test_prefix
        with self._tracer.start_span("rag.clear_test_data", attributes=rag_step_attributes("clear_test_data")):
            await self._require_class("Nothing to clear.")
            removed = await self.store.clear_documents_by_prefix(prefix)
        message = "Demo data removed successfully" if removed > 0 else "No test data found"
        return ClearReport(removed=removed, message=message)

    # -----------------------------------------------------------------------
    # SETUP & MAINTENANCE
    # -----------------------------------------------------------------------

    async def recreate_schema(self) -> RecreateReport:
        with self._tracer.start_span("rag.recreate_schema", attributes=rag_step_attributes("recreate_schema")):
            return await self.store.recreate_class()

    async def setup(self) -> SetupReport:
        """
        Download the LLM model unless the server already has it.

        Raises:
            GenerationError: the download failed
        """
        attributes = rag_step_attributes("setup", model=self.generator.model)
        with self._tracer.start_span("rag.setup", attributes=attributes):
            if await asyncio.to_thread(self.generator.is_model_available):
                return SetupReport(message="LLM model already available!", pulled=False)
            message = await asyncio.to_thread(self.generator.pull_model)
        logger.info("%s", message)
        return SetupReport(message=message, pulled=True)

    async def initialize(self) -> InitReport:
        """
        Make sure the collection exists and the model can be served,
        downloading the model when the server does not have it yet.

        Each step is attempted independently; failures land in report.errors.
        """
        report = InitReport()
        with self._tracer.start_span("rag.initialize", attributes=rag_step_attributes("initialize")):
            try:
                if await self.store.class_exists():
                    report.steps.append(f"{self.class_name} class already exists")
                else:
                    await self.store.create_class()
                    report.steps.append(f"{self.class_name} class created")
            except MiniRagError as e:
                report.errors.append(f"Failed to create class: {e.message}")

            try:
                if await asyncio.to_thread(self.generator.is_model_available):
                    report.steps.append("LLM model already available")
                else:
                    result = await asyncio.to_thread(self.generator.pull_model)
                    report.steps.append(f"LLM model downloaded: {result}")
            except MiniRagError as e:
                report.errors.append(f"Failed to check/download LLM model {self.generator.model}: {e.message}")

        if report.partial:
            logger.warning("Partial initialization: %s", report.errors)
        return report
