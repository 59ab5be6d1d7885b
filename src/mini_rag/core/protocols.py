"""
Core protocols defining contracts for the entire system.

All infrastructure components implement these protocols,
enabling dependency injection and easy testing.

PATTERN: This follows the same structure as embeddings/openai_embeddings.py
- Protocol defines the contract
- Multiple implementations possible
- Factory functions for instantiation
- Test doubles for fast unit tests

INTERVIEW TALKING POINT:
------------------------
"The RAG pipeline never talks to Weaviate directly. It depends on the
DocumentStore protocol, so the whole store client can be swapped for an
in-memory double in tests. Same for embeddings and the answer generator."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from mini_rag.retrieval.document import Document


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------
# Re-exported from embeddings module for consistency

# Asymmetric embedding models encode questions and stored chunks differently
INPUT_TYPE_QUERY = "query"
INPUT_TYPE_PASSAGE = "passage"


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    input_type is INPUT_TYPE_QUERY for questions and INPUT_TYPE_PASSAGE for
    chunks that get stored. Symmetric models may ignore it.

    Implementations:
    - OpenAIEmbeddings (production)
    - MockEmbeddings (testing)
    """

    def embed(self, text: str, input_type: str = INPUT_TYPE_QUERY) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    def embed_batch(self, texts: list[str], input_type: str = INPUT_TYPE_QUERY) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        ...


# ---------------------------------------------------------------------------
# DOCUMENT STORE PROTOCOL
# ---------------------------------------------------------------------------

@dataclass
class RecreateReport:
    """
    Ordered trail of a drop-and-recreate run.

    steps holds human-readable messages in execution order; errors holds
    the failures of individual steps. A failed step does not stop the
    remaining independent steps.
    """
    steps: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    existed_before: bool = False
    previous_count: int = 0
    exists_after: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exists_after and not self.errors

    def __str__(self) -> str:
        return ", ".join(self.steps)


@runtime_checkable
class DocumentStore(Protocol):
    """
    Contract for the document store façade.

    Implementations:
    - WeaviateDocumentStore (production, GraphQL + REST)
    - InMemoryDocumentStore (testing/development)
    """

    async def add_document(self, text: str, source: str, embedding: np.ndarray) -> str:
        """Persist one chunk and return its store-assigned id ('' if none)."""
        ...

    async def search_by_similarity(self, embedding: np.ndarray, top_k: int = 10) -> list[Document]:
        """Return the top_k chunks closest to the embedding."""
        ...

    async def class_exists(self) -> bool:
        """Check whether the collection exists."""
        ...

    async def create_class(self) -> None:
        """Create the collection schema."""
        ...

    async def recreate_class(self) -> RecreateReport:
        """Drop (if present) and recreate the collection."""
        ...

    async def get_document_count(self) -> int:
        """Count every document in the collection."""
        ...

    async def count_documents_by_prefix(self, prefix: str) -> int:
        """Count documents whose source starts with prefix."""
        ...

    async def clear_all_documents(self) -> int:
        """Delete every document, returning the number removed."""
        ...

    async def clear_documents_by_prefix(self, prefix: str) -> int:
        """Delete documents whose source starts with prefix."""
        ...


# ---------------------------------------------------------------------------
# ANSWER GENERATOR PROTOCOL
# ---------------------------------------------------------------------------

@runtime_checkable
class AnswerGenerator(Protocol):
    """
    Contract for turning a question plus retrieved context into an answer.

    Implementations:
    - OpenAIAnswerGenerator (any OpenAI-compatible chat endpoint)
    - MockAnswerGenerator (testing)
    """

    @property
    def model(self) -> str:
        ...

    def generate(self, question: str, documents: list[Document]) -> str:
        """Generate an answer grounded on the documents."""
        ...

    def is_model_available(self) -> bool:
        """Check whether the configured model can be served."""
        ...

    def pull_model(self) -> str:
        """Download the configured model; returns a status message."""
        ...
