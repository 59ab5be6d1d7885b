"""
Pipeline factory - wires collaborators from environment configuration.

Loads a .env file (if present) before reading any settings, so local
development needs no exported variables.
"""

from __future__ import annotations

from dotenv import load_dotenv

from mini_rag.core.protocols import AnswerGenerator, DocumentStore, EmbeddingProvider
from mini_rag.embeddings import get_embedding_provider
from mini_rag.generation import get_answer_generator
from mini_rag.observability import init_tracing
from mini_rag.rag.pipeline import RagPipeline
from mini_rag.retrieval.store import get_document_store


def create_pipeline(
    store: DocumentStore | None = None,
    embeddings: EmbeddingProvider | None = None,
    generator: AnswerGenerator | None = None,
    load_env: bool = True,
) -> RagPipeline:
    """
    Build a RagPipeline, filling in any collaborator not passed explicitly.

    Args:
        store: Document store (Weaviate unless USE_IN_MEMORY_STORE=true)
        embeddings: Embedding provider (OpenAI unless USE_MOCK_EMBEDDINGS=true)
        generator: Answer generator (OpenAI-compatible unless USE_MOCK_LLM=true)
        load_env: Load variables from a .env file first
    """
    if load_env:
        load_dotenv()

    init_tracing()

    return RagPipeline(
        store=store or get_document_store(),
        embeddings=embeddings or get_embedding_provider(),
        generator=generator or get_answer_generator(),
    )
