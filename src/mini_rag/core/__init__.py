"""
Core module - shared protocols, types and errors for the entire system.

This module provides the foundational contracts that enable:
- Dependency injection throughout the codebase
- Easy testing with in-memory implementations
- A single error taxonomy for the store layer

USAGE:
------
from mini_rag.core import DocumentStore, EmbeddingProvider

class MyDocumentStore:
    '''Implements DocumentStore protocol.'''
    ...
"""

from mini_rag.core.errors import (
    MiniRagError,
    ConstructionError,
    TransportError,
    QueryError,
    CollectionNotFoundError,
    GenerationError,
    EmbeddingError,
)
from mini_rag.core.protocols import (
    # Protocols
    EmbeddingProvider,
    DocumentStore,
    AnswerGenerator,
    # Data classes
    RecreateReport,
    # Constants
    INPUT_TYPE_QUERY,
    INPUT_TYPE_PASSAGE,
)

__all__ = [
    # Errors
    "MiniRagError",
    "ConstructionError",
    "TransportError",
    "QueryError",
    "CollectionNotFoundError",
    "GenerationError",
    "EmbeddingError",
    # Protocols
    "EmbeddingProvider",
    "DocumentStore",
    "AnswerGenerator",
    # Data classes
    "RecreateReport",
    # Constants
    "INPUT_TYPE_QUERY",
    "INPUT_TYPE_PASSAGE",
]
