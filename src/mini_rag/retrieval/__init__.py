"""
Retrieval module - the Weaviate vector-store client.

This module provides:
- Document: The document model
- WeaviateConfig: Configuration for the store
- QueryBuilder / QueryExecutor: structured GraphQL queries and their outcomes
- SchemaManager: collection lifecycle
- WeaviateDocumentStore: production store façade
- InMemoryDocumentStore: Testing/development store
- get_document_store(): Factory function

ARCHITECTURE:
-------------
Following the gold standard pattern from embeddings module:
1. Protocol defines the contract (in core.protocols)
2. Multiple implementations (WeaviateDocumentStore, InMemoryDocumentStore)
3. Factory function for instantiation
4. Test doubles for fast unit tests
"""

# Document model
from mini_rag.retrieval.document import Document

# Configuration
from mini_rag.retrieval.config import WeaviateConfig

# Query construction and execution
from mini_rag.retrieval.query_builder import (
    FilterOperator,
    Query,
    QueryBuilder,
    WhereFilter,
    count_query,
    filtered_count_query,
    full_scan_query,
    prefix_filter,
    search_query,
)
from mini_rag.retrieval.executor import (
    QueryExecutor,
    QueryFailed,
    QueryOk,
    QueryOutcome,
    TransportFailed,
    unwrap,
)

# Transport, schema and REST clients
from mini_rag.retrieval.transport import HttpTransport, HttpxTransport, TransportResponse
from mini_rag.retrieval.schema import SchemaManager, default_schema
from mini_rag.retrieval.objects import ObjectsClient

# Store implementations and factory
from mini_rag.retrieval.store import (
    WeaviateDocumentStore,
    InMemoryDocumentStore,
    get_document_store,
)

# Seed data
from mini_rag.retrieval.seeds import (
    SeedReport,
    get_seed_documents,
    seed_document_store,
)

__all__ = [
    # Document
    "Document",
    # Config
    "WeaviateConfig",
    # Queries
    "FilterOperator",
    "Query",
    "QueryBuilder",
    "WhereFilter",
    "count_query",
    "filtered_count_query",
    "full_scan_query",
    "prefix_filter",
    "search_query",
    "QueryExecutor",
    "QueryFailed",
    "QueryOk",
    "QueryOutcome",
    "TransportFailed",
    "unwrap",
    # Transport & REST
    "HttpTransport",
    "HttpxTransport",
    "TransportResponse",
    "SchemaManager",
    "default_schema",
    "ObjectsClient",
    # Implementations
    "WeaviateDocumentStore",
    "InMemoryDocumentStore",
    # Factory
    "get_document_store",
    # Seeds
    "SeedReport",
    "get_seed_documents",
    "seed_document_store",
]
