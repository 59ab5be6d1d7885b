"""
Seed data for the retrieval system.

This package contains externalized knowledge base content.
Separating data from infrastructure enables:
- Content updates without code changes
- Easy testing with controlled data
"""

from mini_rag.retrieval.seeds.price_list import (
    SEED_SOURCE_PREFIX,
    SeedReport,
    get_seed_documents,
    seed_document_store,
)

__all__ = ["SEED_SOURCE_PREFIX", "SeedReport", "get_seed_documents", "seed_document_store"]
