"""
RAG module - question answering over the document store.

USAGE:
------
from mini_rag.rag import create_pipeline

async with create_pipeline() as pipeline:
    await pipeline.initialize()
    result = await pipeline.ask("Quanto custa a mini caneca?")
"""

from mini_rag.rag.pipeline import (
    ClearReport,
    HealthReport,
    InitReport,
    RagAnswer,
    RagPipeline,
    SetupReport,
    StoreStats,
)
from mini_rag.rag.factory import create_pipeline
from mini_rag.retrieval.seeds import SeedReport

__all__ = [
    "RagPipeline",
    "create_pipeline",
    "RagAnswer",
    "HealthReport",
    "ClearReport",
    "StoreStats",
    "InitReport",
    "SetupReport",
    "SeedReport",
]
