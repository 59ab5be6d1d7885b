"""
Weaviate store configuration.

Loads connection settings, endpoint paths, limits and settling intervals
from environment variables.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass
class WeaviateConfig:
    """Configuration for the Weaviate document store.

    Environment Variables:
        WEAVIATE_URL: Base URL of the store (default: http://localhost:8080)
        WEAVIATE_CLASS_NAME: Collection name (default: DocumentChunk)
        WEAVIATE_SCHEMA_ENDPOINT: Schema resource path (default: /v1/schema)
        WEAVIATE_OBJECTS_ENDPOINT: Objects resource path (default: /v1/objects)
        WEAVIATE_BATCH_ENDPOINT: Batch delete path (default: /v1/batch/objects)
        WEAVIATE_GRAPHQL_ENDPOINT: Structured query path (default: /v1/graphql)
        WEAVIATE_DEFAULT_LIMIT: Default result limit (default: 1000)
        WEAVIATE_FULL_SCAN_LIMIT: Full scan cap (default: 10000)
        WEAVIATE_SETTLE_SECONDS: Wait after a delete before re-counting (default: 1.0)
        WEAVIATE_SCHEMA_SETTLE_SECONDS: Wait around schema drop/create (default: 0.5)
        WEAVIATE_TIMEOUT_SECONDS: HTTP timeout (default: 30)
        WEAVIATE_EMBEDDING_DIM: Expected vector length (optional, unchecked if empty)

    The settling intervals are a heuristic for eventual consistency, not a
    guarantee: the store may still report stale counts after the wait.
    """

    url: str = "http://localhost:8080"
    class_name: str = "DocumentChunk"
    schema_endpoint: str = "/v1/schema"
    objects_endpoint: str = "/v1/objects"
    batch_endpoint: str = "/v1/batch/objects"
    graphql_endpoint: str = "/v1/graphql"
    default_limit: int = 1000
    full_scan_limit: int = 10_000
    settle_seconds: float = 1.0
    schema_settle_seconds: float = 0.5
    timeout_seconds: float = 30.0
    embedding_dim: int | None = None

    @classmethod
    def from_env(cls) -> "WeaviateConfig":
        """Load config from environment variables."""
        return cls(
            url=os.environ.get("WEAVIATE_URL", "http://localhost:8080").rstrip("/"),
            class_name=os.environ.get("WEAVIATE_CLASS_NAME", "DocumentChunk"),
            schema_endpoint=os.environ.get("WEAVIATE_SCHEMA_ENDPOINT", "/v1/schema"),
            objects_endpoint=os.environ.get("WEAVIATE_OBJECTS_ENDPOINT", "/v1/objects"),
            batch_endpoint=os.environ.get("WEAVIATE_BATCH_ENDPOINT", "/v1/batch/objects"),
            graphql_endpoint=os.environ.get("WEAVIATE_GRAPHQL_ENDPOINT") or "/v1/graphql",
            default_limit=_env_int("WEAVIATE_DEFAULT_LIMIT", 1000),
            full_scan_limit=_env_int("WEAVIATE_FULL_SCAN_LIMIT", 10_000),
            settle_seconds=_env_float("WEAVIATE_SETTLE_SECONDS", 1.0),
            schema_settle_seconds=_env_float("WEAVIATE_SCHEMA_SETTLE_SECONDS", 0.5),
            timeout_seconds=_env_float("WEAVIATE_TIMEOUT_SECONDS", 30.0),
            embedding_dim=_env_int("WEAVIATE_EMBEDDING_DIM", None),
        )
