"""
Embeddings Module - Single Responsibility: Generate text embeddings.

It has ONE job: convert text to vector embeddings.

SOLID PRINCIPLE: Single Responsibility
- This module ONLY handles embedding generation
- No store logic, no document handling
- Easy to swap for different embedding providers

Any OpenAI-compatible /embeddings server works: point EMBEDDINGS_BASE_URL
at a self-hosted model and the same client is used.
"""

import hashlib
import logging
import os
from dataclasses import dataclass

import numpy as np
from openai import OpenAI, OpenAIError

from mini_rag.core.errors import EmbeddingError
from mini_rag.core.protocols import INPUT_TYPE_PASSAGE, INPUT_TYPE_QUERY, EmbeddingProvider

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """Configuration for the embedding provider.

    Environment Variables:
        EMBEDDING_MODEL: Model name (default: text-embedding-3-small)
        EMBEDDINGS_BASE_URL: OpenAI-compatible base URL (optional)
        OPENAI_API_KEY: API key (optional for self-hosted servers)
        EMBEDDING_QUERY_PREFIX: Text prepended to questions, e.g. "query: " for e5 models
        EMBEDDING_PASSAGE_PREFIX: Text prepended to stored chunks, e.g. "passage: "
        USE_MOCK_EMBEDDINGS: Use MockEmbeddings (default: false)
    """

    model: str = "text-embedding-3-small"
    base_url: str | None = None
    api_key: str | None = None
    query_prefix: str = ""
    passage_prefix: str = ""
    use_mock: bool = False

    @classmethod
    def from_env(cls) -> "EmbeddingConfig":
        """Load config from environment variables."""
        return cls(
            model=os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small"),
            base_url=os.environ.get("EMBEDDINGS_BASE_URL") or None,
            api_key=os.environ.get("OPENAI_API_KEY") or None,
            query_prefix=os.environ.get("EMBEDDING_QUERY_PREFIX", ""),
            passage_prefix=os.environ.get("EMBEDDING_PASSAGE_PREFIX", ""),
            use_mock=os.environ.get("USE_MOCK_EMBEDDINGS", "false").lower() in ("true", "1", "yes"),
        )


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions).
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        base_url: str | None = None,
        client: OpenAI | None = None,
        query_prefix: str = "",
        passage_prefix: str = "",
    ):
        self.model = model
        self._prefixes = {INPUT_TYPE_QUERY: query_prefix, INPUT_TYPE_PASSAGE: passage_prefix}
        # Self-hosted servers ignore the key but the SDK requires one
        self._client = client or OpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY") or "not-needed",
            base_url=base_url,
        )

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        model_dims = {
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
            "text-embedding-ada-002": 1536,
        }
        return model_dims.get(self.model, 1536)

    def _prepare(self, text: str, input_type: str) -> str:
        try:
            return self._prefixes[input_type] + text
        except KeyError:
            raise ValueError(f"Unknown input_type {input_type!r}") from None

    def embed(self, text: str, input_type: str = INPUT_TYPE_QUERY) -> np.ndarray:
        """Generate embedding for a single text."""
        prepared = self._prepare(text, input_type)
        try:
            response = self._client.embeddings.create(input=prepared, model=self.model)
        except OpenAIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}", details={"model": self.model}) from e
        return np.array(response.data[0].embedding, dtype=np.float32)

    def embed_batch(self, texts: list[str], input_type: str = INPUT_TYPE_QUERY) -> list[np.ndarray]:
        """Generate embeddings for multiple texts efficiently."""
        if not texts:
            return []

        prepared = [self._prepare(text, input_type) for text in texts]
        try:
            response = self._client.embeddings.create(input=prepared, model=self.model)
        except OpenAIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}", details={"model": self.model}) from e
        return [
            np.array(item.embedding, dtype=np.float32)
            for item in response.data
        ]


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic pseudo-embeddings from text hashes.
    input_type is ignored, so a stored chunk and the identical question map
    to the same vector.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = 1536):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str, input_type: str = INPUT_TYPE_QUERY) -> np.ndarray:
        """Generate deterministic pseudo-embedding from text hash."""
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        # Gaussian components keep every value finite, unlike raw hash bytes
        return np.random.default_rng(seed).standard_normal(self._dimensions).astype(np.float32)

    def embed_batch(self, texts: list[str], input_type: str = INPUT_TYPE_QUERY) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        return [self.embed(text, input_type) for text in texts]


def get_embedding_provider(
    use_mock: bool | None = None,
    config: EmbeddingConfig | None = None,
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (default: USE_MOCK_EMBEDDINGS)
        config: Provider configuration (loaded from env if not provided)
    """
    config = config or EmbeddingConfig.from_env()
    if use_mock is None:
        use_mock = config.use_mock

    if use_mock:
        logger.debug("Using mock embeddings")
        return MockEmbeddings()
    return OpenAIEmbeddings(
        model=config.model,
        api_key=config.api_key,
        base_url=config.base_url,
        query_prefix=config.query_prefix,
        passage_prefix=config.passage_prefix,
    )
