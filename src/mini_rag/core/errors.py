"""
Error taxonomy for the vector-store client.

Every failure the store layer can surface is one of these types:

- ConstructionError: a malformed query build request (caller bug, never retried)
- TransportError: non-success status or network failure talking to the store
- QueryError: in-band errors reported inside a 200-status GraphQL envelope
- CollectionNotFoundError: the collection an operation needs is missing
- GenerationError / EmbeddingError: the model services failed

TransportError and QueryError are interchangeable from a caller's point of
view: both trigger the REST fallback where one exists, otherwise propagate.
"""

from __future__ import annotations

from typing import Any


class MiniRagError(Exception):
    """Base exception for all mini-rag errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConstructionError(MiniRagError):
    """Raised when a query or write cannot be built from the requested parts."""


class TransportError(MiniRagError):
    """Raised when the store answers with a non-2xx status or is unreachable.

    status_code is None when the request never produced a response
    (connection refused, timeout, DNS failure).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        **kwargs: Any,
    ):
        self.status_code = status_code
        self.url = url
        super().__init__(message, **kwargs)


class QueryError(MiniRagError):
    """Raised when the GraphQL envelope carries errors despite a 2xx status."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        self.errors = errors or []
        super().__init__(message, **kwargs)


class CollectionNotFoundError(MiniRagError):
    """Raised when an operation needs the collection and it does not exist."""

    def __init__(self, class_name: str, hint: str | None = None, **kwargs: Any):
        self.class_name = class_name
        message = f"{class_name} class not found"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message, **kwargs)


class GenerationError(MiniRagError):
    """Raised when the language model cannot be reached or times out."""


class EmbeddingError(MiniRagError):
    """Raised when the embedding service cannot produce a vector."""
