"""
Schema manager - lifecycle of ONE named collection.

Uses the plain schema resource (GET/POST/DELETE), never GraphQL.

exists() deliberately swallows fetch failures and answers False: it gates
idempotent setup flows ("create if missing"), where an unreachable schema
endpoint should lead to a create attempt that then fails loudly.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from mini_rag.core.errors import TransportError
from mini_rag.retrieval.config import WeaviateConfig
from mini_rag.retrieval.models import ClassInfo, ClassSchema, PropertySchema, SchemaResponse
from mini_rag.retrieval.transport import HttpTransport

logger = logging.getLogger(__name__)


def default_schema(class_name: str) -> ClassSchema:
    """The document chunk collection: text + source, vectors supplied externally."""
    return ClassSchema(
        class_name=class_name,
        description="Document chunks for RAG system",
        vectorizer="none",
        properties=[
            PropertySchema(name="text", data_type=["text"], description="The document text content"),
            PropertySchema(name="source", data_type=["text"], description="Source identifier for the document"),
        ],
    )


class SchemaManager:
    """Checks for, creates and deletes the configured collection."""

    def __init__(self, transport: HttpTransport, config: WeaviateConfig):
        self._transport = transport
        self.config = config

    @property
    def class_name(self) -> str:
        return self.config.class_name

    async def list_classes(self) -> list[ClassInfo]:
        """Fetch the full schema. Raises TransportError on failure."""
        response = await self._transport.get(self.config.schema_endpoint)
        response.raise_for_status("Schema fetch")
        try:
            schema = SchemaResponse.model_validate(response.body or {})
        except ValidationError as e:
            raise TransportError(
                f"Unreadable schema response: {e.error_count()} validation error(s)",
                status_code=response.status_code,
                url=response.url,
            ) from e
        return schema.classes or []

    async def exists(self) -> bool:
        """True if the collection is present; False if absent OR unknowable."""
        try:
            classes = await self.list_classes()
        except TransportError as e:
            logger.warning("Schema check failed, treating %s as absent: %s", self.class_name, e.message)
            return False
        return any(c.class_name == self.class_name for c in classes)

    async def create(self, schema: ClassSchema | None = None) -> None:
        """Create the collection. Raises TransportError on non-2xx."""
        schema = schema or default_schema(self.class_name)
        response = await self._transport.post(
            self.config.schema_endpoint,
            json=schema.model_dump(by_alias=True),
        )
        response.raise_for_status(f"Create class {schema.class_name}")
        logger.info("Created class %s", schema.class_name)

    async def delete(self) -> None:
        """Delete the collection. A missing collection counts as success."""
        response = await self._transport.delete(f"{self.config.schema_endpoint}/{self.class_name}")
        if response.status_code == 404:
            logger.info("Class %s already absent", self.class_name)
            return
        response.raise_for_status(f"Delete class {self.class_name}")
        logger.info("Deleted class %s", self.class_name)
