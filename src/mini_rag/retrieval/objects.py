"""
REST objects and batch endpoints.

These back ingestion, the count fallbacks and bulk deletes. The
structured-query path can be unavailable while this plain resource path
still works, which is why the store falls back here for counting.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote_plus

from pydantic import ValidationError

from mini_rag.core.errors import TransportError
from mini_rag.retrieval.config import WeaviateConfig
from mini_rag.retrieval.models import BatchDeleteRequest, DeleteMatch, ObjectsResponse, WhereFilterBody
from mini_rag.retrieval.query_builder import WhereFilter
from mini_rag.retrieval.transport import HttpTransport, TransportResponse

logger = logging.getLogger(__name__)


def encode_where_filter(where: WhereFilter) -> str:
    """URL-encoded JSON predicate for the objects endpoint's `where` param."""
    return quote_plus(json.dumps(where.to_rest(), separators=(",", ":")))


class ObjectsClient:
    """Thin client over the objects and batch resources."""

    def __init__(self, transport: HttpTransport, config: WeaviateConfig):
        self._transport = transport
        self.config = config

    async def add(self, properties: dict[str, Any], vector: list[float]) -> dict[str, Any]:
        """POST one object. Returns the echoed object (may lack an id)."""
        response = await self._transport.post(
            self.config.objects_endpoint,
            json={
                "class": self.config.class_name,
                "properties": properties,
                "vector": vector,
            },
        )
        response.raise_for_status("Add object")
        return response.body if isinstance(response.body, dict) else {}

    async def list_objects(self, where: WhereFilter | None = None, limit: int | None = None) -> ObjectsResponse:
        """GET objects of the class, optionally filtered."""
        query = f"class={quote_plus(self.config.class_name)}"
        if where is not None:
            query += f"&where={encode_where_filter(where)}"
        query += f"&limit={limit or self.config.default_limit}"

        response = await self._transport.get(f"{self.config.objects_endpoint}?{query}")
        response.raise_for_status("List objects")
        try:
            return ObjectsResponse.model_validate(response.body or {})
        except ValidationError as e:
            raise TransportError(
                f"Unreadable objects response: {e.error_count()} validation error(s)",
                status_code=response.status_code,
                url=response.url,
            ) from e

    async def batch_delete(self, where: WhereFilter | None = None) -> TransportResponse:
        """
        Delete every object matching `where` (the whole class when None).

        The raw response is returned unchecked: callers decide what a
        failed delete means for them.
        """
        request = BatchDeleteRequest(
            match=DeleteMatch(
                class_name=self.config.class_name,
                where=WhereFilterBody.model_validate(where.to_rest()) if where is not None else None,
            ),
            output="minimal",
        )
        logger.info("Batch delete on %s (where=%s)", self.config.class_name, where)
        return await self._transport.post(
            self.config.batch_endpoint,
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
