"""
GraphQL query executor.

Sends a built query to the structured-query endpoint and returns a TAGGED
outcome instead of a nullable blob:

    QueryOk(data)               2xx and no in-band errors
    QueryFailed(message, ...)   2xx but the envelope carries errors
    TransportFailed(status,...) non-2xx or network failure

Two layers of checking are mandatory: Weaviate's GraphQL endpoint happily
answers HTTP 200 with a semantic failure in `errors`.

Callers that prefer exceptions use fetch(), which unwraps the outcome into
the payload or raises QueryError / TransportError. Nothing is retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

from mini_rag.core.errors import QueryError, TransportError
from mini_rag.retrieval.models import GraphQLResponse
from mini_rag.retrieval.query_builder import Query
from mini_rag.retrieval.transport import HttpTransport

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


# ---------------------------------------------------------------------------
# OUTCOMES
# ---------------------------------------------------------------------------


@dataclass
class QueryOk(Generic[P]):
    """Successful query with its typed payload."""
    data: P


@dataclass
class QueryFailed:
    """In-band failure reported inside a 2xx envelope."""
    message: str
    errors: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class TransportFailed:
    """Non-2xx status, or no response at all (status_code=None)."""
    status_code: int | None
    message: str


QueryOutcome = Union[QueryOk[P], QueryFailed, TransportFailed]


def unwrap(outcome: QueryOutcome) -> Any:
    """Return the payload of a QueryOk, raise the matching error otherwise."""
    if isinstance(outcome, QueryOk):
        return outcome.data
    if isinstance(outcome, QueryFailed):
        raise QueryError(f"Weaviate GraphQL error: {outcome.message}", errors=outcome.errors)
    if isinstance(outcome, TransportFailed):
        raise TransportError(outcome.message, status_code=outcome.status_code)
    raise TypeError(f"Unknown query outcome: {outcome!r}")


# ---------------------------------------------------------------------------
# EXECUTOR
# ---------------------------------------------------------------------------


class QueryExecutor:
    """
    Runs queries against the GraphQL endpoint.

    Args:
        transport: HTTP transport (injected)
        graphql_path: Path of the structured-query endpoint
    """

    def __init__(self, transport: HttpTransport, graphql_path: str = "/v1/graphql"):
        self._transport = transport
        self._path = graphql_path

    async def execute(self, query: Query | str, payload_type: type[P]) -> QueryOutcome:
        """Submit the query and classify the response."""
        text = str(query)

        try:
            response = await self._transport.post(self._path, json={"query": text})
        except TransportError as e:
            return TransportFailed(status_code=None, message=e.message)

        if not response.ok:
            logger.warning("GraphQL request returned HTTP %d", response.status_code)
            return TransportFailed(
                status_code=response.status_code,
                message=f"GraphQL request failed with HTTP {response.status_code}",
            )

        try:
            envelope = GraphQLResponse[payload_type].model_validate(response.body or {})
        except ValidationError as e:
            logger.warning("Malformed GraphQL response: %s", e)
            return QueryFailed(message=f"Malformed GraphQL response: {e.error_count()} validation error(s)")

        if envelope.failed:
            errors = [err.model_dump() for err in envelope.errors]
            logger.warning("GraphQL query failed: %s", errors[0]["message"])
            return QueryFailed(message=errors[0]["message"], errors=errors)

        if envelope.data is None:
            return QueryFailed(message="GraphQL response carried no data")

        return QueryOk(data=envelope.data)

    async def fetch(self, query: Query | str, payload_type: type[P]) -> P:
        """Like execute(), but returns the payload or raises."""
        return unwrap(await self.execute(query, payload_type))
