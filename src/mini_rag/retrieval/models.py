"""
Wire models for the Weaviate GraphQL and REST endpoints.

These Pydantic models are the CONTRACT between the client and the store.
Responses are validated into them instead of being read key by key, so a
missing optional field becomes None rather than a crash, and a structurally
wrong body fails loudly in one place.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ---------------------------------------------------------------------------
# GRAPHQL ENVELOPE
# ---------------------------------------------------------------------------


class GraphQLError(BaseModel):
    """One in-band error entry."""

    message: str = ""
    path: list[str | int] | None = None


class GraphQLResponse(BaseModel, Generic[T]):
    """
    Generic envelope around every GraphQL response.

    Any entry in `errors` marks the response as failed, even when the
    HTTP status was 200.
    """

    data: T | None = None
    errors: list[GraphQLError] | None = None

    @property
    def failed(self) -> bool:
        return bool(self.errors)


# ---------------------------------------------------------------------------
# GET (search / full scan) PAYLOAD
# ---------------------------------------------------------------------------


class AdditionalFields(BaseModel):
    """The `_additional { id distance certainty }` block."""

    id: str = ""
    distance: float | None = None
    certainty: float | None = None


class DocumentHit(BaseModel):
    """One row of a Get query."""

    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    source: str | None = None
    additional: AdditionalFields | None = Field(default=None, alias="_additional")


class GetPayload(BaseModel):
    """`data` of a Get query: class name -> rows."""

    model_config = ConfigDict(populate_by_name=True)

    get: dict[str, list[DocumentHit] | None] = Field(default_factory=dict, alias="Get")

    def hits(self, class_name: str) -> list[DocumentHit]:
        return self.get.get(class_name) or []


# ---------------------------------------------------------------------------
# AGGREGATE PAYLOAD
# ---------------------------------------------------------------------------


class AggregateMeta(BaseModel):
    count: int | None = None


class AggregateGroup(BaseModel):
    meta: AggregateMeta | None = None


class AggregatePayload(BaseModel):
    """`data` of an Aggregate query: class name -> groups."""

    model_config = ConfigDict(populate_by_name=True)

    aggregate: dict[str, list[AggregateGroup] | None] = Field(
        default_factory=dict, alias="Aggregate"
    )

    def count(self, class_name: str) -> int | None:
        """Return the meta count for class_name, or None if absent."""
        groups = self.aggregate.get(class_name) or []
        if not groups or groups[0].meta is None:
            return None
        return groups[0].meta.count


# ---------------------------------------------------------------------------
# SCHEMA RESOURCE
# ---------------------------------------------------------------------------


class PropertySchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    data_type: list[str] = Field(alias="dataType")
    description: str = ""


class ClassSchema(BaseModel):
    """Definition of one collection. Vectors are always supplied by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="class")
    description: str = ""
    vectorizer: str = "none"
    properties: list[PropertySchema] = Field(default_factory=list)


class ClassInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    class_name: str = Field(alias="class")
    description: str = ""


class SchemaResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    classes: list[ClassInfo] | None = None


# ---------------------------------------------------------------------------
# OBJECTS / BATCH RESOURCES
# ---------------------------------------------------------------------------


class WhereFilterBody(BaseModel):
    """REST form of a where predicate."""

    model_config = ConfigDict(populate_by_name=True)

    path: list[str]
    operator: str
    value_text: str = Field(alias="valueText")


class DeleteMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="class")
    where: WhereFilterBody | None = None


class BatchDeleteRequest(BaseModel):
    match: DeleteMatch
    output: str = "minimal"


class StoredObject(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    class_name: str = Field(default="", alias="class")
    properties: dict[str, Any] = Field(default_factory=dict)


class ObjectsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    objects: list[StoredObject] | None = None
    total_results: int | None = Field(default=None, alias="totalResults")

    @property
    def count(self) -> int:
        """Reported total, or the number of returned objects when absent."""
        if self.total_results is not None:
            return self.total_results
        return len(self.objects or [])
