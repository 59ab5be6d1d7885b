"""
GraphQL query builder for the Weaviate structured-query endpoint.

Single responsibility: turn a handful of composable clauses into ONE
well-formed, single-line GraphQL string. No I/O happens here.

Four canonical shapes are exposed as module functions:
- search_query()         nearVector similarity search
- full_scan_query()      unranked Get with a hard limit
- count_query()          Aggregate meta count
- filtered_count_query() Aggregate meta count scoped by a where predicate

WHY A BUILDER:
--------------
- DETERMINISTIC: clause order is fixed (nearVector, where, limit), so the
  same inputs always give byte-identical output and tests can compare text.
- LOCALE-SAFE: vectors are rendered with repr(float), which always uses '.'
  and no grouping. The query is plain text, so a locale-dependent separator
  would silently corrupt it.
- FAIL EARLY: a missing class or empty field set raises ConstructionError at
  build time instead of producing a query the server rejects later.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from mini_rag.core.errors import ConstructionError

FULL_SCAN_LIMIT = 10_000

SEARCH_FIELDS = ("text", "source")
SEARCH_ADDITIONAL = ("id", "distance", "certainty")
SCAN_ADDITIONAL = ("id",)
META_COUNT_FIELD = "meta{count}"


# ---------------------------------------------------------------------------
# QUERY PARTS
# ---------------------------------------------------------------------------


class QueryKind(str, Enum):
    """Top-level GraphQL verb."""

    GET = "Get"
    AGGREGATE = "Aggregate"


class QueryOperation(str, Enum):
    """The four canonical query shapes."""

    SEARCH = "search"
    FULL_SCAN = "full_scan"
    COUNT = "count"
    FILTERED_COUNT = "filtered_count"


class FilterOperator(str, Enum):
    """Supported where operators. LIKE treats '*' as a wildcard."""

    EQUAL = "Equal"
    NOT_EQUAL = "NotEqual"
    LIKE = "Like"


@dataclass(frozen=True)
class WhereFilter:
    """A single-path text predicate."""

    path: tuple[str, ...]
    operator: FilterOperator
    value: str

    def to_graphql(self) -> str:
        path = json.dumps(list(self.path), separators=(",", ":"))
        return (
            f"where:{{path:{path},operator:{self.operator.value},"
            f"valueText:{json.dumps(self.value)}}}"
        )

    def to_rest(self) -> dict:
        """REST/batch form: {path, operator, valueText}."""
        return {
            "path": list(self.path),
            "operator": self.operator.value,
            "valueText": self.value,
        }


def prefix_filter(prefix: str, path: str = "source") -> WhereFilter:
    """Like-filter matching values that start with the literal prefix."""
    return WhereFilter(path=(path,), operator=FilterOperator.LIKE, value=f"{prefix}*")


def format_vector(vector: Iterable[float]) -> str:
    """Comma-join a vector in a locale-invariant decimal format."""
    parts = []
    for value in vector:
        number = float(value)
        if not math.isfinite(number):
            raise ConstructionError(f"Vector component {number!r} is not a finite number")
        parts.append(repr(number))
    if not parts:
        raise ConstructionError("nearVector requires a non-empty vector")
    return ",".join(parts)


@dataclass(frozen=True)
class Query:
    """An immutable, built query. `text` is what goes on the wire."""

    operation: QueryOperation
    target: str
    text: str
    vector: tuple[float, ...] | None = None
    where: WhereFilter | None = None
    limit: int | None = None
    fields: tuple[str, ...] = ()
    additional_fields: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.text


# ---------------------------------------------------------------------------
# BUILDER
# ---------------------------------------------------------------------------


@dataclass
class QueryBuilder:
    """
    Explicit builder state plus one validating build() step.

    Every chained method only writes to these fields; build() reads nothing
    else. Example:

        QueryBuilder().get("DocumentChunk").with_fields("text").limit(5).build()
    """

    kind: QueryKind = QueryKind.GET
    class_name: str = ""
    fields: list[str] = field(default_factory=list)
    additional_fields: list[str] = field(default_factory=list)
    vector: tuple[float, ...] | None = None
    where_filter: WhereFilter | None = None
    limit_value: int | None = None

    @classmethod
    def create(cls) -> "QueryBuilder":
        return cls()

    def get(self, class_name: str) -> "QueryBuilder":
        self.kind = QueryKind.GET
        self.class_name = class_name
        return self

    def aggregate(self, class_name: str) -> "QueryBuilder":
        self.kind = QueryKind.AGGREGATE
        self.class_name = class_name
        return self

    def with_fields(self, *names: str) -> "QueryBuilder":
        self.fields.extend(names)
        return self

    def with_additional(self, *names: str) -> "QueryBuilder":
        self.additional_fields.extend(names)
        return self

    def with_meta_count(self) -> "QueryBuilder":
        if self.kind is QueryKind.AGGREGATE:
            self.fields.append(META_COUNT_FIELD)
        return self

    def near_vector(self, vector: Iterable[float]) -> "QueryBuilder":
        # Validated (and rejected if empty) at build time
        self.vector = tuple(float(v) for v in vector)
        return self

    def where(
        self,
        path: str | Sequence[str],
        operator: FilterOperator | str,
        value: str,
    ) -> "QueryBuilder":
        try:
            op = FilterOperator(operator)
        except ValueError:
            raise ConstructionError(f"Unsupported where operator: {operator!r}") from None
        paths = (path,) if isinstance(path, str) else tuple(path)
        self.where_filter = WhereFilter(path=paths, operator=op, value=value)
        return self

    def where_like(self, path: str, pattern: str) -> "QueryBuilder":
        return self.where(path, FilterOperator.LIKE, pattern)

    def where_equal(self, path: str, value: str) -> "QueryBuilder":
        return self.where(path, FilterOperator.EQUAL, value)

    def limit(self, limit: int) -> "QueryBuilder":
        self.limit_value = limit
        return self

    # -----------------------------------------------------------------------

    def build(self) -> Query:
        """Validate the state and render the single-line query."""
        self._validate()

        if self.kind is QueryKind.GET:
            text = self._render_get()
            operation = QueryOperation.SEARCH if self.vector is not None else QueryOperation.FULL_SCAN
        else:
            text = self._render_aggregate()
            operation = (
                QueryOperation.FILTERED_COUNT if self.where_filter is not None else QueryOperation.COUNT
            )

        return Query(
            operation=operation,
            target=self.class_name,
            text=text,
            vector=self.vector,
            where=self.where_filter,
            limit=self.limit_value,
            fields=tuple(self.fields),
            additional_fields=tuple(self.additional_fields),
        )

    def _validate(self) -> None:
        if not self.class_name or not self.class_name.strip():
            raise ConstructionError("Class name is required. Use get() or aggregate().")
        if any(ch.isspace() for ch in self.class_name):
            raise ConstructionError(f"Invalid class name: {self.class_name!r}")
        if self.kind is QueryKind.GET and not self.fields and not self.additional_fields:
            raise ConstructionError("At least one field must be specified for Get queries.")
        if self.kind is QueryKind.AGGREGATE and not self.fields:
            raise ConstructionError("Aggregate queries need at least one field, e.g. with_meta_count().")
        if self.limit_value is not None and (
            isinstance(self.limit_value, bool)
            or not isinstance(self.limit_value, int)
            or self.limit_value <= 0
        ):
            raise ConstructionError(f"limit must be a positive integer, got {self.limit_value!r}")

    def _arguments(self) -> str:
        args = []
        if self.vector is not None:
            args.append(f"nearVector:{{vector:[{format_vector(self.vector)}]}}")
        if self.where_filter is not None:
            args.append(self.where_filter.to_graphql())
        if self.limit_value is not None:
            args.append(f"limit:{self.limit_value}")
        return f"({','.join(args)})" if args else ""

    def _render_get(self) -> str:
        selection = list(self.fields)
        if self.additional_fields:
            selection.append(f"_additional{{{' '.join(self.additional_fields)}}}")
        return f"{{Get{{{self.class_name}{self._arguments()}{{{' '.join(selection)}}}}}}}"

    def _render_aggregate(self) -> str:
        where = f"({self.where_filter.to_graphql()})" if self.where_filter is not None else ""
        return f"{{Aggregate{{{self.class_name}{where}{{{' '.join(self.fields)}}}}}}}"


# ---------------------------------------------------------------------------
# CANONICAL SHAPES
# ---------------------------------------------------------------------------


def search_query(
    collection: str,
    vector: Iterable[float],
    top_k: int,
    fields: Sequence[str] = SEARCH_FIELDS,
    additional_fields: Sequence[str] = SEARCH_ADDITIONAL,
) -> Query:
    """nearVector similarity query returning the top_k closest rows."""
    return (
        QueryBuilder.create()
        .get(collection)
        .with_fields(*fields)
        .with_additional(*additional_fields)
        .near_vector(vector)
        .limit(top_k)
        .build()
    )


def full_scan_query(
    collection: str,
    fields: Sequence[str] = SEARCH_FIELDS,
    additional_fields: Sequence[str] = SCAN_ADDITIONAL,
    limit: int = FULL_SCAN_LIMIT,
) -> Query:
    """Unranked Get returning at most `limit` rows."""
    return (
        QueryBuilder.create()
        .get(collection)
        .with_fields(*fields)
        .with_additional(*additional_fields)
        .limit(limit)
        .build()
    )


def count_query(collection: str) -> Query:
    """Aggregate query returning a single meta count."""
    return QueryBuilder.create().aggregate(collection).with_meta_count().build()


def filtered_count_query(
    collection: str,
    path: str,
    operator: FilterOperator | str,
    value_pattern: str,
) -> Query:
    """Aggregate meta count scoped by a where predicate."""
    return (
        QueryBuilder.create()
        .aggregate(collection)
        .where(path, operator, value_pattern)
        .with_meta_count()
        .build()
    )
