"""
Shared fixtures for the store tests.

FakeWeaviate is an in-memory implementation of the HttpTransport interface
that answers the GraphQL, schema, objects and batch endpoints the way a
Weaviate server does. Failure switches let tests drive every fallback path
without a running server.
"""

from __future__ import annotations

import fnmatch
import json
import re
import uuid
from typing import Any
from urllib.parse import parse_qs

import numpy as np
import pytest

from mini_rag.core.errors import TransportError
from mini_rag.observability import reset_config, reset_tracer
from mini_rag.retrieval.config import WeaviateConfig
from mini_rag.retrieval.store import WeaviateDocumentStore
from mini_rag.retrieval.transport import HttpTransport, TransportResponse

_CLASS_RE = re.compile(r"^\{(Get|Aggregate)\{(\w+)")
_VECTOR_RE = re.compile(r"nearVector:\{vector:\[([^\]]*)\]\}")
_WHERE_RE = re.compile(
    r'where:\{path:\[("[^"]*"(?:,"[^"]*")*)\],operator:(\w+),valueText:("(?:[^"\\]|\\.)*")\}'
)
_LIMIT_RE = re.compile(r"limit:(\d+)")


def _matches(obj: dict, where: dict | None) -> bool:
    if where is None:
        return True
    value = obj["properties"].get(where["path"][0], "")
    operator = where["operator"]
    pattern = where["valueText"]
    if operator == "Like":
        return fnmatch.fnmatchcase(value, pattern)
    if operator == "Equal":
        return value == pattern
    if operator == "NotEqual":
        return value != pattern
    raise ValueError(f"unsupported operator {operator}")


class FakeWeaviate(HttpTransport):
    """In-memory Weaviate with failure injection."""

    def __init__(self):
        self.classes: dict[str, dict] = {}
        self.objects: dict[str, list[dict]] = {}
        self.requests: list[tuple[str, str, Any]] = []

        # Failure switches
        self.network_down = False
        self.graphql_status: int | None = None
        self.graphql_errors: list[dict] | None = None
        self.aggregate_errors: list[dict] | None = None
        self.aggregate_without_count = False
        self.aggregate_empty_meta = False
        self.objects_list_status: int | None = None
        self.schema_get_status: int | None = None
        self.schema_create_status: int | None = None
        self.batch_delete_status: int | None = None
        self.echo_ids = True
        self.report_total_results = True
        # Objects that stay visible after a batch delete (eventual consistency)
        self.lagging_deletes = 0

    # -----------------------------------------------------------------------
    # Helpers for tests
    # -----------------------------------------------------------------------

    def create(self, class_name: str = "DocumentChunk") -> None:
        self.classes[class_name] = {"class": class_name, "description": "", "properties": []}
        self.objects.setdefault(class_name, [])

    def insert(self, text: str, source: str, vector: list[float], class_name: str = "DocumentChunk") -> str:
        obj_id = str(uuid.uuid4())
        self.objects.setdefault(class_name, []).append(
            {"id": obj_id, "class": class_name, "properties": {"text": text, "source": source}, "vector": vector}
        )
        return obj_id

    def count(self, class_name: str = "DocumentChunk") -> int:
        return len(self.objects.get(class_name, []))

    def calls(self, method: str, path_prefix: str) -> list[tuple[str, str, Any]]:
        return [r for r in self.requests if r[0] == method and r[1].startswith(path_prefix)]

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    async def request(self, method: str, path: str, *, json: Any = None) -> TransportResponse:
        self.requests.append((method, path, json))
        if self.network_down:
            raise TransportError(f"Network error calling {method} {path}: connection refused", url=path)

        base, _, query = path.partition("?")
        params = {k: v[0] for k, v in parse_qs(query).items()}

        if base == "/v1/graphql" and method == "POST":
            return self._graphql(json["query"])
        if base == "/v1/schema" and method == "GET":
            return self._respond(self.schema_get_status or 200, {"classes": list(self.classes.values())})
        if base == "/v1/schema" and method == "POST":
            return self._create_class(json)
        if base.startswith("/v1/schema/") and method == "DELETE":
            return self._delete_class(base.rsplit("/", 1)[1])
        if base == "/v1/objects" and method == "POST":
            return self._add_object(json)
        if base == "/v1/objects" and method == "GET":
            return self._list_objects(params)
        if base == "/v1/batch/objects" and method == "POST":
            return self._batch_delete(json)
        return self._respond(404, {"error": [{"message": f"no route {method} {base}"}]})

    @staticmethod
    def _respond(status: int, body: Any) -> TransportResponse:
        return TransportResponse(status_code=status, body=body, text=json.dumps(body), url="fake://weaviate")

    def _graphql(self, text: str) -> TransportResponse:
        if self.graphql_status is not None:
            return self._respond(self.graphql_status, {"error": "graphql unavailable"})
        if self.graphql_errors is not None:
            return self._respond(200, {"data": None, "errors": self.graphql_errors})

        kind, class_name = _CLASS_RE.match(text).groups()
        if class_name not in self.classes:
            message = f'Cannot query field "{class_name}" on type "{kind}ObjectsObj".'
            return self._respond(200, {"errors": [{"message": message}]})

        where = None
        where_match = _WHERE_RE.search(text)
        if where_match:
            path_part, operator, value = where_match.groups()
            where = {
                "path": json.loads(f"[{path_part}]"),
                "operator": operator,
                "valueText": json.loads(value),
            }
        rows = [o for o in self.objects[class_name] if _matches(o, where)]

        if kind == "Aggregate":
            if self.aggregate_errors is not None:
                return self._respond(200, {"errors": self.aggregate_errors})
            if self.aggregate_empty_meta:
                return self._respond(200, {"data": {"Aggregate": {class_name: [{"meta": {}}]}}})
            if self.aggregate_without_count:
                return self._respond(200, {"data": {"Aggregate": {class_name: []}}})
            return self._respond(200, {"data": {"Aggregate": {class_name: [{"meta": {"count": len(rows)}}]}}})

        vector_match = _VECTOR_RE.search(text)
        scored = []
        for obj in rows:
            distance = None
            if vector_match:
                query = np.array([float(v) for v in vector_match.group(1).split(",")])
                stored = np.array(obj["vector"])
                norm = np.linalg.norm(query) * np.linalg.norm(stored)
                distance = 1.0 - (float(np.dot(query, stored) / norm) if norm else 0.0)
            scored.append((obj, distance))
        if vector_match:
            scored.sort(key=lambda pair: pair[1])

        limit_match = _LIMIT_RE.search(text)
        if limit_match:
            scored = scored[: int(limit_match.group(1))]

        hits = [
            {
                "text": obj["properties"].get("text"),
                "source": obj["properties"].get("source"),
                "_additional": {
                    "id": obj["id"],
                    "distance": distance,
                    "certainty": None if distance is None else 1.0 - distance / 2.0,
                },
            }
            for obj, distance in scored
        ]
        return self._respond(200, {"data": {"Get": {class_name: hits}}})

    def _create_class(self, body: dict) -> TransportResponse:
        if self.schema_create_status is not None:
            return self._respond(self.schema_create_status, {"error": [{"message": "create failed"}]})
        name = body["class"]
        if name in self.classes:
            return self._respond(422, {"error": [{"message": f"class name {name} already exists"}]})
        self.classes[name] = body
        self.objects.setdefault(name, [])
        return self._respond(200, body)

    def _delete_class(self, name: str) -> TransportResponse:
        if name not in self.classes:
            return self._respond(404, None)
        del self.classes[name]
        self.objects.pop(name, None)
        return self._respond(200, None)

    def _add_object(self, body: dict) -> TransportResponse:
        name = body["class"]
        if name not in self.classes:
            return self._respond(422, {"error": [{"message": f"class {name} not found"}]})
        obj_id = self.insert(body["properties"]["text"], body["properties"]["source"], body["vector"], name)
        echoed = {"class": name, "properties": body["properties"]}
        if self.echo_ids:
            echoed["id"] = obj_id
        return self._respond(200, echoed)

    def _list_objects(self, params: dict[str, str]) -> TransportResponse:
        if self.objects_list_status is not None:
            return self._respond(self.objects_list_status, {"error": [{"message": "list failed"}]})
        name = params["class"]
        where = json.loads(params["where"]) if "where" in params else None
        limit = int(params.get("limit", 25))
        rows = [o for o in self.objects.get(name, []) if _matches(o, where)][:limit]
        body: dict[str, Any] = {
            "objects": [{"id": o["id"], "class": name, "properties": o["properties"]} for o in rows]
        }
        if self.report_total_results:
            body["totalResults"] = len(rows)
        return self._respond(200, body)

    def _batch_delete(self, body: dict) -> TransportResponse:
        if self.batch_delete_status is not None:
            return self._respond(self.batch_delete_status, {"error": [{"message": "batch delete failed"}]})
        name = body["match"]["class"]
        where = body["match"].get("where")
        doomed = [o for o in self.objects.get(name, []) if _matches(o, where)]
        survivors = doomed[: self.lagging_deletes]
        removed_ids = {o["id"] for o in doomed} - {o["id"] for o in survivors}
        self.objects[name] = [o for o in self.objects.get(name, []) if o["id"] not in removed_ids]
        return self._respond(
            200,
            {"match": body["match"], "output": body.get("output"), "results": {"matches": len(doomed)}},
        )


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_tracing(monkeypatch):
    """Keep every test on the no-op tracer regardless of the environment."""
    monkeypatch.delenv("TRACING_ENABLED", raising=False)
    reset_config()
    reset_tracer()
    yield
    reset_config()
    reset_tracer()


@pytest.fixture
def fake_weaviate() -> FakeWeaviate:
    return FakeWeaviate()


@pytest.fixture
def weaviate_config() -> WeaviateConfig:
    return WeaviateConfig()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def store(fake_weaviate, weaviate_config, sleeps) -> WeaviateDocumentStore:
    """Store wired to the fake server with instant, recorded settling waits."""

    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return WeaviateDocumentStore(weaviate_config, transport=fake_weaviate, sleep=record_sleep)
