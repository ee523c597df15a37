"""Shared test fixtures and configuration.

``FakeEngine`` is an in-memory ``Transport`` that understands the small part
of the search engine API searchsync speaks: document PUT/DELETE, bulk,
``query_string`` search with paging, and terms/range facets.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import pytest

from searchsync.config.settings import IndexConfig, Settings
from searchsync.core.contracts import FieldProjector, RecordSource
from searchsync.exceptions import BackendError
from searchsync.transport.base import Transport, TransportHealth

# ── Records ──────────────────────────────────────────────────────────────────


@dataclass
class Thing:
    id: int
    title: str | None = None
    body: str | None = None
    name: str | None = None
    number: int | None = None
    published: bool = True


class InMemorySource(RecordSource):
    """Source of record backed by a dict. Returns lookups in reverse id order."""

    def __init__(self, records: list[Any] | None = None) -> None:
        self.records: dict[str, Any] = {}
        self.find_calls: list[list[str]] = []
        for record in records or []:
            self.add(record)

    def add(self, record: Any) -> None:
        self.records[self.identify(record)] = record

    async def find_by_ids(self, ids: list[str]) -> list[Any]:
        self.find_calls.append(list(ids))
        found = [self.records[i] for i in ids if i in self.records]
        return sorted(found, key=lambda r: int(self.identify(r)), reverse=True)

    async def fetch_batch(self, scope: Any, after: str | None, limit: int) -> list[Any]:
        ordered = sorted(self.records.values(), key=lambda r: int(self.identify(r)))
        if scope is not None:
            ordered = [r for r in ordered if scope(r)]
        if after is not None:
            ordered = [r for r in ordered if int(self.identify(r)) > int(after)]
        return ordered[:limit]


# ── Fake engine ──────────────────────────────────────────────────────────────


class FakeEngine(Transport):
    """In-memory stand-in for the search engine.

    Attributes:
        calls: Every request as ``(METHOD, path, query, json_body, body)``.
        documents: Stored documents by ``/{index}/{type}`` then id.
        failures: ``(METHOD, path)`` → exception raised for that request.
        percolate_matches: ``matches`` returned when indexing with percolation.
        reject_ids: Ids whose bulk items are answered with an error.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any] | None, Any, str | None]] = []
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.indices: set[str] = set()
        self.failures: dict[tuple[str, str], Exception] = {}
        self.percolate_matches: list[str] = []
        self.reject_ids: set[str] = set()

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def health_check(self) -> TransportHealth:
        return TransportHealth(status="healthy")

    def calls_to(self, method: str, suffix: str = "") -> list[tuple[str, str, Any, Any, Any]]:
        return [c for c in self.calls if c[0] == method.upper() and c[1].endswith(suffix)]

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        json_body: Any = None,
        body: str | None = None,
    ) -> dict[str, Any]:
        method = method.upper()
        self.calls.append((method, path, dict(query) if query else None, json_body, body))
        if (method, path) in self.failures:
            raise self.failures[(method, path)]

        parts = path.strip("/").split("/")
        if path == "/_bulk":
            return self._bulk(body or "")
        if parts[-1] == "_search":
            return self._search("/" + "/".join(parts[:-1]), json_body or {})
        if method == "HEAD":
            if parts[0] not in self.indices:
                raise BackendError(404, "Not Found")
            return {}
        if method == "PUT" and len(parts) == 1:
            self.indices.add(parts[0])
            return {"acknowledged": True}
        if method == "PUT" and len(parts) == 3 and not parts[2].startswith("_"):
            self.documents.setdefault("/" + "/".join(parts[:2]), {})[parts[2]] = json_body
            return {"_id": parts[2], "ok": True, "matches": list(self.percolate_matches)}
        if method == "DELETE" and len(parts) == 3:
            docs = self.documents.get("/" + "/".join(parts[:2]), {})
            if parts[2] not in docs:
                raise BackendError(404, "not found")
            del docs[parts[2]]
            return {"found": True}
        return {"acknowledged": True}

    def _bulk(self, body: str) -> dict[str, Any]:
        lines = body.split("\n")
        assert lines[-1] == "", "bulk body must end with a newline"
        items = []
        errors = False
        for action_line, doc_line in zip(lines[0:-1:2], lines[1:-1:2], strict=True):
            action = json.loads(action_line)["index"]
            key = f"/{action['_index']}/{action['_type']}"
            if action["_id"] in self.reject_ids:
                errors = True
                items.append({"index": {"_id": action["_id"], "status": 400, "error": "mapper_parsing_exception"}})
                continue
            self.documents.setdefault(key, {})[action["_id"]] = json.loads(doc_line)
            items.append({"index": {"_id": action["_id"], "status": 201}})
        return {"took": 1, "errors": errors, "items": items}

    def _search(self, key: str, request: dict[str, Any]) -> dict[str, Any]:
        docs = self.documents.get(key, {})
        matched = [(doc_id, doc) for doc_id, doc in docs.items() if _matches(doc, request.get("query", {}))]
        start, size = request.get("from", 0), request.get("size", 10)

        response: dict[str, Any] = {
            "took": 1,
            "_shards": {"total": 1, "successful": 1, "failed": 0},
            "hits": {
                "total": len(matched),
                "hits": [{"_id": doc_id, "_score": 1.0} for doc_id, _ in matched[start : start + size]],
            },
        }
        if "facets" in request:
            response["facets"] = {
                field: _facet([doc for _, doc in matched], spec) for field, spec in request["facets"].items()
            }
        return response


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    if "match_all" in query:
        return True
    terms = query["query_string"]["query"].lower().split()
    words = {w for value in doc.values() if isinstance(value, str) for w in value.lower().split()}
    return any(term in words for term in terms)


def _facet(docs: list[dict[str, Any]], spec: dict[str, Any]) -> dict[str, Any]:
    if "terms" in spec:
        field, size = spec["terms"]["field"], spec["terms"]["size"]
        values = [doc.get(field) for doc in docs]
        counts = Counter(v for v in values if v is not None)
        ordered = sorted(counts.items(), key=lambda kv: (kv[1], kv[0]), reverse=True)
        return {
            "_type": "terms",
            "missing": sum(1 for v in values if v is None),
            "total": sum(counts.values()),
            "other": sum(c for _, c in ordered[size:]),
            "terms": [{"term": t, "count": c} for t, c in ordered[:size]],
        }
    field = spec["range"]["field"]
    ranges = []
    for bounds in spec["range"]["ranges"]:
        lower = float(bounds["from"]) if "from" in bounds else None
        upper = float(bounds["to"]) if "to" in bounds else None
        count = sum(
            1
            for doc in docs
            if doc.get(field) is not None
            and (lower is None or doc[field] >= lower)
            and (upper is None or doc[field] < upper)
        )
        entry: dict[str, Any] = {"count": count}
        if lower is not None:
            entry["from"] = lower
        if upper is not None:
            entry["to"] = upper
        ranges.append(entry)
    return {"_type": "range", "ranges": ranges}


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with one configured entity."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        indexing={"default_index": "test-index"},
        indices={"things": {"type": "thing"}},
    )


@pytest.fixture
def config(settings: Settings) -> IndexConfig:
    return settings.index_config("things")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def projector() -> FieldProjector:
    return FieldProjector(["title", "body", "name", "number"])


@pytest.fixture
def faceted_things() -> list[Thing]:
    """Eight records: titles AA x3, DD x2, BB, CC, EE; two carry a name."""
    return [
        Thing(1, title="AA", body="more stuff", name="Foo"),
        Thing(2, title="BB", body="some stuff", name="Foo"),
        Thing(3, title="AA", body="yet more stuff"),
        Thing(4, title="AA", body="and more stuff"),
        Thing(5, title="DD", body="more stuff"),
        Thing(6, title="DD", body="yet more stuff"),
        Thing(7, title="CC", body="more stuff"),
        Thing(8, title="EE", body="more stuff"),
    ]


@pytest.fixture
def numbered_things() -> list[Thing]:
    """Nine records with ``number`` 0..8."""
    return [Thing(i + 1, title=f"thing {i}", body="stuff", number=i) for i in range(9)]


@pytest.fixture
def make_thing() -> type[Thing]:
    return Thing


@pytest.fixture
def make_source() -> type[InMemorySource]:
    return InMemorySource
