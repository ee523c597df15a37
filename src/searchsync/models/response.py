"""Raw engine response model — the part of a search response searchsync reads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RawResponse(BaseModel):
    """Search response reduced to hit identifiers, total and facet buckets.

    Transient: owned by ``Searcher`` for the duration of one call.
    """

    total_hits: int = Field(default=0, description="Total matches reported by the engine")
    hit_ids: list[str] = Field(default_factory=list, description="Hit identifiers in relevance order")
    facets: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Facet buckets by field")
    failed_shards: int = Field(default=0, description="Shards that failed to answer (partial results)")
    took_ms: int = Field(default=0, description="Engine-side execution time in ms")

    @classmethod
    def from_engine(cls, payload: dict[str, Any]) -> RawResponse:
        """Parse a search response body.

        Accepts both the legacy integer ``hits.total`` and the
        ``{"value": n, "relation": ...}`` form.
        """
        hits = payload.get("hits") or {}
        total = hits.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)

        return cls(
            total_hits=int(total or 0),
            hit_ids=[str(hit["_id"]) for hit in hits.get("hits", []) if "_id" in hit],
            facets=payload.get("facets") or {},
            failed_shards=int((payload.get("_shards") or {}).get("failed", 0) or 0),
            took_ms=int(payload.get("took", 0) or 0),
        )
