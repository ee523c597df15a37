"""Search result models — the envelope returned to callers of ``Searcher.search``."""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class TermFacetSummary(BaseModel):
    """Term facet: buckets in engine order plus missing/other counts."""

    kind: Literal["terms"] = "terms"
    counts: list[tuple[Any, int]] = Field(default_factory=list, description="(term, count) pairs")
    missing: int = Field(default=0, description="Documents without a value for the field")
    other: int = Field(default=0, description="Documents whose term fell outside the returned buckets")

    def as_dict(self) -> dict[Any, int]:
        return dict(self.counts)


class RangeFacetSummary(BaseModel):
    """Range facet: one ``("lower|upper", count)`` pair per requested range."""

    kind: Literal["range"] = "range"
    counts: list[tuple[str, int]] = Field(default_factory=list, description="(range label, count) pairs")

    def as_dict(self) -> dict[str, int]:
        return dict(self.counts)


FacetSummary = Annotated[TermFacetSummary | RangeFacetSummary, Field(discriminator="kind")]


class SearchResult(BaseModel):
    """One page of search results.

    ``records`` are source-of-record objects ordered exactly like the
    engine's hits. ``total_entries`` is the engine's count and may exceed
    the number of records that could still be loaded.
    """

    records: list[Any] = Field(default_factory=list, description="Records in relevance order")
    page: int = Field(ge=1, description="Current page")
    per_page: int = Field(ge=1, description="Page size")
    total_entries: int = Field(default=0, description="Total matches reported by the engine")
    request: str = Field(default="", description="JSON-encoded request body, for diagnostics")
    facets: dict[str, FacetSummary] = Field(default_factory=dict, description="Facet summaries by field")

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_entries / self.per_page) if self.total_entries else 0

    @property
    def offset(self) -> int:
        return self.per_page * (self.page - 1)
