"""Search request models — caller options and the translated engine request."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class TermFacetRequest(BaseModel):
    """Count the most frequent values of ``field``, up to ``size`` buckets."""

    field: str = Field(min_length=1, description="Field to facet on")
    size: int = Field(default=10, ge=1, description="Maximum number of term buckets")


class RangeFacetRequest(BaseModel):
    """Count documents of ``field`` falling into each ``lower|upper`` range.

    Either bound may be empty (``"3|"``, ``"|5"``); the lower bound is
    inclusive and the upper bound exclusive, as evaluated by the engine.
    """

    field: str = Field(min_length=1, description="Field to facet on")
    ranges: list[str] = Field(default_factory=list, description="Range strings in 'lower|upper' form")


def _shorthand(value: Any, key: str) -> Any:
    """Expand ``{"title": 5}`` / ``("title", 5)`` into ``{"field": "title", key: 5}``."""
    if isinstance(value, dict) and "field" not in value and len(value) == 1:
        ((field, arg),) = value.items()
        return {"field": field, key: arg}
    if isinstance(value, tuple) and len(value) == 2:
        return {"field": value[0], key: value[1]}
    return value


class SearchOptions(BaseModel):
    """Options controlling a single search call.

    Facets accept both the explicit form and a shorthand::

        SearchOptions(term_facets=[{"title": 5}], range_facets=[{"number": ["1|3", "3|5"]}])
    """

    page: int = Field(default=1, ge=1, description="1-based page number")
    per_page: int | None = Field(default=None, ge=1, description="Page size (None = index/global default)")
    sort: list[Any] | dict[str, Any] | str | None = Field(
        default=None,
        description="Structured sort (sent in the body) or raw sort string (sent as a URL parameter)",
    )
    fields: list[str] = Field(default_factory=lambda: ["_id"], description="Fields returned per hit")
    default_operator: Literal["AND", "OR"] | None = Field(
        default=None, description="Operator joining free-text terms"
    )
    term_facets: list[TermFacetRequest] = Field(default_factory=list, description="Term facets to compute")
    range_facets: list[RangeFacetRequest] = Field(default_factory=list, description="Range facets to compute")

    @field_validator("default_operator", mode="before")
    @classmethod
    def _upper_operator(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("fields", mode="before")
    @classmethod
    def _single_field(cls, v: Any) -> Any:
        return [v] if isinstance(v, str) else v

    @field_validator("term_facets", mode="before")
    @classmethod
    def _term_shorthand(cls, v: Any) -> Any:
        return [_shorthand(item, "size") for item in v] if isinstance(v, (list, tuple)) else v

    @field_validator("range_facets", mode="before")
    @classmethod
    def _range_shorthand(cls, v: Any) -> Any:
        return [_shorthand(item, "ranges") for item in v] if isinstance(v, (list, tuple)) else v

    @property
    def has_facets(self) -> bool:
        return bool(self.term_facets or self.range_facets)


class EngineQuery(BaseModel):
    """A fully translated search request.

    ``body`` is sent as JSON; ``params`` travel separately in the URL query
    string. Frozen once built.
    """

    model_config = {"frozen": True}

    body: dict[str, Any] = Field(description="JSON request body")
    params: dict[str, Any] = Field(default_factory=dict, description="URL query parameters")
    page: int = Field(ge=1, description="Requested page")
    per_page: int = Field(ge=1, description="Effective page size")

    @property
    def offset(self) -> int:
        return self.body["from"]
