"""Data models for search requests, engine responses and search results."""

from searchsync.models.response import RawResponse
from searchsync.models.result import FacetSummary, RangeFacetSummary, SearchResult, TermFacetSummary
from searchsync.models.search import EngineQuery, RangeFacetRequest, SearchOptions, TermFacetRequest

__all__ = [
    "EngineQuery",
    "FacetSummary",
    "RangeFacetRequest",
    "RangeFacetSummary",
    "RawResponse",
    "SearchOptions",
    "SearchResult",
    "TermFacetRequest",
    "TermFacetSummary",
]
