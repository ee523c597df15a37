"""Query builder — Translate a query and ``SearchOptions`` into an engine request."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from searchsync.config.settings import IndexConfig
from searchsync.core.facets import build_facets
from searchsync.models.search import EngineQuery, SearchOptions

PER_PAGE_DEFAULT = 20


def resolve_per_page(
    options: SearchOptions,
    config: IndexConfig,
    default_per_page: int = PER_PAGE_DEFAULT,
) -> int:
    """Pick the page size: caller, then entity, then global default; capped by the entity maximum."""
    per_page = options.per_page or config.per_page or default_per_page
    if config.max_per_page is not None:
        per_page = min(per_page, config.max_per_page)
    return per_page


def build_query_clause(query: str | Mapping[str, Any], default_operator: str | None = None) -> dict[str, Any]:
    """Pass structured queries through; wrap free text in a ``query_string`` query."""
    if isinstance(query, Mapping):
        return dict(query)
    query_string: dict[str, Any] = {"query": query}
    if default_operator:
        query_string["default_operator"] = default_operator
    return {"query_string": query_string}


def build_search_query(
    query: str | Mapping[str, Any],
    options: SearchOptions,
    config: IndexConfig,
    default_per_page: int = PER_PAGE_DEFAULT,
) -> EngineQuery:
    """Build the request for one search call.

    Args:
        query: Free text for a ``query_string`` query, or a ready-made query clause.
        options: Paging, sort, fields and facets for this call.
        config: Index configuration of the searched entity.
        default_per_page: Page size when neither caller nor entity sets one.

    Returns:
        The body to send as JSON plus the URL parameters to send alongside.

    Raises:
        InvalidFacetSpec: If a facet request is malformed.
    """
    per_page = resolve_per_page(options, config, default_per_page)

    body: dict[str, Any] = {
        "query": build_query_clause(query, options.default_operator),
        "size": per_page,
        "from": per_page * (options.page - 1),
        "fields": list(options.fields),
    }
    params: dict[str, Any] = {}

    if isinstance(options.sort, str):
        params["sort"] = options.sort
    elif options.sort is not None:
        body["sort"] = options.sort

    if options.has_facets:
        body["facets"] = build_facets(options.term_facets, options.range_facets)

    return EngineQuery(body=body, params=params, page=options.page, per_page=per_page)
