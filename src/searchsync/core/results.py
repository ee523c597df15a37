"""Result mapper — Turn a raw engine response into an ordered, paginated ``SearchResult``."""

from __future__ import annotations

import json
import logging
from typing import Any

from searchsync.core.contracts import RecordSource
from searchsync.core.facets import map_facets
from searchsync.models.response import RawResponse
from searchsync.models.result import SearchResult
from searchsync.models.search import EngineQuery, SearchOptions

logger = logging.getLogger(__name__)


async def load_records(hit_ids: list[str], source: RecordSource) -> list[Any]:
    """Fetch the records behind ``hit_ids`` in one call and return them in hit order.

    Identifiers the source no longer knows (stale index entries) are dropped.
    """
    if not hit_ids:
        return []

    unique_ids = list(dict.fromkeys(hit_ids))
    fetched = await source.find_by_ids(unique_ids)
    by_id = {source.identify(record): record for record in fetched}

    records = [by_id[hit_id] for hit_id in hit_ids if hit_id in by_id]
    if len(records) < len(hit_ids):
        stale = [hit_id for hit_id in unique_ids if hit_id not in by_id]
        logger.debug("Dropping %d stale search hits: %s", len(stale), stale)
    return records


async def map_results(
    raw: RawResponse,
    query: EngineQuery,
    options: SearchOptions,
    source: RecordSource,
) -> SearchResult:
    """Assemble the result envelope for one search call.

    Args:
        raw: Parsed engine response.
        query: The request that produced ``raw`` (page, page size, echo).
        options: The caller's options; facet requests decide how buckets are read.
        source: Source of record used to rehydrate hits.
    """
    if raw.failed_shards:
        logger.warning(
            "Search answered by a subset of shards (%d failed); results may be incomplete",
            raw.failed_shards,
        )

    records = await load_records(raw.hit_ids, source)
    facets = map_facets(raw.facets, options.term_facets, options.range_facets) if options.has_facets else {}

    return SearchResult(
        records=records,
        page=query.page,
        per_page=query.per_page,
        total_entries=raw.total_hits,
        request=json.dumps(query.body),
        facets=facets,
    )
