"""Searcher — Run a search against one index and rehydrate the hits.

Pipeline for ``search``:
  query + options → [query builder] → EngineQuery
                  → [transport]     → raw JSON (one request, never retried)
                  → [result mapper] → SearchResult
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from searchsync.config.settings import DEFAULT_INDEX
from searchsync.core.query import PER_PAGE_DEFAULT, build_search_query
from searchsync.core.results import map_results
from searchsync.models.response import RawResponse
from searchsync.models.search import SearchOptions

if TYPE_CHECKING:
    from searchsync.config.settings import IndexConfig, Settings
    from searchsync.core.contracts import RecordSource
    from searchsync.models.result import SearchResult
    from searchsync.transport.base import Transport

logger = logging.getLogger(__name__)


class Searcher:
    """Search orchestrator for one entity.

    Stateless between calls: every ``search`` builds its own request and
    result objects.

    Attributes:
        transport: Connection to the search engine.
        config: Index configuration of the entity (default index applied).
        source: Source of record used to load hit records.
    """

    def __init__(
        self,
        transport: Transport,
        config: IndexConfig,
        source: RecordSource,
        settings: Settings | None = None,
    ) -> None:
        self.transport = transport
        self.source = source
        if settings is not None:
            self.config = config.resolve(settings.indexing.default_index)
            self._default_per_page = settings.search.default_per_page
        else:
            self.config = config.resolve(DEFAULT_INDEX)
            self._default_per_page = PER_PAGE_DEFAULT

    async def search(
        self,
        query: str | Mapping[str, Any],
        options: SearchOptions | None = None,
        **kwargs: Any,
    ) -> SearchResult:
        """Search the entity's index.

        Args:
            query: Free text (``query_string`` syntax) or a structured query clause.
            options: Search options. Keyword arguments are accepted instead,
                e.g. ``search("stuff", page=2, term_facets=[{"title": 5}])``.

        Returns:
            The page of records in relevance order, with facets.

        Raises:
            InvalidFacetSpec: If a facet request is malformed (nothing is sent).
            BackendError: If the search request fails.
        """
        if options is None:
            options = SearchOptions(**kwargs)
        elif kwargs:
            options = SearchOptions.model_validate({**options.model_dump(exclude_unset=True), **kwargs})

        engine_query = build_search_query(query, options, self.config, self._default_per_page)

        start = time.monotonic()
        payload = await self.transport.request(
            "get",
            self.config.index_type_path("_search"),
            query=engine_query.params,
            json_body=engine_query.body,
        )
        raw = RawResponse.from_engine(payload)
        result = await map_results(raw, engine_query, options, self.source)

        logger.info(
            "Search on %s page %d: %d hits, %d records in %d ms",
            self.config.name,
            engine_query.page,
            raw.total_hits,
            len(result.records),
            int((time.monotonic() - start) * 1000),
        )
        return result
