"""Indexer — Push record documents into the search index and manage the index.

Single-record operations (``index_record``, ``percolate``) surface backend
errors to the caller. ``delete_record`` is idempotent: backend errors are
logged and swallowed. ``reindex_batch`` isolates failures per record and
per batch and reports the identifiers that did not make it.

Nothing here retries. Indexing is at-least-once at best; callers wanting a
stronger guarantee must re-run ``reindex_batch`` for the failed identifiers.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from searchsync.config.settings import IndexingSettings
from searchsync.core.contracts import IndexHooks, Lifecycle
from searchsync.exceptions import BackendError, ConfigurationError, SerializationError

if TYPE_CHECKING:
    from searchsync.config.settings import IndexConfig, Settings
    from searchsync.core.contracts import DocumentProjector, RecordSource
    from searchsync.transport.base import Transport

logger = logging.getLogger(__name__)


class Indexer:
    """Indexing coordinator for one entity.

    Attributes:
        transport: Connection to the search engine.
        config: Index configuration of the entity (default index applied).
        projector: Builds index documents and decides which records are indexed.
        source: Source of record; only needed for ``reindex_batch``.
        hooks: Callbacks run after indexing and percolation.

    Example:
        >>> indexer = Indexer(transport, settings.index_config("things"), FieldProjector(["title"]))
        >>> await indexer.index_record(thing, Lifecycle.CREATE)
        >>> failed = await indexer.reindex_batch()
    """

    def __init__(
        self,
        transport: Transport,
        config: IndexConfig,
        projector: DocumentProjector,
        source: RecordSource | None = None,
        settings: Settings | None = None,
        hooks: IndexHooks | None = None,
    ) -> None:
        self.transport = transport
        self.projector = projector
        self.source = source
        self.hooks = hooks or IndexHooks()
        self._indexing = settings.indexing if settings is not None else IndexingSettings()
        self.config = config.resolve(self._indexing.default_index)

    # ── Single records ───────────────────────────────────────────────────

    def should_index(self, record: Any) -> bool:
        """Whether ``record`` belongs in the index (always ``False`` while offline)."""
        return not self._indexing.offline and self.projector.should_index(record)

    def document_for(self, record: Any) -> dict[str, Any]:
        """Project ``record``, wrapping any failure in ``SerializationError``."""
        try:
            return self.projector.project(record)
        except Exception as e:
            raise SerializationError(self._identify(record), str(e)) from e

    async def index_record(self, record: Any, lifecycle: Lifecycle | str | None = None) -> dict[str, Any] | None:
        """Index (create or replace) one record's document.

        Runs ``after_index_on_<lifecycle>`` hooks, then ``after_index`` hooks,
        then, when percolating, ``percolate`` hooks with the matched queries.

        Args:
            record: The record to index.
            lifecycle: ``Lifecycle.CREATE`` / ``Lifecycle.UPDATE`` when called from a commit hook.

        Returns:
            The engine's response, or ``None`` when indexing is offline.

        Raises:
            SerializationError: If the record cannot be projected.
            BackendError: If the index request fails.
        """
        if self._indexing.offline:
            logger.debug("Indexing offline; skipping %s", self._identify(record))
            return None

        record_id = self._identify(record)
        document = self.document_for(record)
        query = {"percolate": "*"} if self.config.percolate else None

        response = await self.transport.request(
            "put",
            self.config.index_type_path(record_id),
            query=query,
            json_body=document,
        )
        logger.debug("Indexed %s %s", self.config.name, record_id)

        if lifecycle is not None:
            await self.hooks.run(f"after_index_on_{Lifecycle(lifecycle).value}", record)
        await self.hooks.run("after_index", record)

        if self.config.percolate:
            matches = response.get("matches") or []
            if matches:
                await self.hooks.run("percolate", record, matches)
        return response

    async def delete_record(self, identifier: Any) -> None:
        """Remove one document from the index. Missing documents are not an error."""
        try:
            await self.transport.request("delete", self.config.index_type_path(str(identifier)))
            logger.debug("Deleted %s %s from index", self.config.name, identifier)
        except BackendError as e:
            logger.warning("Unable to delete %s %s from index: %s", self.config.name, identifier, e)

    async def percolate(self, record: Any) -> list[Any]:
        """Return the stored queries matching ``record``'s document.

        The record does not need to be persisted or indexed.
        """
        response = await self.transport.request(
            "get",
            self.config.index_type_path("_percolate"),
            json_body={"doc": self.document_for(record)},
        )
        return list(response.get("matches") or [])

    async def handle_commit(self, record: Any, event: Lifecycle | str) -> None:
        """Entry point for the host's after-commit hooks."""
        event = Lifecycle(event)
        if event is Lifecycle.DESTROY:
            await self.delete_record(self._identify(record))
        elif self.should_index(record):
            await self.index_record(record, event)

    # ── Bulk ─────────────────────────────────────────────────────────────

    async def reindex_batch(
        self,
        scope: Any = None,
        batch_size: int | None = None,
        start_after: str | None = None,
    ) -> list[str]:
        """Reindex every record of ``scope`` with one bulk request per batch.

        Records are walked in identifier order, each batch starting after
        the last identifier of the previous one, so records written during
        the run cannot shift later batches.

        Args:
            scope: Host-defined record selection passed to ``RecordSource.fetch_batch``.
            batch_size: Records per batch (default: ``settings.indexing.batch_size``).
            start_after: Resume after this identifier.

        Returns:
            Identifiers of records that could not be indexed, in first-seen order.

        Raises:
            ConfigurationError: If the indexer has no record source.
        """
        if self.source is None:
            raise ConfigurationError("reindex_batch needs a RecordSource")
        batch_size = batch_size or self._indexing.batch_size

        await self.update_index_mapping()

        failed: dict[str, None] = {}
        after = start_after
        batch_number = 0
        while True:
            records = await self.source.fetch_batch(scope, after, batch_size)
            if not records:
                break
            batch_number += 1
            logger.debug("Reindexing %s batch #%d (%d records)", self.config.name, batch_number, len(records))

            for record_id in await self._index_batch(records, batch_number):
                failed[record_id] = None

            after = self.source.identify(records[-1])
            if len(records) < batch_size:
                break

        if failed:
            logger.warning("Reindexing %s finished with %d failed records", self.config.name, len(failed))
        return list(failed)

    async def _index_batch(self, records: list[Any], batch_number: int) -> list[str]:
        failed: list[str] = []
        lines: list[str] = []
        sent: list[str] = []

        for record in records:
            record_id = self.source.identify(record) if self.source else self._identify(record)
            try:
                if not self.should_index(record):
                    continue
                document = json.dumps(self.projector.project(record))
            except Exception as e:
                failed.append(record_id)
                logger.warning("Unable to bulk index %s %s: %s", self.config.name, record_id, e)
                continue
            lines.append(json.dumps(self.bulk_action(record_id)))
            lines.append(document)
            sent.append(record_id)

        if not lines:
            return failed

        try:
            response = await self.transport.request("post", "/_bulk", body=bulk_body(lines))
        except BackendError as e:
            logger.warning("Error indexing %s batch #%d: %s", self.config.name, batch_number, e)
            return failed + sent

        if response.get("errors"):
            for item_id, error in _bulk_item_errors(response):
                logger.warning("Bulk index rejected %s %s: %s", self.config.name, item_id, error)
                failed.append(item_id)
        return failed

    def bulk_action(self, record_id: str) -> dict[str, Any]:
        return {"index": {"_index": self.config.index, "_type": self.config.type, "_id": record_id}}

    # ── Index administration ─────────────────────────────────────────────

    async def create_index(self) -> dict[str, Any]:
        """Create the index with the configured settings and mapping."""
        body: dict[str, Any] = {}
        if self.config.index_options:
            body["settings"] = self.config.index_options
        if self.config.mapping:
            body["mappings"] = {self.config.type: self.config.mapping}
        return await self.transport.request("put", self.config.index_path(), json_body=body)

    async def index_exists(self) -> bool:
        try:
            await self.transport.request("head", self.config.index_path())
        except BackendError as e:
            if e.not_found:
                return False
            raise
        return True

    async def update_index_mapping(self) -> dict[str, Any] | None:
        """Send the configured mapping, creating the index first if needed."""
        if not self.config.mapping:
            return None
        if not await self.index_exists():
            await self.create_index()
        return await self.transport.request(
            "put",
            self.config.index_type_path("_mapping"),
            json_body={self.config.type: self.config.mapping},
        )

    async def refresh_index(self) -> dict[str, Any]:
        """Make all operations since the last refresh visible to search."""
        return await self.transport.request("post", self.config.index_path("_refresh"))

    async def delete_index(self) -> dict[str, Any]:
        return await self.transport.request("delete", self.config.index_path())

    async def clean_index(self) -> dict[str, Any]:
        """Delete all documents of this entity's type."""
        return await self.transport.request("delete", self.config.index_type_path())

    async def disable_refresh(self) -> dict[str, Any]:
        return await self._set_refresh_interval("-1")

    async def enable_refresh(self) -> dict[str, Any]:
        return await self._set_refresh_interval("1s")

    async def optimize(self) -> dict[str, Any]:
        return await self.transport.request("post", self.config.index_path("_optimize"))

    async def _set_refresh_interval(self, interval: str) -> dict[str, Any]:
        return await self.transport.request(
            "put",
            self.config.index_path("_settings"),
            json_body={"index": {"refresh_interval": interval}},
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _identify(self, record: Any) -> str:
        return self.projector.identify(record)


def bulk_body(lines: list[str]) -> str:
    """Join NDJSON lines; the bulk API requires a trailing newline."""
    return "".join(f"{line}\n" for line in lines)


def _bulk_item_errors(response: dict[str, Any]) -> list[tuple[str, Any]]:
    errors: list[tuple[str, Any]] = []
    for item in response.get("items") or []:
        for result in item.values():
            if isinstance(result, dict) and result.get("error"):
                errors.append((str(result.get("_id")), result["error"]))
    return errors
