"""CLI entry point for searchsync — search and index administration."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from searchsync.core.contracts import RecordSource

if TYPE_CHECKING:
    from searchsync.config.settings import IndexConfig, Settings


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from searchsync.config.settings import Settings
    from searchsync.exceptions import SearchSyncError
    from searchsync.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            return 1
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    if args.log_level:
        settings.observability.log_level = args.log_level
    setup_logging(settings.observability)

    try:
        output = asyncio.run(args.handler(settings, args))
    except SearchSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, default=str))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="searchsync",
        description="searchsync — keep records in sync with a full-text search index",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"searchsync {_get_version()}")

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Run a search and print hit identifiers and facets")
    search.add_argument("entity", help="Configured index (entity) name")
    search.add_argument("query", help="query_string query")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--per-page", type=int, default=None)
    search.add_argument("--sort", type=str, default=None, help="Raw sort string, e.g. 'created_at:desc'")
    search.add_argument("--operator", choices=["AND", "OR", "and", "or"], default=None)
    search.add_argument(
        "--term-facet",
        action="append",
        type=_parse_term_facet,
        default=[],
        metavar="FIELD:SIZE",
        help="Term facet (repeatable)",
    )
    search.add_argument(
        "--range-facet",
        action="append",
        type=_parse_range_arg,
        default=[],
        metavar="FIELD:LOWER|UPPER",
        help="Range facet (repeatable)",
    )
    search.set_defaults(handler=_search)

    for name, method, help_text in (
        ("create-index", "create_index", "Create the index with configured settings and mapping"),
        ("delete-index", "delete_index", "Delete the whole index"),
        ("refresh-index", "refresh_index", "Refresh the index"),
        ("update-mapping", "update_index_mapping", "Send the configured mapping"),
    ):
        admin = commands.add_parser(name, help=help_text)
        admin.add_argument("entity", help="Configured index (entity) name")
        admin.set_defaults(handler=_admin, method=method)

    health = commands.add_parser("health", help="Show search backend health")
    health.set_defaults(handler=_health)

    return parser


# ── Handlers ─────────────────────────────────────────────────────────────


async def _search(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    from searchsync.core.searcher import Searcher
    from searchsync.models.search import SearchOptions
    from searchsync.transport.http import HttpTransport

    options = SearchOptions(
        page=args.page,
        per_page=args.per_page,
        sort=args.sort,
        default_operator=args.operator,
        term_facets=args.term_facet,
        range_facets=_group_ranges(args.range_facet),
    )
    async with HttpTransport.from_settings(settings.transport) as transport:
        searcher = Searcher(transport, _index_config(settings, args.entity), _HitSource(), settings)
        result = await searcher.search(args.query, options)

    return {
        "ids": [record["id"] for record in result.records],
        "page": result.page,
        "per_page": result.per_page,
        "total_entries": result.total_entries,
        "facets": {field: summary.model_dump() for field, summary in result.facets.items()},
        "request": json.loads(result.request),
    }


async def _admin(settings: Settings, args: argparse.Namespace) -> Any:
    from searchsync.core.contracts import FieldProjector
    from searchsync.core.indexer import Indexer
    from searchsync.transport.http import HttpTransport

    async with HttpTransport.from_settings(settings.transport) as transport:
        indexer = Indexer(transport, _index_config(settings, args.entity), FieldProjector([]), settings=settings)
        return await getattr(indexer, args.method)()


async def _health(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    from searchsync.transport.http import HttpTransport

    async with HttpTransport.from_settings(settings.transport) as transport:
        health = await transport.health_check()
    return health.model_dump()


# ── Helpers ──────────────────────────────────────────────────────────────


def _index_config(settings: Settings, entity: str) -> IndexConfig:
    from searchsync.config.settings import IndexConfig

    if entity in settings.indices:
        return settings.index_config(entity)
    logging.getLogger(__name__).info("Index '%s' not configured; using defaults", entity)
    return IndexConfig(name=entity).resolve(settings.indexing.default_index)


def _parse_term_facet(spec: str) -> dict[str, Any]:
    field, _, size = spec.rpartition(":")
    if not field or not size.isdigit():
        raise argparse.ArgumentTypeError(f"Term facet must look like FIELD:SIZE, got {spec!r}")
    return {"field": field, "size": int(size)}


def _parse_range_arg(spec: str) -> tuple[str, str]:
    field, sep, bounds = spec.partition(":")
    if not sep or not field:
        raise argparse.ArgumentTypeError(f"Range facet must look like FIELD:LOWER|UPPER, got {spec!r}")
    return field, bounds


def _group_ranges(ranges: list[tuple[str, str]]) -> list[dict[str, Any]]:
    """Group ``(field, "lower|upper")`` pairs by field, keeping first-seen order."""
    grouped: dict[str, list[str]] = {}
    for field, bounds in ranges:
        grouped.setdefault(field, []).append(bounds)
    return [{"field": field, "ranges": ranges} for field, ranges in grouped.items()]


def _get_version() -> str:
    """Get the package version."""
    try:
        from searchsync import __version__

        return __version__
    except ImportError:
        return "unknown"


class _HitSource(RecordSource):
    """Stand-in source of record: every hit identifier is its own record."""

    async def find_by_ids(self, ids: list[str]) -> list[dict[str, str]]:
        return [{"id": hit_id} for hit_id in ids]

    async def fetch_batch(self, scope: Any, after: str | None, limit: int) -> list[Any]:
        return []


if __name__ == "__main__":
    sys.exit(main())
