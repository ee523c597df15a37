"""Contracts — Interfaces searchsync consumes from the host application.

The host supplies:
  1. a ``RecordSource`` to load records by identifier and in batches
  2. a ``DocumentProjector`` turning a record into its index document
  3. optionally, ``IndexHooks`` callbacks run after indexing
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from searchsync.core.conditions import as_conditions, evaluate_conditions


class Lifecycle(str, Enum):
    """Commit events reported by the host's persistence layer."""

    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"


def record_identifier(record: Any, attribute: str = "id") -> str:
    """Read a record's identifier from a mapping key or an attribute."""
    value = record[attribute] if isinstance(record, Mapping) else getattr(record, attribute)
    return str(value)


class RecordSource(ABC):
    """Source of record for the indexed entity.

    Attributes:
        id_attribute: Attribute (or mapping key) holding the record identifier.
    """

    id_attribute: str = "id"

    @abstractmethod
    async def find_by_ids(self, ids: list[str]) -> list[Any]:
        """Load the records with the given identifiers in one batched call.

        Order of the returned records does not matter. Identifiers that no
        longer exist are simply absent.
        """

    @abstractmethod
    async def fetch_batch(self, scope: Any, after: str | None, limit: int) -> list[Any]:
        """Load up to ``limit`` records of ``scope`` ordered by identifier.

        Args:
            scope: Host-defined selection of records (``None`` = all).
            after: Only return records whose identifier sorts after this one.
            limit: Maximum number of records.
        """

    def identify(self, record: Any) -> str:
        return record_identifier(record, self.id_attribute)


class DocumentProjector(ABC):
    """Turns records into index documents and decides which records are indexed.

    Args:
        if_: Condition(s) that must all hold for a record to be indexed.
        unless: Condition(s) of which none may hold.
        id_attribute: Attribute (or mapping key) holding the record identifier.
    """

    def __init__(self, if_: Any = None, unless: Any = None, id_attribute: str = "id") -> None:
        self._if = as_conditions(if_)
        self._unless = as_conditions(unless)
        self.id_attribute = id_attribute

    @abstractmethod
    def project(self, record: Any) -> dict[str, Any]:
        """Return the JSON-serializable document to index for ``record``."""

    def should_index(self, record: Any) -> bool:
        return evaluate_conditions(record, self._if, self._unless)

    def identify(self, record: Any) -> str:
        return record_identifier(record, self.id_attribute)


class FieldProjector(DocumentProjector):
    """Project a fixed list of attributes (and zero-argument methods) of a record.

    Dates and decimals are converted to JSON-friendly values.

    Example:
        >>> projector = FieldProjector(["title", "body"], methods=["author_name"])
    """

    def __init__(
        self,
        fields: list[str],
        methods: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.fields = list(fields)
        self.methods = list(methods or [])

    def project(self, record: Any) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        for field in self.fields:
            value = record[field] if isinstance(record, Mapping) else getattr(record, field)
            doc[field] = _jsonable(value)
        for method in self.methods:
            doc[method] = _jsonable(getattr(record, method)())
        return doc


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    return value


class IndexHooks:
    """Callbacks run by ``Indexer`` after a record is indexed.

    Events:
      - ``after_index_on_create`` / ``after_index_on_update``: ``hook(record)``
        after indexing for that lifecycle
      - ``after_index``: ``hook(record)`` after every index operation
      - ``percolate``: ``hook(record, matches)`` when percolation matched
        stored queries

    Hooks may be plain functions or coroutine functions.
    """

    EVENTS = ("after_index_on_create", "after_index_on_update", "after_index", "percolate")

    def __init__(self) -> None:
        self._hooks: dict[str, list[Callable[..., Any]]] = {event: [] for event in self.EVENTS}

    def register(self, event: str, hook: Callable[..., Any]) -> Callable[..., Any]:
        """Register ``hook`` for ``event`` and return it."""
        if event not in self._hooks:
            raise ValueError(f"Unknown hook event '{event}'. Available events: {list(self.EVENTS)}")
        self._hooks[event].append(hook)
        return hook

    def on(self, event: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of ``register``."""

        def decorator(hook: Callable[..., Any]) -> Callable[..., Any]:
            return self.register(event, hook)

        return decorator

    def hooks_for(self, event: str) -> list[Callable[..., Any]]:
        return list(self._hooks.get(event, []))

    async def run(self, event: str, *args: Any) -> None:
        for hook in self._hooks.get(event, []):
            result = hook(*args)
            if inspect.isawaitable(result):
                await result
