"""Core — query translation, result assembly and indexing."""

from searchsync.core.conditions import CallableCondition, CapabilityObject, NamedMethod
from searchsync.core.contracts import DocumentProjector, FieldProjector, IndexHooks, Lifecycle, RecordSource
from searchsync.core.indexer import Indexer
from searchsync.core.searcher import Searcher

__all__ = [
    "CallableCondition",
    "CapabilityObject",
    "DocumentProjector",
    "FieldProjector",
    "IndexHooks",
    "Indexer",
    "Lifecycle",
    "NamedMethod",
    "RecordSource",
    "Searcher",
]
