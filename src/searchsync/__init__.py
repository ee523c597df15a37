"""searchsync — Keep relational records in sync with a full-text search index.

Indexing pushes record documents into the engine on create/update/destroy;
searching translates a small query DSL (free text, sort, paging, term and
range facets) into the engine's request JSON and rehydrates hits back into
ordered records from the source of record.
"""

__version__ = "0.1.0"
