"""Facets — Build engine facet clauses and summarize the buckets that come back.

Request side::

    {"title": {"terms": {"field": "title", "size": 5}},
     "number": {"range": {"field": "number", "ranges": [{"from": "1", "to": "3"}, {"from": "3"}]}}}

Response side: each requested facet is read back according to the kind it
was requested as, never by guessing from the bucket's shape.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from searchsync.exceptions import InvalidFacetSpec
from searchsync.models.result import FacetSummary, RangeFacetSummary, TermFacetSummary
from searchsync.models.search import RangeFacetRequest, TermFacetRequest

logger = logging.getLogger(__name__)

RANGE_SEPARATOR = "|"


def parse_range(spec: str) -> tuple[str | None, str | None]:
    """Split a ``lower|upper`` range string once on ``|``.

    Empty sides become ``None``. Bound tokens are not interpreted.

    Raises:
        InvalidFacetSpec: If there is no separator or both bounds are empty.
    """
    if not isinstance(spec, str) or RANGE_SEPARATOR not in spec:
        raise InvalidFacetSpec(f"Range {spec!r} must look like 'lower|upper'")
    lower, upper = spec.split(RANGE_SEPARATOR, 1)
    if not lower and not upper:
        raise InvalidFacetSpec(f"Range {spec!r} needs at least one bound")
    return lower or None, upper or None


def range_label(lower: Any, upper: Any) -> str:
    return f"{'' if lower is None else lower}{RANGE_SEPARATOR}{'' if upper is None else upper}"


def build_term_facets(requests: Iterable[TermFacetRequest]) -> dict[str, Any]:
    return {req.field: {"terms": {"field": req.field, "size": req.size}} for req in requests}


def build_range_facets(requests: Iterable[RangeFacetRequest]) -> dict[str, Any]:
    facets: dict[str, Any] = {}
    for req in requests:
        if not req.ranges:
            raise InvalidFacetSpec(f"Range facet on '{req.field}' has no ranges")
        ranges = []
        for spec in req.ranges:
            lower, upper = parse_range(spec)
            bounds: dict[str, str] = {}
            if lower is not None:
                bounds["from"] = lower
            if upper is not None:
                bounds["to"] = upper
            ranges.append(bounds)
        facets[req.field] = {"range": {"field": req.field, "ranges": ranges}}
    return facets


def build_facets(
    term_facets: Iterable[TermFacetRequest],
    range_facets: Iterable[RangeFacetRequest],
) -> dict[str, Any]:
    """Build the merged facets clause.

    Raises:
        InvalidFacetSpec: If a range is malformed or a field is requested twice.
    """
    term_facets = list(term_facets)
    range_facets = list(range_facets)
    _reject_duplicates([req.field for req in term_facets] + [req.field for req in range_facets])
    return {**build_term_facets(term_facets), **build_range_facets(range_facets)}


def _reject_duplicates(fields: list[str]) -> None:
    seen: set[str] = set()
    for field in fields:
        if field in seen:
            raise InvalidFacetSpec(f"Facet on '{field}' requested more than once")
        seen.add(field)


# ── Response mapping ─────────────────────────────────────────────────────


def map_facets(
    buckets: Mapping[str, Any],
    term_facets: Iterable[TermFacetRequest],
    range_facets: Iterable[RangeFacetRequest],
) -> dict[str, FacetSummary]:
    """Summarize facet buckets for every requested facet, in request order.

    Facets that are missing from the response, or whose buckets do not
    have the requested kind's shape, are logged and left out.
    """
    summaries: dict[str, FacetSummary] = {}

    for term_req in term_facets:
        bucket = buckets.get(term_req.field)
        if not isinstance(bucket, Mapping) or not isinstance(bucket.get("terms"), list):
            _log_unusable(term_req.field, "terms", bucket)
            continue
        summaries[term_req.field] = term_summary(bucket)

    for range_req in range_facets:
        bucket = buckets.get(range_req.field)
        if not isinstance(bucket, Mapping) or not isinstance(bucket.get("ranges"), list):
            _log_unusable(range_req.field, "range", bucket)
            continue
        summaries[range_req.field] = range_summary(range_req, bucket)

    return summaries


def term_summary(bucket: Mapping[str, Any]) -> TermFacetSummary:
    return TermFacetSummary(
        counts=[(entry.get("term"), int(entry.get("count", 0))) for entry in bucket["terms"]],
        missing=int(bucket.get("missing", 0) or 0),
        other=int(bucket.get("other", 0) or 0),
    )


def range_summary(request: RangeFacetRequest, bucket: Mapping[str, Any]) -> RangeFacetSummary:
    """Label each range bucket with the string it was requested as.

    The engine answers ranges in request order; a bucket beyond the
    requested ones is labelled from the bounds the engine echoes back.
    """
    counts: list[tuple[str, int]] = []
    for position, entry in enumerate(bucket["ranges"]):
        if position < len(request.ranges):
            label = range_label(*parse_range(request.ranges[position]))
        else:
            label = range_label(_echo(entry, "from"), _echo(entry, "to"))
        counts.append((label, int(entry.get("count", 0))))
    return RangeFacetSummary(counts=counts)


def _echo(entry: Mapping[str, Any], side: str) -> Any:
    value = entry.get(f"{side}_str", entry.get(side))
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _log_unusable(field: str, kind: str, bucket: Any) -> None:
    if bucket is None:
        logger.warning("Facet '%s' missing from search response", field)
    else:
        logger.warning("Facet '%s' response is not a %s facet: %s", field, kind, bucket)
