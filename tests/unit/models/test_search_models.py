"""Tests for search option and result models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from searchsync.models.result import RangeFacetSummary, SearchResult, TermFacetSummary
from searchsync.models.search import RangeFacetRequest, SearchOptions, TermFacetRequest


class TestSearchOptions:
    def test_defaults(self) -> None:
        options = SearchOptions()

        assert options.page == 1
        assert options.per_page is None
        assert options.sort is None
        assert options.fields == ["_id"]
        assert options.default_operator is None
        assert not options.has_facets

    def test_term_facet_shorthand(self) -> None:
        options = SearchOptions(term_facets=[{"title": 5}, ("name", 3), {"field": "kind", "size": 2}])

        assert options.term_facets == [
            TermFacetRequest(field="title", size=5),
            TermFacetRequest(field="name", size=3),
            TermFacetRequest(field="kind", size=2),
        ]
        assert options.has_facets

    def test_range_facet_shorthand(self) -> None:
        options = SearchOptions(range_facets=[{"number": ["1|3", "3|"]}])
        assert options.range_facets == [RangeFacetRequest(field="number", ranges=["1|3", "3|"])]

    def test_operator_normalized(self) -> None:
        assert SearchOptions(default_operator="and").default_operator == "AND"

    def test_unknown_operator(self) -> None:
        with pytest.raises(ValidationError):
            SearchOptions(default_operator="xor")

    def test_single_field(self) -> None:
        assert SearchOptions(fields="_id").fields == ["_id"]

    @pytest.mark.parametrize("bad", [{"page": 0}, {"per_page": 0}, {"term_facets": [{"title": 0}]}])
    def test_invalid_values(self, bad: dict) -> None:
        with pytest.raises(ValidationError):
            SearchOptions(**bad)

    def test_empty_facet_field(self) -> None:
        with pytest.raises(ValidationError):
            TermFacetRequest(field="")


class TestSearchResult:
    @pytest.mark.parametrize(("total", "per_page", "pages"), [(0, 20, 0), (1, 20, 1), (20, 20, 1), (21, 20, 2)])
    def test_total_pages(self, total: int, per_page: int, pages: int) -> None:
        result = SearchResult(page=1, per_page=per_page, total_entries=total)
        assert result.total_pages == pages

    def test_offset(self) -> None:
        assert SearchResult(page=3, per_page=10).offset == 20

    def test_facet_kind_discriminator(self) -> None:
        result = SearchResult.model_validate(
            {
                "page": 1,
                "per_page": 10,
                "facets": {
                    "title": {"kind": "terms", "counts": [["AA", 3]], "missing": 1},
                    "number": {"kind": "range", "counts": [["1|3", 2]]},
                },
            }
        )

        assert isinstance(result.facets["title"], TermFacetSummary)
        assert isinstance(result.facets["number"], RangeFacetSummary)
        assert result.facets["title"].counts == [("AA", 3)]
        assert result.facets["number"].as_dict() == {"1|3": 2}
