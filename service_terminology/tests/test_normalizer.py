"""
Unit tests for search normalization.
"""

import pytest
from pydantic import ValidationError

from service_terminology.app.search import (
    EntityKind,
    SearchNormalizer,
    SearchRequest,
    add_wildcards,
    apply_active_filter,
    get_entity_kind,
    normalize,
)


PLAIN_KIND = EntityKind(name="audit_entry")


class TestActiveFilter:
    """Test cases for the active-only filter."""

    def test_empty_query_becomes_filter(self):
        result = normalize(SearchRequest(active_only=True, query=""), "refset")

        assert result.query == "active:true"

    def test_filter_appended_to_query(self):
        result = normalize(SearchRequest(active_only=True, query="status:draft"), "refset")

        assert result.query == "status:draft AND active:true"

    def test_whitespace_query_treated_as_empty(self):
        result = normalize(SearchRequest(active_only=True, query="   "), "refset")

        assert result.query == "active:true"

    def test_opt_out(self):
        result = normalize(SearchRequest(active_only=False, query=""), "project")

        assert result.query == ""
        assert result.matches_all

    @pytest.mark.parametrize("kind", [
        "edition", "project", "map_project", "organization", "team", "user", "artifact",
    ])
    def test_kind_default_applies_when_unset(self, kind):
        assert normalize(SearchRequest(query=""), kind).query == "active:true"
        assert normalize(SearchRequest(active_only=False), kind).query == ""

    @pytest.mark.parametrize("kind", ["refset", "map_set", "map_advice", "map_relation"])
    def test_no_default_filter(self, kind):
        assert normalize(SearchRequest(), kind).query == ""

    def test_default_filter_appended_to_expanded_query(self):
        result = normalize(SearchRequest(query="cardio"), "organization")

        assert result.query == "cardio* AND active:true"

    def test_apply_active_filter(self):
        assert apply_active_filter("") == "active:true"
        assert apply_active_filter("name:x") == "name:x AND active:true"


class TestWildcards:
    """Test cases for wildcard expansion."""

    def test_bare_term_expanded(self):
        result = normalize(SearchRequest(query="diabetes"), "refset")

        assert result.query == "diabetes*"

    def test_expansion_is_idempotent(self):
        first = normalize(SearchRequest(query="diabetes"), "refset")
        second = normalize(SearchRequest(query=first.query), "refset")

        assert second.query == first.query

    @pytest.mark.parametrize("query", [
        "diabetes mellitus",
        "name:heart AND active:true",
        '(name:"heart failure" OR cardio) AND NOT organizationId:42',
        "-retired +name:card",
    ])
    def test_idempotent_for_compound_queries(self, query):
        kind = get_entity_kind("refset")
        once = add_wildcards(query, kind)

        assert add_wildcards(once, kind) == once

    def test_wildcard_fields_expanded(self):
        kind = get_entity_kind("refset")

        assert add_wildcards("name:heart AND editionName:snomed", kind) == "name:heart* AND editionName:snomed*"

    def test_other_fields_untouched(self):
        kind = get_entity_kind("refset")

        assert add_wildcards("status:draft AND organizationId:abc", kind) == "status:draft AND organizationId:abc"

    def test_operators_and_grouping_untouched(self):
        kind = get_entity_kind("refset")

        assert add_wildcards("(heart OR lung) AND NOT kidney", kind) == "(heart* OR lung*) AND NOT kidney*"
        assert add_wildcards("heart && lung || !kidney", kind) == "heart* && lung* || !kidney*"

    def test_quoted_phrases_untouched(self):
        kind = get_entity_kind("refset")

        assert add_wildcards('"heart attack" name:"blood pressure"', kind) == '"heart attack" name:"blood pressure"'

    def test_existing_wildcards_and_modifiers_untouched(self):
        kind = get_entity_kind("refset")

        assert add_wildcards("hea*t diab?tes fuzzy~ boost^2", kind) == "hea*t diab?tes fuzzy~ boost^2"

    def test_prefix_operators_kept(self):
        kind = get_entity_kind("refset")

        assert add_wildcards("+heart -name:lung", kind) == "+heart* -name:lung*"

    def test_kind_without_wildcard_fields(self):
        assert add_wildcards("diabetes name:heart", PLAIN_KIND) == "diabetes name:heart"

    def test_exact_match_fields_excluded(self):
        kind = EntityKind(name="custom", wildcard_fields=frozenset({"name"}))

        assert add_wildcards("projectId:p1 name:x", kind) == "projectId:p1 name:x*"
        assert "projectId" not in get_entity_kind("refset").wildcard_fields


class TestPaging:
    """Test cases for paging and sort settlement."""

    def test_unset_paging_passes_through(self):
        pfs = normalize(SearchRequest(query="x"), "refset").pfs

        assert pfs.offset is None
        assert pfs.limit is None
        assert pfs.sort is None
        assert pfs.ascending is False

    def test_caller_paging_kept(self):
        request = SearchRequest(offset=20, limit=10, sort="modified", sort_ascending=True)
        pfs = normalize(request, "refset").pfs

        assert (pfs.offset, pfs.limit, pfs.sort, pfs.ascending) == (20, 10, "modified", True)

    def test_kind_default_sort(self):
        assert normalize(SearchRequest(), "project").pfs.sort == "name"
        assert normalize(SearchRequest(sort="created"), "project").pfs.sort == "created"

    @pytest.mark.parametrize("kind", ["edition", "refset", "user", "artifact"])
    def test_kinds_without_default_sort(self, kind):
        assert normalize(SearchRequest(), kind).pfs.sort is None

    def test_missing_request(self):
        result = normalize(None, "edition")

        assert result.query == "active:true"
        assert result.pfs.ascending is False

    @pytest.mark.parametrize("field,value", [("limit", 0), ("offset", -1)])
    def test_invalid_paging_rejected(self, field, value):
        with pytest.raises(ValidationError):
            SearchRequest(**{field: value})


class TestSearchNormalizer:
    """Test cases for entity kind resolution."""

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown entity kind"):
            normalize(SearchRequest(), "concept_map")

    def test_custom_registry(self):
        normalizer = SearchNormalizer({"widget": EntityKind(name="widget", active_by_default=True)})

        result = normalizer.normalize(SearchRequest(query="gear"), "widget")

        assert result.query == "gear AND active:true"
        with pytest.raises(ValueError):
            normalizer.resolve_kind("refset")

    def test_kind_instance_accepted(self):
        result = SearchNormalizer().normalize(SearchRequest(query="x"), PLAIN_KIND)

        assert result.query == "x"
