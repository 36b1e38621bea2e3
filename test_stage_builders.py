"""
Tests for the five stage builders.
"""

import logging

import pytest

from query_engine.core.errors import ConfigurationError
from query_engine.core.models import RESERVED_KEYS, EngineSettings
from query_engine.params import ParameterBag
from query_engine.query import (
    FilterCondition,
    FilterStageBuilder,
    PaginationStageBuilder,
    ProjectionMode,
    ProjectionStageBuilder,
    SearchStageBuilder,
    SortDirection,
    SortField,
    SortStageBuilder,
)

SETTINGS = EngineSettings()


# --- Search ---

def test_search_builds_or_group_over_declared_fields():
    builder = SearchStageBuilder(["email", "name.firstName"])
    stage = builder.build(ParameterBag({"searchTerm": "john"}))

    assert stage.term == "john"
    assert stage.fields == ("email", "name.firstName")
    assert not stage.is_empty
    assert builder.warnings == []


def test_search_keeps_surrounding_whitespace_of_term():
    """Trimming only decides emptiness; the term itself is matched as given."""
    stage = SearchStageBuilder(["email"]).build(ParameterBag({"searchTerm": "john "}))
    assert stage.term == "john "


@pytest.mark.parametrize("params", [{}, {"searchTerm": ""}, {"searchTerm": "   "}])
def test_search_without_term_is_noop(params):
    stage = SearchStageBuilder(["email"]).build(ParameterBag(params))
    assert stage.is_empty


def test_search_with_no_searchable_fields_warns(caplog):
    """A term with an empty whitelist is ignored, but never silently."""
    builder = SearchStageBuilder([])
    with caplog.at_level(logging.WARNING):
        stage = builder.build(ParameterBag({"searchTerm": "john"}))

    assert stage.is_empty
    assert len(builder.warnings) == 1
    assert "searchable" in caplog.text


def test_search_deduplicates_fields():
    builder = SearchStageBuilder(["email", " email", ""])
    assert builder.searchable_fields == ("email",)


# --- Filter ---

def test_filter_copies_non_reserved_keys_as_equality():
    params = ParameterBag({
        "searchTerm": "x", "sort": "age", "page": "1", "limit": "2", "fields": "a",
        "name.firstName": "John", "age": "23",
    })
    stage = FilterStageBuilder().build(params)

    assert stage.conditions == (
        FilterCondition(field="age", operator="eq", value="23"),
        FilterCondition(field="name.firstName", operator="eq", value="John"),
    )
    assert not set(stage.fields) & RESERVED_KEYS


def test_filter_repeated_key_becomes_membership():
    stage = FilterStageBuilder().build(ParameterBag({"status": ["active", "blocked"]}))

    assert stage.conditions == (
        FilterCondition(field="status", operator="in", value=("active", "blocked")),
    )


def test_filter_reserved_keys_win_over_whitelist():
    """Even a whitelisted field named like a reserved key is never filtered."""
    builder = FilterStageBuilder(filterable_fields=["sort", "age"])
    stage = builder.build(ParameterBag({"sort": "age", "age": "3"}))

    assert stage.fields == ("age",)


def test_filter_rejects_keys_outside_whitelist():
    builder = FilterStageBuilder(filterable_fields=["age"])
    with pytest.raises(ConfigurationError) as exc_info:
        builder.build(ParameterBag({"password": "x"}))
    assert exc_info.value.details["field"] == "password"


@pytest.mark.parametrize("key", ["$where", "$or", "name.$ne", "profile.$expr.x"])
def test_filter_rejects_operator_keys(key):
    """Keys that look like store operators never become conditions."""
    with pytest.raises(ConfigurationError) as exc_info:
        FilterStageBuilder().build(ParameterBag({key: "sleep(5000) || true"}))
    assert exc_info.value.details["field"] == key


def test_filter_allows_dollar_inside_segment():
    stage = FilterStageBuilder().build(ParameterBag({"price$usd": "10"}))
    assert stage.fields == ("price$usd",)


def test_filter_keeps_range_looking_values_verbatim():
    stage = FilterStageBuilder().build(ParameterBag({"age": ">20"}))
    assert stage.conditions[0].value == ">20"


# --- Sort ---

def test_sort_parses_directions():
    stage = SortStageBuilder(SETTINGS).build(ParameterBag({"sort": "name.firstName,-age"}))

    assert stage.fields == (
        SortField(field="name.firstName", direction=SortDirection.asc),
        SortField(field="age", direction=SortDirection.desc),
    )


@pytest.mark.parametrize("params", [{}, {"sort": ""}, {"sort": " , -"}])
def test_sort_defaults_to_newest_first(params):
    stage = SortStageBuilder(SETTINGS).build(ParameterBag(params))
    assert stage.fields == (SortField(field="createdAt", direction=SortDirection.desc),)


def test_sort_default_field_is_configurable():
    settings = EngineSettings(default_sort_field="updatedAt")
    stage = SortStageBuilder(settings).build(ParameterBag({}))
    assert stage.fields[0].field == "updatedAt"


def test_sort_first_occurrence_of_field_wins():
    stage = SortStageBuilder(SETTINGS).build(ParameterBag({"sort": "-age,age,+name"}))
    assert [(s.field, s.direction.value) for s in stage.fields] == [
        ("age", "desc"),
        ("name", "asc"),
    ]


# --- Pagination ---

def test_pagination_computes_skip():
    stage = PaginationStageBuilder(SETTINGS).build(ParameterBag({"page": "3", "limit": "20"}))

    assert stage.page == 3
    assert stage.limit == 20
    assert stage.skip == 40


@pytest.mark.parametrize("page,limit", [
    ("0", "0"), ("-2", "-5"), ("abc", "x"), ("1.5", "2.5"), ("", ""),
])
def test_pagination_falls_back_on_malformed_values(page, limit):
    stage = PaginationStageBuilder(SETTINGS).build(ParameterBag({"page": page, "limit": limit}))

    assert stage.page == 1
    assert stage.limit == 10
    assert stage.skip == 0


def test_pagination_uses_configured_defaults():
    settings = EngineSettings(default_limit=25)
    stage = PaginationStageBuilder(settings).build(ParameterBag({"page": "2"}))
    assert stage.skip == 25


# --- Projection ---

def test_projection_include_mode():
    stage = ProjectionStageBuilder(SETTINGS).build(ParameterBag({"fields": "name,email,name"}))

    assert stage.mode == ProjectionMode.include
    assert stage.fields == ("name", "email")


def test_projection_defaults_to_excluding_version_field():
    stage = ProjectionStageBuilder(SETTINGS).build(ParameterBag({}))

    assert stage.mode == ProjectionMode.exclude
    assert stage.fields == ("__version",)


def test_projection_exclude_only_list():
    stage = ProjectionStageBuilder(SETTINGS).build(ParameterBag({"fields": "-password,-__version"}))

    assert stage.mode == ProjectionMode.exclude
    assert stage.fields == ("password", "__version")


def test_projection_rejects_mixed_syntax():
    with pytest.raises(ConfigurationError):
        ProjectionStageBuilder(SETTINGS).build(ParameterBag({"fields": "name,-email"}))
