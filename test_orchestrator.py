"""
Tests for plan construction and the orchestrator.
"""

import random
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from query_engine import ConfigurationError, QueryOrchestrator, build_plan
from query_engine.core.models import RESERVED_KEYS, EngineSettings, QueryResult
from query_engine.execution import ResultFormatter
from query_engine.query import (
    CombinedFilter,
    FilterCondition,
    PaginationStage,
    ProjectionMode,
    SortDirection,
    SortField,
)

SEARCHABLE = ["email", "name.firstName", "presentAddress"]
ALLOWED = ["academicDepartment", "academicDepartment.academicFaculty"]

SCENARIO_A = {
    "searchTerm": "john",
    "age": "23",
    "sort": "name.firstName,-age",
    "page": "2",
    "limit": "5",
    "fields": "name,email",
}


def test_scenario_full_request():
    """Search, filter, sort, paginate and project from one request."""
    plan = build_plan(SCENARIO_A, SEARCHABLE, ALLOWED)

    assert plan.filter.search.fields == tuple(SEARCHABLE)
    assert plan.filter.search.term == "john"
    assert plan.filter.filter.conditions == (
        FilterCondition(field="age", operator="eq", value="23"),
    )
    assert plan.sort.fields == (
        SortField(field="name.firstName", direction=SortDirection.asc),
        SortField(field="age", direction=SortDirection.desc),
    )
    assert plan.pagination.skip == 5
    assert plan.pagination.limit == 5
    assert plan.projection.mode == ProjectionMode.include
    assert plan.projection.fields == ("name", "email")
    assert plan.expansions == ()
    assert plan.warnings == ()


def test_scenario_empty_request_uses_defaults():
    plan = build_plan({}, SEARCHABLE, ALLOWED)

    assert plan.filter.is_empty
    assert [(s.field, s.direction.value) for s in plan.sort.fields] == [("createdAt", "desc")]
    assert plan.pagination.skip == 0
    assert plan.pagination.limit == 10
    assert plan.projection.mode == ProjectionMode.exclude
    assert plan.projection.fields == ("__version",)


def test_scenario_mixed_projection_rejected():
    with pytest.raises(ConfigurationError):
        build_plan({"fields": "name,-email"}, SEARCHABLE, ALLOWED)


def test_scenario_nested_expansion_not_whitelisted():
    with pytest.raises(ConfigurationError):
        build_plan(
            {},
            SEARCHABLE,
            ["academicDepartment"],
            requested_expansions=["academicDepartment.academicFaculty"],
        )


def test_plan_is_deterministic():
    """Same inputs, and any key order, give structurally equal plans."""
    first = build_plan(SCENARIO_A, SEARCHABLE, ALLOWED, ["academicDepartment.academicFaculty"])
    second = build_plan(SCENARIO_A, SEARCHABLE, ALLOWED, ["academicDepartment.academicFaculty"])

    items = list(SCENARIO_A.items())
    random.Random(7).shuffle(items)
    shuffled = build_plan(dict(items), SEARCHABLE, ALLOWED, ["academicDepartment.academicFaculty"])

    assert first == second == shuffled
    assert first.describe() == shuffled.describe()


def test_reserved_keys_never_reach_filter():
    params = {key: "1" for key in RESERVED_KEYS}
    params.update({"status": "active"})
    plan = build_plan(params, SEARCHABLE)

    assert not set(plan.filter.filter.fields) & RESERVED_KEYS
    assert plan.filter.filter.fields == ("status",)


@pytest.mark.parametrize("page,limit", [(1, 1), (2, 5), (7, 3), (100, 50)])
def test_skip_matches_page_and_limit(page, limit):
    plan = build_plan({"page": str(page), "limit": str(limit)})
    assert plan.pagination.skip == (page - 1) * limit
    assert plan.pagination.skip >= 0


def test_builder_invocation_order_does_not_change_plan():
    forward = build_plan(SCENARIO_A, SEARCHABLE, builders=["search", "filter", "sort", "paginate", "project"])
    backward = build_plan(SCENARIO_A, SEARCHABLE, builders=["project", "paginate", "sort", "filter", "search"])

    assert forward == backward
    assert forward.stages[0] == forward.filter


def test_omitted_builders_leave_stages_neutral():
    plan = build_plan(SCENARIO_A, SEARCHABLE, builders=["filter"])

    assert plan.filter.search.is_empty
    assert not plan.filter.filter.is_empty
    assert plan.sort.is_empty
    assert plan.pagination == PaginationStage()
    assert plan.pagination.limit is None
    assert plan.projection.is_empty


def test_unknown_builder_rejected():
    with pytest.raises(ConfigurationError):
        build_plan({}, builders=["search", "group"])


def test_empty_search_whitelist_is_reported_on_plan():
    plan = build_plan({"searchTerm": "john"}, searchable_fields=[])

    assert plan.filter == CombinedFilter()
    assert len(plan.warnings) == 1


def test_plan_is_immutable():
    plan = build_plan({})
    with pytest.raises(ValidationError):
        plan.sort = None


def _orchestrator(documents=None, total=0):
    executor = Mock()
    executor.execute.return_value = QueryResult(
        total_hits=len(documents or []), documents=documents or []
    )
    executor.count.return_value = total
    executor.explain.return_value = {"pipeline": []}
    return QueryOrchestrator(executor, SEARCHABLE, ALLOWED), executor


def test_query_executes_and_attaches_pagination_meta():
    orchestrator, executor = _orchestrator([{"_id": "1"}, {"_id": "2"}], total=12)

    response = orchestrator.query({"page": "2", "limit": "5"})

    assert response["database_query"] == {"pipeline": []}
    results = response["results"]
    assert results.total_hits == 12
    assert results.metadata["pagination"] == {
        "page": 2, "limit": 5, "total": 12, "total_pages": 3,
    }
    executor.execute.assert_called_once_with(response["plan"])


def test_query_without_execute_does_not_touch_store():
    orchestrator, executor = _orchestrator()

    response = orchestrator.query({}, execute=False)

    assert "results" not in response
    executor.execute.assert_not_called()
    executor.count.assert_not_called()


def test_configuration_error_raised_before_store_access():
    orchestrator, executor = _orchestrator()

    with pytest.raises(ConfigurationError):
        orchestrator.query({}, requested_expansions=["user"])

    executor.explain.assert_not_called()
    executor.execute.assert_not_called()


def test_store_errors_propagate_unchanged():
    orchestrator, executor = _orchestrator()
    failure = RuntimeError("connection refused")
    executor.execute.side_effect = failure

    with pytest.raises(RuntimeError) as exc_info:
        orchestrator.query({})
    assert exc_info.value is failure


def test_query_skips_count_when_not_requested():
    orchestrator, executor = _orchestrator([{"_id": "1"}])

    response = orchestrator.query({}, count_total=False)

    executor.count.assert_not_called()
    pagination = response["results"].metadata["pagination"]
    assert pagination["total"] is None
    assert pagination["total_pages"] is None
    assert response["results"].total_hits == 1


def test_page_meta_for_unbounded_and_empty_results():
    assert ResultFormatter.page_meta(PaginationStage(), 4).total_pages == 1
    assert ResultFormatter.page_meta(PaginationStage(page=1, limit=10), 0).total_pages == 0
    meta = ResultFormatter.page_meta(PaginationStage(page=3, limit=10), None)
    assert (meta.page, meta.limit, meta.total, meta.total_pages) == (3, 10, None, None)


def test_settings_from_env_are_applied(monkeypatch):
    monkeypatch.setenv("QUERY_ENGINE_DEFAULT_LIMIT", "25")
    monkeypatch.setenv("QUERY_ENGINE_VERSION_FIELD", "__v")
    monkeypatch.delenv("QUERY_ENGINE_DEFAULT_SORT_FIELD", raising=False)

    settings = EngineSettings.from_env()

    assert settings.default_limit == 25
    assert settings.version_field == "__v"
    assert settings.default_sort_field == "createdAt"

    plan = build_plan({"page": "2"}, settings=settings)
    assert plan.pagination.limit == 25
    assert plan.pagination.skip == 25
    assert plan.projection.fields == ("__v",)


def test_settings_from_env_rejects_invalid_values(monkeypatch):
    monkeypatch.setenv("QUERY_ENGINE_DEFAULT_LIMIT", "0")
    with pytest.raises(ValidationError):
        EngineSettings.from_env()
