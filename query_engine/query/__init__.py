"""Stage builders, expansion resolution and the execution plan."""

from query_engine.query.plan import (
    CombinedFilter,
    ExecutionPlan,
    ExpansionNode,
    FilterCondition,
    FilterStage,
    PaginationStage,
    ProjectionMode,
    ProjectionStage,
    SearchStage,
    SortDirection,
    SortField,
    SortStage,
)
from query_engine.query.search_builder import SearchStageBuilder
from query_engine.query.filter_builder import FilterStageBuilder
from query_engine.query.sort_builder import SortStageBuilder
from query_engine.query.pagination_builder import PaginationStageBuilder
from query_engine.query.projection_builder import ProjectionStageBuilder
from query_engine.query.expansion_resolver import ExpansionResolver

__all__ = [
    "CombinedFilter",
    "ExecutionPlan",
    "ExpansionNode",
    "FilterCondition",
    "FilterStage",
    "PaginationStage",
    "ProjectionMode",
    "ProjectionStage",
    "SearchStage",
    "SortDirection",
    "SortField",
    "SortStage",
    "SearchStageBuilder",
    "FilterStageBuilder",
    "SortStageBuilder",
    "PaginationStageBuilder",
    "ProjectionStageBuilder",
    "ExpansionResolver",
]
