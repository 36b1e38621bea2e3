"""
Query orchestrator - main entry point.

Builds execution plans from request parameters and hands them to a storage
adapter.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from query_engine.core.errors import ConfigurationError
from query_engine.core.interfaces import IPlanExecutor
from query_engine.core.models import EngineSettings, RelationSpec
from query_engine.execution.executor import PlanExecutor
from query_engine.params import ParameterBag
from query_engine.query.expansion_resolver import ExpansionResolver
from query_engine.query.filter_builder import FilterStageBuilder
from query_engine.query.pagination_builder import PaginationStageBuilder
from query_engine.query.plan import (
    CombinedFilter,
    ExecutionPlan,
    FilterStage,
    PaginationStage,
    ProjectionStage,
    SearchStage,
    SortStage,
)
from query_engine.query.projection_builder import ProjectionStageBuilder
from query_engine.query.search_builder import SearchStageBuilder
from query_engine.query.sort_builder import SortStageBuilder

logger = logging.getLogger(__name__)

SEARCH = "search"
FILTER = "filter"
SORT = "sort"
PAGINATE = "paginate"
PROJECT = "project"

ALL_BUILDERS = (SEARCH, FILTER, SORT, PAGINATE, PROJECT)


def build_plan(
    raw_params: Optional[Mapping[str, Any]],
    searchable_fields: Optional[Sequence[str]] = None,
    allowed_expansions: Optional[Sequence[str]] = None,
    requested_expansions: Optional[Sequence[str]] = None,
    expansion_fields: Optional[Mapping[str, Sequence[str]]] = None,
    filterable_fields: Optional[Sequence[str]] = None,
    builders: Optional[Sequence[str]] = None,
    settings: Optional[EngineSettings] = None,
) -> ExecutionPlan:
    """
    Build an execution plan from raw request parameters.

    Builders run in the order given, but the plan always comes out in the
    canonical order: combined filter, sort, pagination, projection.

    Args:
        raw_params: Flat request parameters (string or list of strings)
        searchable_fields: Whitelist of fields open to ``searchTerm``
        allowed_expansions: Whitelist of dotted relation paths
        requested_expansions: Relation paths to expand
        expansion_fields: Optional per-path field selection on related
            documents
        filterable_fields: Optional whitelist for ad-hoc filter keys
        builders: Builders to run (search, filter, sort, paginate, project).
            Omitted builders leave their stage neutral. Defaults to all.
        settings: Engine defaults

    Returns:
        Immutable ExecutionPlan

    Raises:
        ConfigurationError: On whitelist violations, mixed projections or
            unknown builder names. No partial plan is produced.
    """
    settings = settings or EngineSettings()
    params = ParameterBag(raw_params)

    selected = list(ALL_BUILDERS) if builders is None else list(builders)
    unknown = [name for name in selected if name not in ALL_BUILDERS]
    if unknown:
        raise ConfigurationError(
            f"Unknown query builder(s): {', '.join(unknown)}",
            details={"unknown": unknown, "allowed": list(ALL_BUILDERS)},
        )

    search = SearchStage()
    filter_stage = FilterStage()
    sort = SortStage()
    pagination = PaginationStage()
    projection = ProjectionStage()
    warnings: List[str] = []

    for name in dict.fromkeys(selected):
        if name == SEARCH:
            search_builder = SearchStageBuilder(searchable_fields)
            search = search_builder.build(params)
            warnings.extend(search_builder.warnings)
        elif name == FILTER:
            filter_stage = FilterStageBuilder(filterable_fields).build(params)
        elif name == SORT:
            sort = SortStageBuilder(settings).build(params)
        elif name == PAGINATE:
            pagination = PaginationStageBuilder(settings).build(params)
        elif name == PROJECT:
            projection = ProjectionStageBuilder(settings).build(params)

    expansions = ExpansionResolver(allowed_expansions).resolve(
        requested_expansions, expansion_fields
    )

    return ExecutionPlan(
        filter=CombinedFilter(search=search, filter=filter_stage),
        sort=sort,
        pagination=pagination,
        projection=projection,
        expansions=expansions,
        warnings=tuple(warnings),
    )


class QueryOrchestrator:
    """
    Main orchestrator for store-agnostic query building.

    Holds the caller's whitelists and a storage adapter. Each call builds a
    fresh plan; no request state is kept between calls.
    """

    def __init__(
        self,
        plan_executor: IPlanExecutor,
        searchable_fields: Optional[Sequence[str]] = None,
        allowed_expansions: Optional[Sequence[str]] = None,
        filterable_fields: Optional[Sequence[str]] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """
        Initialize query orchestrator with a storage adapter.

        Args:
            plan_executor: Database-specific plan executor
            searchable_fields: Whitelist of fields open to free-text search
            allowed_expansions: Whitelist of dotted relation paths
            filterable_fields: Optional whitelist for ad-hoc filter keys
            settings: Engine defaults
        """
        self.plan_executor = PlanExecutor(plan_executor)

        self.searchable_fields = list(searchable_fields or [])
        self.allowed_expansions = list(allowed_expansions or [])
        self.filterable_fields = (
            list(filterable_fields) if filterable_fields is not None else None
        )
        self.settings = settings or EngineSettings()

    @classmethod
    def from_mongodb(
        cls,
        mongo_uri: str,
        database_name: str,
        collection_name: str,
        searchable_fields: Optional[Sequence[str]] = None,
        allowed_expansions: Optional[Sequence[str]] = None,
        relations: Optional[Mapping[str, RelationSpec]] = None,
        filterable_fields: Optional[Sequence[str]] = None,
        settings: Optional[EngineSettings] = None,
    ) -> "QueryOrchestrator":
        """
        Create orchestrator for MongoDB.

        Args:
            mongo_uri: MongoDB connection URI
            database_name: Name of the database
            collection_name: Name of the collection
            searchable_fields: Whitelist of fields open to free-text search
            allowed_expansions: Whitelist of dotted relation paths
            relations: Target collection per expansion path
            filterable_fields: Optional whitelist for ad-hoc filter keys
            settings: Engine defaults

        Returns:
            Configured QueryOrchestrator for MongoDB
        """
        from query_engine.adapters.mongodb import MongoPlanExecutor

        plan_executor = MongoPlanExecutor(
            mongo_uri=mongo_uri,
            database_name=database_name,
            collection_name=collection_name,
            relations=relations,
        )
        return cls(
            plan_executor=plan_executor,
            searchable_fields=searchable_fields,
            allowed_expansions=allowed_expansions,
            filterable_fields=filterable_fields,
            settings=settings,
        )

    @classmethod
    def from_elasticsearch(
        cls,
        es_host: str,
        index_name: str,
        searchable_fields: Optional[Sequence[str]] = None,
        allowed_expansions: Optional[Sequence[str]] = None,
        relations: Optional[Mapping[str, RelationSpec]] = None,
        filterable_fields: Optional[Sequence[str]] = None,
        settings: Optional[EngineSettings] = None,
    ) -> "QueryOrchestrator":
        """
        Create orchestrator for Elasticsearch.

        Args:
            es_host: Elasticsearch host URL
            index_name: Name of the index
            searchable_fields: Whitelist of fields open to free-text search
            allowed_expansions: Whitelist of dotted relation paths
            relations: Target index per expansion path
            filterable_fields: Optional whitelist for ad-hoc filter keys
            settings: Engine defaults

        Returns:
            Configured QueryOrchestrator for Elasticsearch
        """
        from query_engine.adapters.elasticsearch import ESPlanExecutor

        plan_executor = ESPlanExecutor(
            es_host=es_host,
            index_name=index_name,
            relations=relations,
        )
        return cls(
            plan_executor=plan_executor,
            searchable_fields=searchable_fields,
            allowed_expansions=allowed_expansions,
            filterable_fields=filterable_fields,
            settings=settings,
        )

    def build_plan(
        self,
        raw_params: Optional[Mapping[str, Any]],
        requested_expansions: Optional[Sequence[str]] = None,
        expansion_fields: Optional[Mapping[str, Sequence[str]]] = None,
        builders: Optional[Sequence[str]] = None,
    ) -> ExecutionPlan:
        """
        Build a plan with this orchestrator's whitelists and settings.

        Raises:
            ConfigurationError: See ``build_plan``
        """
        return build_plan(
            raw_params,
            searchable_fields=self.searchable_fields,
            allowed_expansions=self.allowed_expansions,
            requested_expansions=requested_expansions,
            expansion_fields=expansion_fields,
            filterable_fields=self.filterable_fields,
            builders=builders,
            settings=self.settings,
        )

    def query(
        self,
        raw_params: Optional[Mapping[str, Any]],
        requested_expansions: Optional[Sequence[str]] = None,
        expansion_fields: Optional[Mapping[str, Sequence[str]]] = None,
        builders: Optional[Sequence[str]] = None,
        execute: bool = True,
        count_total: bool = True,
    ) -> Dict[str, Any]:
        """
        Build a plan from request parameters and optionally execute it.

        Args:
            raw_params: Flat request parameters
            requested_expansions: Relation paths to expand
            expansion_fields: Optional per-path field selection
            builders: Builders to run; defaults to all
            execute: If True, execute the plan and return results
            count_total: If True, count all matches for pagination metadata

        Returns:
            Dictionary with the plan, the store query and optionally results

        Raises:
            ConfigurationError: Before any store access, on caller misuse
        """
        plan = self.build_plan(
            raw_params,
            requested_expansions=requested_expansions,
            expansion_fields=expansion_fields,
            builders=builders,
        )
        response: Dict[str, Any] = {
            "plan": plan,
            "database_query": self.plan_executor.explain(plan),
        }

        if execute:
            response["results"] = self.plan_executor.execute(plan, count_total=count_total)

        return response
