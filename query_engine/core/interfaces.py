"""
Abstract interfaces for storage adapters.

These protocols define the contract a storage adapter implements to run
execution plans produced by the engine.
"""

from typing import Any, Dict, Protocol

from query_engine.core.models import QueryResult
from query_engine.query.plan import ExecutionPlan


class IPlanTranslator(Protocol):
    """
    Translate an execution plan into a store-specific query.

    The translation must apply the stages in the plan's canonical order:
    combined filter, sort, skip/limit, projection, then expansions.
    """

    def translate(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """
        Convert an execution plan to a database query object.

        Args:
            plan: Execution plan built by the orchestrator

        Returns:
            Database-specific query object (e.g. a MongoDB pipeline or an
            Elasticsearch search body)
        """
        ...


class IPlanExecutor(Protocol):
    """
    Execute plans against a concrete store.

    Store errors are raised as-is; the engine neither wraps nor retries them.
    """

    def execute(self, plan: ExecutionPlan) -> QueryResult:
        """
        Run the plan and return the page of documents it selects.

        Args:
            plan: Execution plan built by the orchestrator

        Returns:
            QueryResult with the documents in result order
        """
        ...

    def count(self, plan: ExecutionPlan) -> int:
        """
        Count documents matching the plan's combined filter.

        Pagination and projection are ignored.
        """
        ...

    def explain(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """Return the store query the plan translates to, without running it."""
        ...
