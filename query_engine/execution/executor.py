"""
Plan execution coordinator.

Hands execution plans to a store-specific executor.
"""

import logging
from typing import Any, Dict

from query_engine.core.interfaces import IPlanExecutor
from query_engine.core.models import QueryResult
from query_engine.execution.result_formatter import ResultFormatter
from query_engine.query.plan import ExecutionPlan

logger = logging.getLogger(__name__)


class PlanExecutor:
    """
    Coordinates plan execution.

    Wraps a database-specific executor. Store errors are not caught here:
    retry and classification belong to the caller or the transport layer.
    """

    def __init__(self, executor: IPlanExecutor):
        """
        Initialize plan executor.

        Args:
            executor: Database-specific plan executor implementation
        """
        self.executor = executor

    def execute(self, plan: ExecutionPlan, count_total: bool = True) -> QueryResult:
        """
        Execute a plan and attach pagination metadata.

        Args:
            plan: Execution plan
            count_total: If True, also count all matching documents so the
                result carries total/total_pages

        Returns:
            QueryResult with ``metadata["pagination"]``
        """
        result = self.executor.execute(plan)
        total = self.executor.count(plan) if count_total else None
        logger.debug(
            "Plan returned %d documents (total=%s)", len(result.documents), total
        )
        return ResultFormatter.format_result(result, plan.pagination, total)

    def count(self, plan: ExecutionPlan) -> int:
        """Count documents matching the plan's combined filter."""
        return self.executor.count(plan)

    def explain(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """Return the store query the plan translates to."""
        return self.executor.explain(plan)
