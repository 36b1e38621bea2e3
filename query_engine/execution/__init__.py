"""Plan execution and result formatting."""

from query_engine.execution.executor import PlanExecutor
from query_engine.execution.result_formatter import ResultFormatter

__all__ = ["PlanExecutor", "ResultFormatter"]
