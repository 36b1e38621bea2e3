"""
Query Engine - Store-agnostic query translation.

Turns a flat request parameter bag into an ordered execution plan that a
storage adapter runs against a document store.
"""

from query_engine.core.errors import ConfigurationError
from query_engine.orchestrator import QueryOrchestrator, build_plan

__all__ = ["QueryOrchestrator", "build_plan", "ConfigurationError"]
