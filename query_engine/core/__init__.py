"""Core interfaces, errors and models for the query engine."""

from query_engine.core.errors import ConfigurationError
from query_engine.core.interfaces import (
    IPlanTranslator,
    IPlanExecutor,
)
from query_engine.core.models import (
    EngineSettings,
    PageMeta,
    QueryResult,
    RelationSpec,
    RESERVED_KEYS,
)

__all__ = [
    "ConfigurationError",
    "IPlanTranslator",
    "IPlanExecutor",
    "EngineSettings",
    "PageMeta",
    "QueryResult",
    "RelationSpec",
    "RESERVED_KEYS",
]
