"""MongoDB adapter for the query engine."""

from query_engine.adapters.mongodb.query_translator import MongoPlanTranslator
from query_engine.adapters.mongodb.executor import MongoPlanExecutor

__all__ = ["MongoPlanTranslator", "MongoPlanExecutor"]
