"""Elasticsearch adapter for the query engine."""

from query_engine.adapters.elasticsearch.query_translator import ESPlanTranslator
from query_engine.adapters.elasticsearch.executor import ESPlanExecutor

__all__ = ["ESPlanTranslator", "ESPlanExecutor"]
