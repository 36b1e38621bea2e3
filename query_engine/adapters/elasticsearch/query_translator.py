"""
Elasticsearch plan translator.

Converts execution plans to Elasticsearch search request bodies.
"""

from typing import Any, Dict, List, Mapping, Optional

from query_engine.core.errors import ConfigurationError
from query_engine.core.models import RelationSpec
from query_engine.query.plan import (
    CombinedFilter,
    ExecutionPlan,
    ExpansionNode,
    ProjectionMode,
)

# Elasticsearch's default index.max_result_window
MAX_RESULT_WINDOW = 10000


def _escape_wildcard(term: str) -> str:
    return term.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")


class ESPlanTranslator:
    """
    Translates execution plans to Elasticsearch DSL.

    Implements the IPlanTranslator interface for Elasticsearch. Expansions
    are not part of the search body; they are described separately and
    resolved by the executor after the search.
    """

    def __init__(
        self,
        relations: Optional[Mapping[str, RelationSpec]] = None,
        max_result_window: int = MAX_RESULT_WINDOW,
    ):
        """
        Initialize Elasticsearch plan translator.

        Args:
            relations: Relation specs keyed by full dotted expansion path;
                ``target`` is the index holding the referenced documents
            max_result_window: Size used when the plan has no page limit
        """
        self.relations = dict(relations or {})
        self.max_result_window = max_result_window

    def translate(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """
        Convert an execution plan to an Elasticsearch search body.

        Args:
            plan: Execution plan

        Returns:
            ``{"body": {...}, "expansions": [...]}``

        Raises:
            ConfigurationError: If an expansion has no declared relation
        """
        body: Dict[str, Any] = {"query": self.translate_filter(plan.filter)}

        if not plan.sort.is_empty:
            body["sort"] = [
                {s.field: {"order": s.direction.value}} for s in plan.sort.fields
            ]

        body["from"] = plan.pagination.skip
        body["size"] = (
            plan.pagination.limit
            if plan.pagination.limit is not None
            else self.max_result_window
        )

        if not plan.projection.is_empty:
            if plan.projection.mode == ProjectionMode.include:
                includes = list(plan.projection.fields)
                # expanded relations must survive an inclusive projection
                for node in plan.expansions:
                    if node.path not in includes:
                        includes.append(node.path)
                body["_source"] = {"includes": includes}
            else:
                body["_source"] = {"excludes": list(plan.projection.fields)}

        expansions = [self._describe_expansion(node) for node in plan.expansions]
        return {"body": body, "expansions": expansions}

    def translate_filter(self, combined: CombinedFilter) -> Dict[str, Any]:
        """Build the query clause for a combined filter."""
        if combined.is_empty:
            return {"match_all": {}}

        filter_clauses: List[Dict[str, Any]] = []
        for condition in combined.filter.conditions:
            if condition.operator == "in":
                filter_clauses.append({"terms": {condition.field: list(condition.value)}})
            else:
                filter_clauses.append({"term": {condition.field: condition.value}})

        bool_query: Dict[str, Any] = {}
        if filter_clauses:
            bool_query["filter"] = filter_clauses

        if not combined.search.is_empty:
            pattern = f"*{_escape_wildcard(combined.search.term)}*"
            bool_query["must"] = [
                {
                    "bool": {
                        "should": [
                            {"wildcard": {field: {"value": pattern, "case_insensitive": True}}}
                            for field in combined.search.fields
                        ],
                        "minimum_should_match": 1,
                    }
                }
            ]

        return {"bool": bool_query}

    def relation_for(self, node: ExpansionNode) -> RelationSpec:
        """Get the relation spec for an expansion node."""
        relation = self.relations.get(node.full_path)
        if relation is None:
            raise ConfigurationError(
                f"No relation declared for expansion '{node.full_path}'",
                details={"path": node.full_path},
            )
        return relation

    def _describe_expansion(self, node: ExpansionNode) -> Dict[str, Any]:
        relation = self.relation_for(node)
        return {
            "path": node.path,
            "index": relation.target,
            "foreign_field": relation.foreign_field,
            "many": relation.many,
            "fields": list(node.fields),
            "children": [self._describe_expansion(child) for child in node.children],
        }
