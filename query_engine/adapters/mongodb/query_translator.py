"""
MongoDB plan translator.

Converts execution plans to a MongoDB aggregation pipeline.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from query_engine.core.errors import ConfigurationError
from query_engine.core.models import RelationSpec
from query_engine.query.plan import (
    CombinedFilter,
    ExecutionPlan,
    ExpansionNode,
    ProjectionMode,
    SortDirection,
)


class MongoPlanTranslator:
    """
    Translates execution plans to MongoDB aggregation pipelines.

    Implements the IPlanTranslator interface for MongoDB.
    """

    def __init__(self, relations: Optional[Mapping[str, RelationSpec]] = None):
        """
        Initialize MongoDB plan translator.

        Args:
            relations: Relation specs keyed by full dotted expansion path
                (e.g. ``academicDepartment.academicFaculty``)
        """
        self.relations = dict(relations or {})

    def translate(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """
        Convert an execution plan to a MongoDB aggregation pipeline.

        Args:
            plan: Execution plan

        Returns:
            ``{"filter": {...}, "pipeline": [...]}``; ``filter`` is the
            combined match alone, for counting

        Raises:
            ConfigurationError: If an expansion has no declared relation
        """
        match = self.translate_filter(plan.filter)
        pipeline: List[Dict[str, Any]] = []

        if match:
            pipeline.append({"$match": match})

        if not plan.sort.is_empty:
            sort_spec = {}
            for s in plan.sort.fields:
                sort_spec[s.field] = 1 if s.direction == SortDirection.asc else -1
            pipeline.append({"$sort": sort_spec})

        if plan.pagination.skip:
            pipeline.append({"$skip": plan.pagination.skip})
        if plan.pagination.limit is not None:
            pipeline.append({"$limit": plan.pagination.limit})

        if not plan.projection.is_empty:
            flag = 1 if plan.projection.mode == ProjectionMode.include else 0
            projection = {field: flag for field in plan.projection.fields}
            if flag:
                # expanded relations must survive an inclusive projection
                for node in plan.expansions:
                    prefix = f"{node.path}."
                    for field in [f for f in projection if f.startswith(prefix)]:
                        del projection[field]
                    projection[node.path] = 1
            pipeline.append({"$project": projection})

        for node in plan.expansions:
            pipeline.extend(self._lookup_stages(node))

        return {"filter": match, "pipeline": pipeline}

    def translate_filter(self, combined: CombinedFilter) -> Dict[str, Any]:
        """Build the ``$match`` document for a combined filter."""
        clauses: List[Dict[str, Any]] = []

        if not combined.search.is_empty:
            pattern = re.escape(combined.search.term)
            clauses.append(
                {
                    "$or": [
                        {field: {"$regex": pattern, "$options": "i"}}
                        for field in combined.search.fields
                    ]
                }
            )

        for condition in combined.filter.conditions:
            if condition.operator == "in":
                clauses.append({condition.field: {"$in": list(condition.value)}})
            else:
                clauses.append({condition.field: condition.value})

        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def _relation(self, node: ExpansionNode) -> RelationSpec:
        relation = self.relations.get(node.full_path)
        if relation is None:
            raise ConfigurationError(
                f"No relation declared for expansion '{node.full_path}'",
                details={"path": node.full_path},
            )
        return relation

    def _lookup_stages(self, node: ExpansionNode) -> List[Dict[str, Any]]:
        """Build ``$lookup`` (and ``$unwind``) stages for one expansion node."""
        relation = self._relation(node)
        foreign = f"${relation.foreign_field}"

        if relation.many:
            match_expr = {"$in": [foreign, {"$ifNull": ["$$ref", []]}]}
        else:
            match_expr = {"$eq": [foreign, "$$ref"]}

        sub_pipeline: List[Dict[str, Any]] = [{"$match": {"$expr": match_expr}}]
        for child in node.children:
            sub_pipeline.extend(self._lookup_stages(child))
        if node.fields:
            projection = {field: 1 for field in node.fields}
            # nested expansions must survive the relation's projection
            for child in node.children:
                projection[child.path] = 1
            sub_pipeline.append({"$project": projection})

        stages: List[Dict[str, Any]] = [
            {
                "$lookup": {
                    "from": relation.target,
                    "let": {"ref": f"${node.path}"},
                    "pipeline": sub_pipeline,
                    "as": node.path,
                }
            }
        ]
        if not relation.many:
            stages.append(
                {"$unwind": {"path": f"${node.path}", "preserveNullAndEmptyArrays": True}}
            )
        return stages
