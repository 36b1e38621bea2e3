"""
Elasticsearch plan executor.

Executes execution plans against an index and resolves expansions with
follow-up lookups on the related indices.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from elasticsearch import Elasticsearch

from query_engine.adapters.elasticsearch.query_translator import ESPlanTranslator
from query_engine.core.models import QueryResult, RelationSpec
from query_engine.query.plan import ExecutionPlan, ExpansionNode

logger = logging.getLogger(__name__)


def _is_reference(value: Any) -> bool:
    """Only scalar values are looked up; embedded objects are left as stored."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _hit_document(hit: Dict[str, Any]) -> Dict[str, Any]:
    document = dict(hit.get("_source") or {})
    document.setdefault("_id", hit.get("_id"))
    return document


class ESPlanExecutor:
    """
    Executes plans against an Elasticsearch index.

    Implements the IPlanExecutor interface for Elasticsearch. Client errors
    are propagated unchanged.
    """

    def __init__(
        self,
        es_host: str,
        index_name: str,
        relations: Optional[Mapping[str, RelationSpec]] = None,
        es_client: Optional[Elasticsearch] = None,
    ):
        """
        Initialize Elasticsearch plan executor.

        Args:
            es_host: Elasticsearch host URL
            index_name: Name of the index to query
            relations: Relation specs keyed by full dotted expansion path
            es_client: Existing client to reuse instead of connecting to es_host
        """
        self.es_host = es_host
        self.index_name = index_name
        self.translator = ESPlanTranslator(relations)
        self.es_client = es_client if es_client is not None else Elasticsearch(hosts=[es_host])

    @classmethod
    def from_env(
        cls, relations: Optional[Mapping[str, RelationSpec]] = None
    ) -> "ESPlanExecutor":
        """
        Create an executor from ES_HOST and ES_INDEX.

        Raises:
            ValueError: If ES_INDEX is not set
        """
        es_host = os.getenv("ES_HOST", "http://localhost:9200")
        index_name = os.getenv("ES_INDEX")
        if not index_name:
            raise ValueError("ES_INDEX must be set")
        return cls(es_host, index_name, relations=relations)

    def explain(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """Return the search body for a plan without running it."""
        return self.translator.translate(plan)

    def execute(self, plan: ExecutionPlan) -> QueryResult:
        """
        Run the plan's search and resolve its expansions.

        Args:
            plan: Execution plan

        Returns:
            QueryResult with documents in hit order
        """
        query = self.translator.translate(plan)
        body = query["body"]

        search_kwargs: Dict[str, Any] = {
            "index": self.index_name,
            "query": body["query"],
            "from_": body["from"],
            "size": body["size"],
        }
        if "sort" in body:
            search_kwargs["sort"] = body["sort"]
        if "_source" in body:
            search_kwargs["source"] = body["_source"]

        response = self.es_client.search(**search_kwargs)
        documents = [_hit_document(hit) for hit in response["hits"]["hits"]]

        for node in plan.expansions:
            self._expand(documents, node)

        return QueryResult(
            total_hits=len(documents),
            documents=documents,
            metadata={"body": body},
        )

    def count(self, plan: ExecutionPlan) -> int:
        """Count documents matching the plan's combined filter."""
        response = self.es_client.count(
            index=self.index_name,
            query=self.translator.translate_filter(plan.filter),
        )
        return response["count"]

    def _expand(self, documents: List[Dict[str, Any]], node: ExpansionNode) -> None:
        """Replace reference values at ``node.path`` with referenced documents."""
        relation = self.translator.relation_for(node)

        refs: List[Any] = []
        for document in documents:
            value = document.get(node.path)
            values = value if isinstance(value, list) else [value]
            for ref in values:
                if _is_reference(ref) and ref not in refs:
                    refs.append(ref)
        if not refs:
            return

        search_kwargs: Dict[str, Any] = {
            "index": relation.target,
            "query": {"terms": {relation.foreign_field: refs}},
            "size": len(refs),
        }
        if node.fields:
            includes = list(node.fields) + [child.path for child in node.children]
            if relation.foreign_field != "_id":
                includes.append(relation.foreign_field)
            search_kwargs["source"] = {"includes": includes}

        response = self.es_client.search(**search_kwargs)
        related = [_hit_document(hit) for hit in response["hits"]["hits"]]

        for child in node.children:
            self._expand(related, child)

        by_ref = {
            doc.get(relation.foreign_field): doc
            for doc in related
            if _is_reference(doc.get(relation.foreign_field))
        }
        for document in documents:
            value = document.get(node.path)
            if isinstance(value, list):
                document[node.path] = [
                    by_ref[ref] if _is_reference(ref) else ref
                    for ref in value
                    if not _is_reference(ref) or ref in by_ref
                ]
            elif _is_reference(value):
                document[node.path] = by_ref.get(value)
