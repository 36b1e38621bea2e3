"""
MongoDB plan executor.

Executes execution plans as MongoDB aggregation pipelines and returns
normalized results.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.collection import Collection

from query_engine.adapters.mongodb.query_translator import MongoPlanTranslator
from query_engine.core.models import QueryResult, RelationSpec
from query_engine.query.plan import ExecutionPlan

logger = logging.getLogger(__name__)


def _stringify_ids(value: Any) -> Any:
    """Convert ObjectId values to strings, recursing into expanded documents."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: _stringify_ids(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_ids(item) for item in value]
    return value


class MongoPlanExecutor:
    """
    Executes plans against a MongoDB collection.

    Implements the IPlanExecutor interface for MongoDB. PyMongo errors are
    propagated unchanged.
    """

    def __init__(
        self,
        mongo_uri: str,
        database_name: str,
        collection_name: str,
        relations: Optional[Mapping[str, RelationSpec]] = None,
        client: Optional[MongoClient] = None,
    ):
        """
        Initialize MongoDB plan executor.

        Args:
            mongo_uri: MongoDB connection URI
            database_name: Name of the database
            collection_name: Name of the collection
            relations: Relation specs keyed by full dotted expansion path
            client: Existing client to reuse instead of connecting to mongo_uri
        """
        self.mongo_uri = mongo_uri
        self.database_name = database_name
        self.collection_name = collection_name
        self.translator = MongoPlanTranslator(relations)

        self.client: MongoClient = client if client is not None else MongoClient(mongo_uri)
        self.db: Database = self.client[database_name]
        self.collection: Collection = self.db[collection_name]

    @classmethod
    def from_env(
        cls, relations: Optional[Mapping[str, RelationSpec]] = None
    ) -> "MongoPlanExecutor":
        """
        Create an executor from MONGO_URI, MONGO_DATABASE and MONGO_COLLECTION.

        Raises:
            ValueError: If MONGO_DATABASE or MONGO_COLLECTION is not set
        """
        mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        database_name = os.getenv("MONGO_DATABASE")
        collection_name = os.getenv("MONGO_COLLECTION")
        if not database_name or not collection_name:
            raise ValueError("MONGO_DATABASE and MONGO_COLLECTION must be set")
        return cls(mongo_uri, database_name, collection_name, relations=relations)

    def explain(self, plan: ExecutionPlan) -> Dict[str, Any]:
        """Return the aggregation pipeline for a plan without running it."""
        return self.translator.translate(plan)

    def execute(self, plan: ExecutionPlan) -> QueryResult:
        """
        Run the plan's aggregation pipeline.

        Args:
            plan: Execution plan

        Returns:
            QueryResult with documents in pipeline order
        """
        query = self.translator.translate(plan)
        logger.debug("Running pipeline on %s: %s", self.collection_name, query["pipeline"])

        documents: List[Dict[str, Any]] = [
            _stringify_ids(doc) for doc in self.collection.aggregate(query["pipeline"])
        ]
        return QueryResult(
            total_hits=len(documents),
            documents=documents,
            metadata={"pipeline": query["pipeline"]},
        )

    def count(self, plan: ExecutionPlan) -> int:
        """Count documents matching the plan's combined filter."""
        match = self.translator.translate_filter(plan.filter)
        return self.collection.count_documents(match)
