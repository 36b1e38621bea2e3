"""
Example usage of the query engine with MongoDB.

Runs a student listing the way a request handler would: flat query
parameters in, a page of documents plus pagination metadata out.
"""

import os
import json
import logging

from dotenv import load_dotenv

from query_engine import ConfigurationError, QueryOrchestrator
from query_engine.core.models import EngineSettings, RelationSpec

load_dotenv()

DEFAULT_MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DEFAULT_DATABASE = os.getenv("MONGO_DATABASE", "university")
DEFAULT_COLLECTION = os.getenv("MONGO_COLLECTION", "students")
STUDENT_SEARCHABLE_FIELDS = ["email", "name.firstName", "presentAddress"]
STUDENT_EXPANSIONS = ["academicDepartment", "academicDepartment.academicFaculty"]
STUDENT_RELATIONS = {
    "academicDepartment": RelationSpec(target="academicdepartments"),
    "academicDepartment.academicFaculty": RelationSpec(target="academicfaculties"),
}


def setup_orchestrator():
    """Setup MongoDB orchestrator with the students collection."""
    return QueryOrchestrator.from_mongodb(
        mongo_uri=DEFAULT_MONGO_URI,
        database_name=DEFAULT_DATABASE,
        collection_name=DEFAULT_COLLECTION,
        searchable_fields=STUDENT_SEARCHABLE_FIELDS,
        allowed_expansions=STUDENT_EXPANSIONS,
        relations=STUDENT_RELATIONS,
        settings=EngineSettings.from_env(),
    )


def example_1_search_sort_paginate(orchestrator):
    """
    Example 1: Search, Filter, Sort, Paginate and Project

    Tests:
    - Free-text search over the searchable fields
    - Equality filter on a plain field
    - Multi-key sort with a descending key
    - Second page of five
    - Field selection
    - Nested relation expansion
    """

    print("\n" + "=" * 80)
    print("EXAMPLE 1: Search, Filter, Sort, Paginate and Project")
    print("=" * 80)

    params = {
        "searchTerm": "john",
        "gender": "male",
        "sort": "name.firstName,-createdAt",
        "page": "2",
        "limit": "5",
        "fields": "name,email,academicDepartment",
    }
    print(f"\nRequest Parameters: {params}\n")

    result = orchestrator.query(
        params,
        requested_expansions=["academicDepartment.academicFaculty"],
        expansion_fields={"academicDepartment": ["name"]},
    )

    print("--- Execution Plan ---")
    print(json.dumps(result["plan"].describe(), indent=2))

    print("\n--- Generated MongoDB Pipeline ---")
    print(json.dumps(result["database_query"]["pipeline"], indent=2, default=str))

    res = result["results"]
    print("\n--- Results ---")
    print(f"Pagination: {res.metadata['pagination']}")
    for i, doc in enumerate(res.documents, 1):
        department = doc.get("academicDepartment") or {}
        print(f"\n  {i}. {doc.get('name', {})} <{doc.get('email', 'N/A')}>")
        print(f"     Department: {department.get('name', 'N/A')}")


def example_2_rejected_expansion(orchestrator):
    """
    Example 2: Whitelist Rejection

    Tests:
    - A relation outside the expansion whitelist fails before the store is hit
    """

    print("\n" + "=" * 80)
    print("EXAMPLE 2: Whitelist Rejection")
    print("=" * 80)

    try:
        orchestrator.query({}, requested_expansions=["user"])
    except ConfigurationError as e:
        print(f"\nRejected: {e.message}")
        print(f"Details: {e.details}")


def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)

    print("\n" + "=" * 80)
    print("MONGODB QUERY ENGINE - EXAMPLES")
    print("=" * 80)

    try:
        orchestrator = setup_orchestrator()
        example_1_search_sort_paginate(orchestrator)
        example_2_rejected_expansion(orchestrator)
    except Exception as e:
        print(f"\n❌ Error: {e}")
        print("\nMake sure MongoDB is running and MONGO_URI is configured in .env")
        import traceback
        traceback.print_exc()

    print("\n" + "=" * 80)
    print("ALL EXAMPLES COMPLETED")
    print("=" * 80)


if __name__ == "__main__":
    main()
