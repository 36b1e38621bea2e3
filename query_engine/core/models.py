"""
Shared data models for the query engine.
"""

import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


SEARCH_TERM_KEY = "searchTerm"
SORT_KEY = "sort"
PAGE_KEY = "page"
LIMIT_KEY = "limit"
FIELDS_KEY = "fields"

# Keys with engine-level meaning; never treated as field filters.
RESERVED_KEYS = frozenset({SEARCH_TERM_KEY, SORT_KEY, PAGE_KEY, LIMIT_KEY, FIELDS_KEY})


class EngineSettings(BaseModel):
    """Defaults applied by the stage builders."""

    default_sort_field: str = "createdAt"
    version_field: str = "__version"
    identifier_field: str = "_id"
    default_page: int = Field(default=1, ge=1)
    default_limit: int = Field(default=10, ge=1)
    list_separator: str = ","

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Build settings from QUERY_ENGINE_* environment variables.

        Unset variables keep the model defaults.
        """
        env_map = {
            "default_sort_field": "QUERY_ENGINE_DEFAULT_SORT_FIELD",
            "version_field": "QUERY_ENGINE_VERSION_FIELD",
            "identifier_field": "QUERY_ENGINE_IDENTIFIER_FIELD",
            "default_page": "QUERY_ENGINE_DEFAULT_PAGE",
            "default_limit": "QUERY_ENGINE_DEFAULT_LIMIT",
            "list_separator": "QUERY_ENGINE_LIST_SEPARATOR",
        }
        values = {}
        for field_name, env_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value
        return cls(**values)


class PageMeta(BaseModel):
    """Pagination metadata returned next to a page of documents."""

    page: int
    limit: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = None


class QueryResult(BaseModel):
    """Standardized query result format."""

    total_hits: int = 0
    documents: List[Dict[str, Any]] = Field(default_factory=list)
    success: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RelationSpec(BaseModel):
    """
    Where a relation field points to, as seen by a storage adapter.

    Attributes:
        target: Collection (MongoDB) or index (Elasticsearch) holding the
            referenced documents
        many: True when the field holds a list of references
        foreign_field: Field of the referenced document matched against the
            reference value
    """

    target: str
    many: bool = False
    foreign_field: str = "_id"
