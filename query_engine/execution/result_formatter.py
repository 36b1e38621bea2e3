"""
Result formatting utilities.

Attaches pagination metadata to results from any store.
"""

import math
from typing import Optional

from query_engine.core.models import PageMeta, QueryResult
from query_engine.query.plan import PaginationStage


class ResultFormatter:
    """
    Formats query results into a consistent structure.
    """

    @staticmethod
    def page_meta(pagination: PaginationStage, total: Optional[int]) -> PageMeta:
        """
        Compute pagination metadata.

        Args:
            pagination: Pagination stage the result was produced with
            total: Number of matching documents ignoring pagination, if known

        Returns:
            PageMeta; total and total_pages are None when total is unknown,
            total_pages is 1 for an unbounded, non-empty result
        """
        if total is None:
            return PageMeta(page=pagination.page, limit=pagination.limit)
        if pagination.limit is None:
            total_pages = 1 if total else 0
        else:
            total_pages = math.ceil(total / pagination.limit)
        return PageMeta(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=total_pages,
        )

    @staticmethod
    def format_result(
        result: QueryResult,
        pagination: PaginationStage,
        total: Optional[int] = None,
    ) -> QueryResult:
        """
        Format a single query result.

        Args:
            result: Raw result from the store executor
            pagination: Pagination stage of the executed plan
            total: Total matches ignoring pagination; when None, total_hits is
                the page size and the pagination totals are left unset

        Returns:
            New QueryResult with pagination metadata
        """
        total_hits = total if total is not None else len(result.documents)
        metadata = dict(result.metadata)
        metadata["pagination"] = ResultFormatter.page_meta(pagination, total).model_dump()
        return QueryResult(
            total_hits=total_hits,
            documents=result.documents,
            success=result.success,
            metadata=metadata,
        )
