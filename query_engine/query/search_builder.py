"""
Build the free-text search stage.
"""

import logging
from typing import Optional, Sequence

from query_engine.core.models import SEARCH_TERM_KEY
from query_engine.params import ParameterBag
from query_engine.query.plan import SearchStage

logger = logging.getLogger(__name__)

EMPTY_SEARCHABLE_FIELDS_WARNING = (
    "searchTerm supplied but no searchable fields are declared; search is ignored"
)


class SearchStageBuilder:
    """
    Builds a SearchStage from the ``searchTerm`` parameter.

    Only caller-declared fields are ever searched.
    """

    def __init__(self, searchable_fields: Optional[Sequence[str]] = None):
        """
        Initialize search stage builder.

        Args:
            searchable_fields: Whitelist of field paths open to free-text search
        """
        seen = []
        for field in searchable_fields or []:
            field = field.strip()
            if field and field not in seen:
                seen.append(field)
        self.searchable_fields = tuple(seen)
        self.warnings: list = []

    def build(self, params: ParameterBag) -> SearchStage:
        """
        Build the search stage.

        Args:
            params: Request parameters

        Returns:
            SearchStage; empty when there is no usable term or no field to
            search
        """
        self.warnings = []
        term = params.as_string(SEARCH_TERM_KEY)
        # blank terms are a no-op; a non-blank term is matched verbatim
        if term is None or not term.strip():
            return SearchStage()

        if not self.searchable_fields:
            logger.warning(EMPTY_SEARCHABLE_FIELDS_WARNING)
            self.warnings.append(EMPTY_SEARCHABLE_FIELDS_WARNING)
            return SearchStage()

        return SearchStage(fields=self.searchable_fields, term=term)
