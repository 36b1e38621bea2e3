"""
Build the sort stage.
"""

from typing import List

from query_engine.core.models import SORT_KEY, EngineSettings
from query_engine.params import ParameterBag
from query_engine.query.plan import SortDirection, SortField, SortStage

DESCENDING_MARKER = "-"


class SortStageBuilder:
    """
    Parses ``sort=a,-b`` into ordered (field, direction) pairs.

    Field names are not checked against any whitelist; an unknown field
    surfaces as a store error at execution time.
    """

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def build(self, params: ParameterBag) -> SortStage:
        """
        Build the sort stage.

        Args:
            params: Request parameters

        Returns:
            SortStage; defaults to the creation timestamp, newest first
        """
        items = params.as_string_list(SORT_KEY, self.settings.list_separator) or []

        fields: List[SortField] = []
        seen = set()
        for item in items:
            direction = SortDirection.asc
            if item.startswith(DESCENDING_MARKER):
                direction = SortDirection.desc
                item = item[len(DESCENDING_MARKER):].strip()
            elif item.startswith("+"):
                item = item[1:].strip()
            # first occurrence of a field decides its direction
            if not item or item in seen:
                continue
            seen.add(item)
            fields.append(SortField(field=item, direction=direction))

        if not fields:
            fields.append(
                SortField(field=self.settings.default_sort_field, direction=SortDirection.desc)
            )
        return SortStage(fields=tuple(fields))
