"""
Build the ad-hoc field filter stage.

Every non-reserved request key becomes an equality condition on the field of
the same name. Dotted keys address nested fields (``name.firstName``).

Range syntax (greater-than, less-than) is not interpreted: a value such as
``">20"`` is compared for equality as-is.
"""

from typing import List, Optional, Sequence

from query_engine.core.errors import ConfigurationError
from query_engine.core.models import RESERVED_KEYS
from query_engine.params import ParameterBag
from query_engine.query.plan import FilterCondition, FilterStage

# Store operators (e.g. $where) are never accepted as field names.
OPERATOR_PREFIX = "$"


class FilterStageBuilder:
    """
    Builds a FilterStage from every key that is not reserved.

    With ``filterable_fields`` set, keys outside the whitelist are rejected.
    """

    def __init__(self, filterable_fields: Optional[Sequence[str]] = None):
        """
        Initialize filter stage builder.

        Args:
            filterable_fields: Optional whitelist of filterable field paths.
                None accepts any non-reserved key.
        """
        self.filterable_fields = (
            frozenset(filterable_fields) if filterable_fields is not None else None
        )

    def build(self, params: ParameterBag) -> FilterStage:
        """
        Build the filter stage.

        Args:
            params: Request parameters

        Returns:
            FilterStage with one condition per filter key, ordered by key

        Raises:
            ConfigurationError: If a key is outside the filterable whitelist or
                looks like a store operator rather than a field path
        """
        conditions: List[FilterCondition] = []
        for key in params.keys():
            if key in RESERVED_KEYS:
                continue
            if any(segment.startswith(OPERATOR_PREFIX) for segment in key.split(".")):
                raise ConfigurationError(
                    f"Filter key '{key}' is not a field path",
                    details={"field": key},
                )
            if self.filterable_fields is not None and key not in self.filterable_fields:
                raise ConfigurationError(
                    f"Field '{key}' is not filterable",
                    details={"field": key, "allowed": sorted(self.filterable_fields)},
                )
            if params.is_multi(key):
                conditions.append(
                    FilterCondition(field=key, operator="in", value=params.get_raw(key))
                )
            else:
                conditions.append(
                    FilterCondition(field=key, operator="eq", value=params.as_string(key))
                )
        return FilterStage(conditions=tuple(conditions))
