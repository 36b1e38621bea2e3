"""
Immutable stage objects and the execution plan.

Every object here is a frozen pydantic model built from tuples, so two plans
built from the same inputs compare equal.
"""

from enum import Enum
from typing import Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SearchStage(_Frozen):
    """Case-insensitive substring search OR-ed across whitelisted fields."""

    fields: Tuple[str, ...] = ()
    term: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.term or not self.fields


class FilterCondition(_Frozen):
    """Single field condition. ``in`` comes from repeated request keys."""

    field: str
    operator: Literal["eq", "in"] = "eq"
    value: Union[str, Tuple[str, ...]]


class FilterStage(_Frozen):
    """Field conditions combined with logical AND, ordered by field name."""

    conditions: Tuple[FilterCondition, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(condition.field for condition in self.conditions)


class CombinedFilter(_Frozen):
    """
    First plan stage: filter conditions AND the search OR-group.

    An empty combined filter matches every document.
    """

    search: SearchStage = Field(default_factory=SearchStage)
    filter: FilterStage = Field(default_factory=FilterStage)

    @property
    def is_empty(self) -> bool:
        return self.search.is_empty and self.filter.is_empty


class SortDirection(str, Enum):
    """Sort order options."""
    asc = "asc"
    desc = "desc"


class SortField(_Frozen):
    """Sort field specification."""
    field: str
    direction: SortDirection = SortDirection.asc


class SortStage(_Frozen):
    """Ordered sort keys. Empty means store order."""

    fields: Tuple[SortField, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.fields


class PaginationStage(_Frozen):
    """
    Page window.

    ``limit`` is None only when pagination was not requested, in which case
    the whole result set is returned.
    """

    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)

    @computed_field
    @property
    def skip(self) -> int:
        if self.limit is None:
            return 0
        return (self.page - 1) * self.limit


class ProjectionMode(str, Enum):
    """Projection kinds. A single projection never mixes them."""
    include = "include"
    exclude = "exclude"


class ProjectionStage(_Frozen):
    """Fields to include or exclude. Empty means whole documents."""

    mode: ProjectionMode = ProjectionMode.exclude
    fields: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.fields


class ExpansionNode(_Frozen):
    """
    Relation to resolve into the referenced document.

    Attributes:
        path: Relation field name relative to its parent document
        full_path: Dotted path from the root entity
        children: Nested expansions on the referenced document
        fields: Optional projection on the referenced document
    """

    path: str
    full_path: str
    children: Tuple["ExpansionNode", ...] = ()
    fields: Tuple[str, ...] = ()

    @property
    def nested(self) -> Optional["ExpansionNode"]:
        """First nested expansion, if any."""
        return self.children[0] if self.children else None

    def walk(self):
        """Yield this node and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


class ExecutionPlan(_Frozen):
    """
    Ordered, immutable query plan handed to a storage adapter.

    Adapters apply ``stages`` in order, then resolve ``expansions``.
    """

    filter: CombinedFilter = Field(default_factory=CombinedFilter)
    sort: SortStage = Field(default_factory=SortStage)
    pagination: PaginationStage = Field(default_factory=PaginationStage)
    projection: ProjectionStage = Field(default_factory=ProjectionStage)
    expansions: Tuple[ExpansionNode, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def stages(self) -> Tuple[Any, ...]:
        """Stages in canonical execution order."""
        return (self.filter, self.sort, self.pagination, self.projection)

    def describe(self) -> dict:
        """Plain-dict rendering for logging and debugging."""
        return self.model_dump(mode="json")
