"""
Build the projection stage.
"""

from typing import List

from query_engine.core.errors import ConfigurationError
from query_engine.core.models import FIELDS_KEY, EngineSettings
from query_engine.params import ParameterBag
from query_engine.query.plan import ProjectionMode, ProjectionStage

EXCLUDE_MARKER = "-"


class ProjectionStageBuilder:
    """
    Parses ``fields`` into an include or exclude projection.

    ``fields=name,email`` includes those fields (the identifier comes along
    implicitly), ``fields=-password`` excludes them. Without ``fields`` the
    internal version field is excluded.
    """

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def build(self, params: ParameterBag) -> ProjectionStage:
        """
        Build the projection stage.

        Args:
            params: Request parameters

        Returns:
            ProjectionStage

        Raises:
            ConfigurationError: If inclusion and exclusion are mixed
        """
        items = params.as_string_list(FIELDS_KEY, self.settings.list_separator) or []

        included: List[str] = []
        excluded: List[str] = []
        for item in items:
            if item.startswith(EXCLUDE_MARKER):
                name = item[len(EXCLUDE_MARKER):].strip()
                if name and name not in excluded:
                    excluded.append(name)
            elif item not in included:
                included.append(item)

        if included and excluded:
            raise ConfigurationError(
                "Projection cannot mix included and excluded fields",
                details={"include": included, "exclude": excluded},
            )
        if included:
            return ProjectionStage(mode=ProjectionMode.include, fields=tuple(included))
        if excluded:
            return ProjectionStage(mode=ProjectionMode.exclude, fields=tuple(excluded))
        return ProjectionStage(
            mode=ProjectionMode.exclude, fields=(self.settings.version_field,)
        )
