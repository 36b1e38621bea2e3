"""
Resolve requested relation expansions into an ExpansionNode tree.

Every requested path, and every prefix of a dotted path, must be present in
the caller's whitelist. One disallowed segment rejects the whole request.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from query_engine.core.errors import ConfigurationError
from query_engine.query.plan import ExpansionNode

PATH_SEPARATOR = "."


class _Draft:
    """Mutable node used while the tree is assembled."""

    def __init__(self, path: str, full_path: str):
        self.path = path
        self.full_path = full_path
        self.children: Dict[str, "_Draft"] = {}
        self.fields: tuple = ()

    def freeze(self) -> ExpansionNode:
        return ExpansionNode(
            path=self.path,
            full_path=self.full_path,
            children=tuple(child.freeze() for child in self.children.values()),
            fields=self.fields,
        )


class ExpansionResolver:
    """
    Validates requested expansion paths and builds the expansion tree.

    Sibling order follows the order paths were first requested.
    """

    def __init__(self, allowed_expansions: Optional[Sequence[str]] = None):
        """
        Initialize expansion resolver.

        Args:
            allowed_expansions: Whitelist of dotted relation paths. A nested
                path such as ``department.faculty`` must be listed itself;
                allowing ``department`` does not allow its children.
        """
        self.allowed_expansions = frozenset(
            path.strip() for path in (allowed_expansions or []) if path.strip()
        )

    def _split(self, requested: str) -> List[str]:
        segments = [segment.strip() for segment in requested.split(PATH_SEPARATOR)]
        if not requested.strip() or any(not segment for segment in segments):
            raise ConfigurationError(
                f"Malformed expansion path '{requested}'",
                details={"path": requested},
            )
        return segments

    def _check_allowed(self, segments: List[str], requested: str) -> None:
        for depth in range(1, len(segments) + 1):
            prefix = PATH_SEPARATOR.join(segments[:depth])
            if prefix not in self.allowed_expansions:
                raise ConfigurationError(
                    f"Expansion '{prefix}' is not allowed",
                    details={
                        "path": requested,
                        "segment": prefix,
                        "allowed": sorted(self.allowed_expansions),
                    },
                )

    def resolve(
        self,
        requested_expansions: Optional[Sequence[str]] = None,
        expansion_fields: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> tuple:
        """
        Build the expansion tree.

        Args:
            requested_expansions: Dotted relation paths requested by the caller
            expansion_fields: Optional per-path field selection on the
                referenced documents

        Returns:
            Tuple of root ExpansionNode objects

        Raises:
            ConfigurationError: If any path or prefix is not whitelisted, or a
                field selection names a path that was not requested
        """
        roots: Dict[str, _Draft] = {}
        by_path: Dict[str, _Draft] = {}

        # Validate everything first so a rejection never yields a partial tree.
        parsed = []
        for requested in requested_expansions or []:
            segments = self._split(requested)
            self._check_allowed(segments, requested)
            parsed.append(segments)

        for segments in parsed:
            level = roots
            for depth, segment in enumerate(segments, start=1):
                full_path = PATH_SEPARATOR.join(segments[:depth])
                node = level.get(segment)
                if node is None:
                    node = _Draft(segment, full_path)
                    level[segment] = node
                    by_path[full_path] = node
                level = node.children

        for path, fields in (expansion_fields or {}).items():
            node = by_path.get(path)
            if node is None:
                raise ConfigurationError(
                    f"Field selection given for unrequested expansion '{path}'",
                    details={"path": path},
                )
            selected = []
            for field in fields:
                field = field.strip()
                if field and field not in selected:
                    selected.append(field)
            node.fields = tuple(selected)

        return tuple(node.freeze() for node in roots.values())
