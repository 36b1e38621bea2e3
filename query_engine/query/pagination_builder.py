"""
Build the pagination stage.

Pagination never fails a request: malformed or non-positive input falls back
to the configured defaults.
"""

import logging
from typing import Optional

from query_engine.core.models import LIMIT_KEY, PAGE_KEY, EngineSettings
from query_engine.params import ParameterBag
from query_engine.query.plan import PaginationStage

logger = logging.getLogger(__name__)


class PaginationStageBuilder:
    """
    Parses ``page`` and ``limit`` into a PaginationStage.

    No upper bound is applied to ``limit``; services exposing the engine
    publicly must cap it themselves.
    """

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def _positive_int(self, params: ParameterBag, key: str, default: int) -> int:
        raw = params.as_string(key)
        if raw is None:
            return default
        value = self._parse(raw)
        if value is None:
            logger.debug("Falling back to %s=%s for malformed value %r", key, default, raw)
            return default
        return value

    @staticmethod
    def _parse(raw: str) -> Optional[int]:
        text = raw.strip()
        try:
            value = int(text)
        except ValueError:
            return None
        if value < 1:
            return None
        return value

    def build(self, params: ParameterBag) -> PaginationStage:
        """
        Build the pagination stage.

        Args:
            params: Request parameters

        Returns:
            PaginationStage with page >= 1 and limit >= 1
        """
        page = self._positive_int(params, PAGE_KEY, self.settings.default_page)
        limit = self._positive_int(params, LIMIT_KEY, self.settings.default_limit)
        return PaginationStage(page=page, limit=limit)
