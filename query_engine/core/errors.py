"""
Errors raised by the query engine.

Only caller misuse is modelled here. Store failures raised by an adapter
propagate to the caller unchanged.
"""

from typing import Any, Dict, Optional


class ConfigurationError(ValueError):
    """
    Caller misuse detected while building an execution plan.

    Raised synchronously before any store access. Never retryable.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration error.

        Args:
            message: Human readable description of the misuse
            details: Offending key, path or value, for callers that log them
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
