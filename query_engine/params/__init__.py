"""Request parameter normalization."""

from query_engine.params.parameter_bag import ParameterBag

__all__ = ["ParameterBag"]
