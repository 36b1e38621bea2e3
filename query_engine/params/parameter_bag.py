"""
Read-only typed view over a flat request parameter map.

The bag normalizes values into strings, numbers and string lists without
interpreting them. Missing keys and unusable values come back as ``None`` so
the stage builders can apply their own defaults.
"""

from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

RawValue = Union[str, Sequence[str]]


class ParameterBag:
    """
    Normalized request parameters.

    Values are either a single string or, for keys repeated in the request,
    a tuple of strings. Non-string scalars are converted with ``str``.
    """

    def __init__(self, raw_params: Optional[Mapping[str, Any]] = None):
        """
        Initialize parameter bag.

        Args:
            raw_params: Mapping of parameter name to a string or a list of
                strings (repeated keys)
        """
        self._values: dict = {}
        for key, value in (raw_params or {}).items():
            normalized = self._normalize(value)
            if normalized is not None:
                self._values[str(key)] = normalized

    @staticmethod
    def _normalize(value: Any) -> Optional[Union[str, Tuple[str, ...]]]:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            items = tuple(str(item) for item in value if item is not None)
            if not items:
                return None
            if len(items) == 1:
                return items[0]
            return items
        return str(value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[str]:
        """Return parameter names in sorted order."""
        return sorted(self._values)

    def get_raw(self, key: str) -> Optional[Union[str, Tuple[str, ...]]]:
        """Return the normalized value for a key, or None when absent."""
        return self._values.get(key)

    def is_multi(self, key: str) -> bool:
        """Return True when the key was repeated in the request."""
        return isinstance(self._values.get(key), tuple)

    def as_string(self, key: str) -> Optional[str]:
        """
        Get a parameter as a single string.

        For repeated keys the first value wins.

        Args:
            key: Parameter name

        Returns:
            The string value, or None when the key is absent
        """
        value = self._values.get(key)
        if value is None:
            return None
        if isinstance(value, tuple):
            return value[0]
        return value

    def as_number(self, key: str) -> Optional[Union[int, float]]:
        """
        Get a parameter as a number.

        Integral text parses to ``int``, other numeric text to ``float``.

        Args:
            key: Parameter name

        Returns:
            The parsed number, or None when absent or not numeric
        """
        text = self.as_string(key)
        if text is None:
            return None
        text = text.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        # nan/inf are not usable as numbers downstream
        if number != number or number in (float("inf"), float("-inf")):
            return None
        return number

    def as_string_list(self, key: str, separator: str = ",") -> Optional[List[str]]:
        """
        Get a parameter as a list of trimmed, non-empty strings.

        Repeated keys are split individually and concatenated in order.

        Args:
            key: Parameter name
            separator: Item separator inside a single value

        Returns:
            List of items, or None when the key is absent
        """
        value = self._values.get(key)
        if value is None:
            return None
        chunks = value if isinstance(value, tuple) else (value,)
        items: List[str] = []
        for chunk in chunks:
            for item in chunk.split(separator):
                item = item.strip()
                if item:
                    items.append(item)
        return items

    def to_dict(self) -> dict:
        """Return a plain copy of the normalized values."""
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in self._values.items()
        }

    def __repr__(self) -> str:
        return f"ParameterBag({self.to_dict()!r})"
