"""Core types for parameter normalization and binding."""

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, Final, NamedTuple

from sqlfill.parameters.patterns import MarkerPattern

__all__ = (
    "BoundParameter",
    "BoundQuery",
    "ParameterMap",
    "ParameterStyle",
    "ReducedGroup",
)


class ParameterStyle(str, Enum):
    """Named placeholder syntaxes understood by DB-API drivers."""

    NAMED_AT = "named_at"
    NAMED_COLON = "named_colon"
    NAMED_DOLLAR = "named_dollar"
    NAMED_PYFORMAT = "named_pyformat"

    @property
    def prefix(self) -> str:
        """Text that goes in front of a parameter name in SQL."""
        return _STYLE_AFFIXES[self][0]

    @property
    def suffix(self) -> str:
        """Text that goes after a parameter name in SQL."""
        return _STYLE_AFFIXES[self][1]


_STYLE_AFFIXES: "Final[dict[ParameterStyle, tuple[str, str]]]" = {
    ParameterStyle.NAMED_AT: ("@", ""),
    ParameterStyle.NAMED_COLON: (":", ""),
    ParameterStyle.NAMED_DOLLAR: ("$", ""),
    ParameterStyle.NAMED_PYFORMAT: ("%(", ")s"),
}


class ParameterMap(Mapping[str, Any]):
    """String-keyed mapping with an optional case-insensitive key policy.

    The key is stored with the casing it was first written with; lookups
    honor the policy chosen at construction.
    """

    __slots__ = ("_data", "case_sensitive")

    def __init__(self, case_sensitive: bool = False) -> None:
        self.case_sensitive = case_sensitive
        self._data: "dict[str, tuple[str, Any]]" = {}

    def _fold(self, key: str) -> str:
        return key if self.case_sensitive else key.casefold()

    def __getitem__(self, key: str) -> Any:
        return self._data[self._fold(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[self._fold(key)] = (key, value)

    def setdefault(self, key: str, value: Any) -> Any:
        """Store ``value`` only if ``key`` is not present yet.

        Returns:
            The value held for ``key`` after the call.
        """
        return self._data.setdefault(self._fold(key), (key, value))[1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._data

    def __iter__(self) -> "Iterator[str]":
        return (key for key, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{key!r}: {value!r}" for key, value in self._data.values())
        return f"ParameterMap({{{items}}}, case_sensitive={self.case_sensitive})"


class ReducedGroup(NamedTuple):
    """All parameter values that answer to one marker pattern."""

    pattern: MarkerPattern
    parameters: ParameterMap


class BoundParameter(NamedTuple):
    """A provider parameter created while rewriting a query.

    ``name`` is the placeholder as it appears in the SQL (``@vxv_1_age``),
    ``key`` is what the driver binds against (``vxv_1_age``).
    """

    name: str
    key: str
    value: Any


class BoundQuery(NamedTuple):
    """A rewritten query and its provider parameters, in creation order."""

    sql: str
    parameters: "list[BoundParameter]"

    def bind_values(self) -> "dict[str, Any]":
        """Mapping handed to ``cursor.execute``.

        Returns:
            Bind key to value.
        """
        return {parameter.key: parameter.value for parameter in self.parameters}

    def display_parameters(self) -> "dict[str, Any]":
        """Mapping used in diagnostics and logs.

        Returns:
            Placeholder name to value.
        """
        return {parameter.name: parameter.value for parameter in self.parameters}
