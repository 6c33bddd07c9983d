"""Inline column type hints.

A query can mark a column for parsing with ``{type{json{alias}}}``. The hint
is stripped from the SQL before binding, leaving the bare ``alias``, and the
materializer parses that column's text as JSON or XML.
"""

from typing import NamedTuple, Optional

from sqlfill.parameters.patterns import DEFAULT_TYPE_HINT_REGEX, compile_pattern
from sqlfill.parameters.types import ParameterMap
from sqlfill.utils.text import replace_all

__all__ = ("ColumnTypeHint", "extract_type_hints")


class ColumnTypeHint(NamedTuple):
    column: str
    tag: str
    """Lower-cased type tag, e.g. ``json`` or ``xml``."""


def extract_type_hints(query: str, pattern: Optional[str] = None) -> "tuple[str, ParameterMap]":
    """Strip type hints from ``query`` and collect them per column.

    Column names are matched ignoring case. When a column is hinted more than
    once, the last hint in the text wins.

    Returns:
        The query with every hint replaced by its column name, and a mapping
        of column name to :class:`ColumnTypeHint`.
    """
    regex = compile_pattern(pattern or DEFAULT_TYPE_HINT_REGEX)
    hints = ParameterMap(case_sensitive=False)
    found = [match for match in regex.finditer(query) if match.group("param") and match.group("type")]
    for match in reversed(found):
        column = match.group("param")
        hints.setdefault(column, ColumnTypeHint(column, match.group("type").strip().lower()))
        query = replace_all(query, match.group(0), column)
    return query, hints
