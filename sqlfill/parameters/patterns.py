"""Placeholder marker patterns.

A marker pattern is a regular expression with three named groups:
``open_marker``, ``param`` and ``close_marker``. Several patterns can live in
the same template, each answering to its own parameter sources.
"""

import re
from collections.abc import Iterator
from functools import lru_cache
from typing import Final, NamedTuple, Union

from sqlfill.exceptions import ImproperUsageError

__all__ = (
    "DEFAULT_MARKER_REGEX",
    "DEFAULT_TYPE_HINT_REGEX",
    "MarkerPattern",
    "PlaceholderMatch",
    "as_marker_pattern",
    "compile_pattern",
)

DEFAULT_MARKER_REGEX: Final[str] = r"(?P<open_marker>\{\{)(?P<param>.*?)?(?P<close_marker>\}\})"
"""Matches ``{{name}}``."""

DEFAULT_TYPE_HINT_REGEX: Final[str] = (
    r"(?P<open_marker>\{type\{)(?P<type>.*?)\{(?P<param>.*?)?(?P<close_marker>\}\}\})"
)
"""Matches ``{type{json{alias}}}``."""

_MARKER_GROUPS: Final = frozenset({"open_marker", "param", "close_marker"})


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a regular expression once per process.

    Returns:
        The compiled expression.
    """
    return re.compile(pattern, re.DOTALL)


class PlaceholderMatch(NamedTuple):
    """One placeholder found in a template."""

    open_marker: str
    name: str
    close_marker: str

    @property
    def text(self) -> str:
        """The placeholder exactly as written in the template."""
        return f"{self.open_marker}{self.name}{self.close_marker}"


class MarkerPattern:
    """A compiled placeholder syntax.

    Two patterns are equal when their regular expression text is equal, which
    is what the source reducer groups on.
    """

    __slots__ = ("_regex", "pattern")

    def __init__(self, pattern: str) -> None:
        if not pattern:
            msg = "A marker pattern cannot be empty."
            raise ImproperUsageError(msg)
        try:
            regex = compile_pattern(pattern)
        except re.error as exc:
            msg = f"Invalid marker pattern {pattern!r}: {exc}"
            raise ImproperUsageError(msg) from exc
        missing = _MARKER_GROUPS.difference(regex.groupindex)
        if missing:
            msg = f"Marker pattern {pattern!r} is missing the named groups: {', '.join(sorted(missing))}"
            raise ImproperUsageError(msg)
        self.pattern = pattern
        self._regex = regex

    @classmethod
    def delimited(cls, open_marker: str, close_marker: str) -> "MarkerPattern":
        """Build a pattern from literal delimiters, e.g. ``("[[", "]]")``.

        Returns:
            The marker pattern.
        """
        return cls(
            f"(?P<open_marker>{re.escape(open_marker)})(?P<param>.*?)?(?P<close_marker>{re.escape(close_marker)})"
        )

    def finditer(self, text: str) -> "Iterator[PlaceholderMatch]":
        """Yield every placeholder with a non-empty name, in text order."""
        for match in self._regex.finditer(text):
            name = match.group("param")
            if not name:
                continue
            yield PlaceholderMatch(match.group("open_marker") or "", name, match.group("close_marker") or "")

    def distinct(self, text: str, *, case_sensitive: bool = False) -> "list[PlaceholderMatch]":
        """Return each distinct placeholder once, in order of first appearance.

        Placeholders are compared on their full text, ignoring case unless
        ``case_sensitive`` is set.

        Returns:
            The distinct placeholders.
        """
        seen: "set[str]" = set()
        result: "list[PlaceholderMatch]" = []
        for placeholder in self.finditer(text):
            key = placeholder.text if case_sensitive else placeholder.text.casefold()
            if key in seen:
                continue
            seen.add(key)
            result.append(placeholder)
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MarkerPattern):
            return False
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return f"MarkerPattern({self.pattern!r})"


def as_marker_pattern(pattern: "Union[str, MarkerPattern]") -> MarkerPattern:
    """Coerce a raw regular expression into a :class:`MarkerPattern`.

    Returns:
        The marker pattern.
    """
    if isinstance(pattern, MarkerPattern):
        return pattern
    return _cached_marker_pattern(pattern)


@lru_cache(maxsize=256)
def _cached_marker_pattern(pattern: str) -> MarkerPattern:
    return MarkerPattern(pattern)
