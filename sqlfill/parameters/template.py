"""Template text that tracks which parts have already been substituted.

Substituted text is frozen: later scans never see it, so a value that
happens to look like a placeholder is never expanded again.
"""

import re
from functools import lru_cache

from sqlfill.parameters.patterns import MarkerPattern, PlaceholderMatch

__all__ = ("TemplateText",)


@lru_cache(maxsize=1024)
def _literal_regex(text: str, ignore_case: bool) -> "re.Pattern[str]":
    return re.compile(f"({re.escape(text)})", re.IGNORECASE if ignore_case else 0)


class TemplateText:
    """A template split into open segments and frozen substitutions."""

    __slots__ = ("_segments",)

    def __init__(self, text: str) -> None:
        # (text, frozen)
        self._segments: "list[tuple[str, bool]]" = [(text, False)]

    def placeholders(self, pattern: MarkerPattern, *, case_sensitive: bool = False) -> "list[PlaceholderMatch]":
        """Distinct placeholders of ``pattern`` in the open segments.

        Returns:
            Placeholders in order of first appearance.
        """
        seen: "set[str]" = set()
        result: "list[PlaceholderMatch]" = []
        for text, frozen in self._segments:
            if frozen:
                continue
            for placeholder in pattern.distinct(text, case_sensitive=case_sensitive):
                key = placeholder.text if case_sensitive else placeholder.text.casefold()
                if key not in seen:
                    seen.add(key)
                    result.append(placeholder)
        return result

    def substitute(self, old: str, new: str, *, ignore_case: bool = True) -> int:
        """Replace every open occurrence of ``old`` with frozen ``new``.

        Returns:
            How many occurrences were replaced.
        """
        if not old:
            return 0
        regex = _literal_regex(old, ignore_case)
        count = 0
        segments: "list[tuple[str, bool]]" = []
        for text, frozen in self._segments:
            if frozen:
                segments.append((text, frozen))
                continue
            # split() with a capturing group alternates open text and matches
            for index, part in enumerate(regex.split(text)):
                if index % 2:
                    segments.append((new, True))
                    count += 1
                elif part:
                    segments.append((part, False))
        self._segments = segments
        return count

    def render(self) -> str:
        return "".join(text for text, _ in self._segments)

    def __str__(self) -> str:
        return self.render()
