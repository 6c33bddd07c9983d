"""Text helpers for building and matching generated SQL text."""

import re
from functools import lru_cache

__all__ = ("replace_all", "sanitize_parameter_name")

# Characters that are not allowed in a provider parameter name.
_UNSAFE_PARAMETER_CHARS_RE = re.compile(r"[-\s.()\[\]{}:;,?!#$%^&*+=|\\/~`´'\"<>]")


def sanitize_parameter_name(name: str) -> str:
    """Replace every character that cannot appear in a bind name with ``_``.

    Args:
        name: The placeholder name as written in the template.

    Returns:
        A name safe to splice into a generated parameter name.
    """
    return _UNSAFE_PARAMETER_CHARS_RE.sub("_", name)


@lru_cache(maxsize=1024)
def _literal_pattern(text: str, ignore_case: bool) -> "re.Pattern[str]":
    return re.compile(re.escape(text), re.IGNORECASE if ignore_case else 0)


def replace_all(text: str, old: str, new: str, *, ignore_case: bool = True) -> str:
    """Replace every occurrence of ``old`` with ``new``.

    The replacement is literal: backslashes and group references in ``new`` are
    not interpreted.

    Returns:
        The text with all occurrences replaced.
    """
    if not old:
        return text
    if not ignore_case:
        return text.replace(old, new)
    return _literal_pattern(old, ignore_case).sub(lambda _: new, text)
