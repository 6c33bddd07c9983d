"""Group parameter sources by marker pattern."""

from collections.abc import Sequence
from typing import Optional

from sqlfill.parameters.patterns import MarkerPattern
from sqlfill.parameters.sources import ParameterSource, normalize
from sqlfill.parameters.types import ParameterMap, ReducedGroup

__all__ = ("reduce_sources",)


def reduce_sources(
    sources: "Sequence[Optional[ParameterSource]]", *, reverse: bool = False, case_sensitive: bool = False
) -> "list[ReducedGroup]":
    """Merge sources that share a marker pattern.

    With ``reverse`` the list is walked from the end, so the last source and,
    inside each model, the last duplicate name win. Groups keep the order in
    which their pattern first appears in the walk.

    Every source must carry a concrete pattern; see
    :func:`~sqlfill.parameters.sources.coerce_sources`.

    Returns:
        One group per distinct pattern.
    """
    ordered = list(reversed(sources)) if reverse else list(sources)
    groups: "dict[MarkerPattern, ParameterMap]" = {}
    for source in ordered:
        if source is None or source.pattern is None:
            continue
        merged = groups.get(source.pattern)
        if merged is None:
            merged = groups[source.pattern] = ParameterMap(case_sensitive)
        for name, value in normalize(source.model, descending=reverse, case_sensitive=case_sensitive).items():
            merged.setdefault(name, value)
    return [ReducedGroup(pattern, parameters) for pattern, parameters in groups.items()]
