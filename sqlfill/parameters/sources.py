"""Parameter sources and the adapters that flatten them.

A source model can be a mapping, a sequence of ``(name, value)`` pairs, JSON
text, or any object whose public fields carry the values. Each kind has one
adapter; the adapter is chosen once per model and yields ``(name, value)``
pairs.
"""

import dataclasses
import inspect
from collections.abc import Iterable, Iterator, Mapping, Sequence
from functools import lru_cache
from typing import Any, Optional, Protocol, Union

import msgspec

from sqlfill.parameters.patterns import MarkerPattern, as_marker_pattern
from sqlfill.parameters.types import ParameterMap
from sqlfill.utils.logging import get_logger
from sqlfill.utils.serializers import decode_raw_members, from_json
from sqlfill.utils.type_guards import (
    has_dict_attribute,
    is_attrs_instance,
    is_dataclass_instance,
    is_json_fragment,
    is_msgspec_struct,
    is_pair_sequence,
    is_pydantic_model,
    is_string_mapping,
)

__all__ = (
    "JSONSourceAdapter",
    "MappingSourceAdapter",
    "ObjectSourceAdapter",
    "PairsSourceAdapter",
    "ParameterSource",
    "SourceAdapter",
    "coerce_sources",
    "normalize",
    "select_adapter",
)

logger = get_logger("parameters.sources")


class ParameterSource:
    """A model paired with the marker pattern whose placeholders it fills.

    ``pattern`` may be a :class:`MarkerPattern`, a raw regular expression, or
    None for the configured default.
    """

    __slots__ = ("model", "pattern")

    def __init__(self, model: Any, pattern: "Union[str, MarkerPattern, None]" = None) -> None:
        self.model = model
        self.pattern: Optional[MarkerPattern] = None if pattern is None else as_marker_pattern(pattern)

    def with_default_pattern(self, pattern: MarkerPattern) -> "ParameterSource":
        """Return this source with ``pattern`` filled in if none was given.

        Returns:
            A source with a concrete pattern.
        """
        if self.pattern is not None:
            return self
        return ParameterSource(self.model, pattern)

    def __repr__(self) -> str:
        return f"ParameterSource(model={self.model!r}, pattern={self.pattern!r})"


class SourceAdapter(Protocol):
    """Flattens one kind of model into ``(name, value)`` pairs."""

    def items(self, model: Any) -> "Iterator[tuple[str, Any]]": ...


class MappingSourceAdapter:
    """String-keyed mappings. Non-string keys are skipped."""

    __slots__ = ()

    def items(self, model: "Mapping[Any, Any]") -> "Iterator[tuple[str, Any]]":
        for key, value in model.items():
            if isinstance(key, str):
                yield key, value


class PairsSourceAdapter:
    """Sequences of ``(name, value)`` tuples."""

    __slots__ = ()

    def items(self, model: "Sequence[tuple[str, Any]]") -> "Iterator[tuple[str, Any]]":
        yield from model


class JSONSourceAdapter:
    """JSON object text.

    Top-level members become parameters, in document order and including
    repeated names. Nested objects and arrays stay as their JSON text. Text
    that is not a JSON object contributes nothing.
    """

    __slots__ = ()

    def items(self, model: "Union[str, bytes, msgspec.Raw]") -> "Iterator[tuple[str, Any]]":
        try:
            members = decode_raw_members(model)
        except msgspec.DecodeError as exc:
            logger.debug("Ignoring source that is not a JSON object: %s", exc)
            return
        for name, fragment in members:
            yield name, _fragment_value(fragment)


class ObjectSourceAdapter:
    """Objects exposing their values as public fields or properties."""

    __slots__ = ()

    def items(self, model: Any) -> "Iterator[tuple[str, Any]]":
        if is_pydantic_model(model):
            yield from model.model_dump().items()
            return
        for name in _public_fields(type(model)):
            yield name, getattr(model, name)
        if not (is_dataclass_instance(model) or is_msgspec_struct(model) or is_attrs_instance(model)):
            if has_dict_attribute(model):
                for name, value in vars(model).items():
                    if not name.startswith("_"):
                        yield name, value


_MAPPING_ADAPTER = MappingSourceAdapter()
_PAIRS_ADAPTER = PairsSourceAdapter()
_JSON_ADAPTER = JSONSourceAdapter()
_OBJECT_ADAPTER = ObjectSourceAdapter()


def _fragment_value(fragment: msgspec.Raw) -> Any:
    text = bytes(fragment)
    if text.lstrip()[:1] in {b"{", b"["}:
        return text.decode("utf-8")
    return from_json(text)


@lru_cache(maxsize=512)
def _public_fields(model_type: type) -> "tuple[str, ...]":
    """Names of the declared fields and public properties of a type."""
    if dataclasses.is_dataclass(model_type):
        names = [field.name for field in dataclasses.fields(model_type)]
    elif is_msgspec_struct(model_type):
        names = list(model_type.__struct_fields__)  # type: ignore[attr-defined]
    elif is_attrs_instance(model_type):
        names = [attribute.name for attribute in model_type.__attrs_attrs__]  # type: ignore[attr-defined]
    else:
        names = []
    properties = [
        name
        for name, _ in inspect.getmembers(model_type, lambda member: isinstance(member, property))
        if not name.startswith("_")
    ]
    return tuple(dict.fromkeys([*names, *properties]))


def select_adapter(model: Any) -> SourceAdapter:
    """Pick the adapter for a single model.

    Returns:
        The adapter that understands ``model``.
    """
    if is_string_mapping(model):
        return _MAPPING_ADAPTER
    if isinstance(model, (str, bytes, bytearray)) or is_json_fragment(model):
        return _JSON_ADAPTER
    if is_pair_sequence(model):
        return _PAIRS_ADAPTER
    return _OBJECT_ADAPTER


def _iter_models(model: Any) -> "Iterable[Any]":
    if isinstance(model, (list, tuple)) and not is_pair_sequence(model):
        return model
    return (model,)


def normalize(model: Any, *, descending: bool = False, case_sensitive: bool = False) -> ParameterMap:
    """Flatten a model, or a list of models, into one :class:`ParameterMap`.

    Null items are skipped. When a name appears more than once, the first
    value wins unless ``descending`` is set, in which case the last does.

    Returns:
        The flattened parameters.
    """
    result = ParameterMap(case_sensitive)
    if model is None:
        return result
    for item in _iter_models(model):
        if item is None:
            continue
        adapter = select_adapter(item)
        for name, value in adapter.items(item):
            if descending:
                result[name] = value
            else:
                result.setdefault(name, value)
    return result


def coerce_sources(
    params: Any, pattern: "Union[str, MarkerPattern, None]", default_pattern: MarkerPattern
) -> "list[ParameterSource]":
    """Turn whatever the caller passed as parameters into parameter sources.

    ``params`` may be None, a :class:`ParameterSource`, a list of them, or a
    bare model which is then paired with ``pattern``. None and empty lists
    yield no sources.

    Returns:
        Sources with concrete marker patterns.
    """
    if params is None or (isinstance(params, (list, tuple)) and not params):
        return []
    if isinstance(params, ParameterSource):
        sources = [params]
    elif isinstance(params, (list, tuple)) and params and all(
        item is None or isinstance(item, ParameterSource) for item in params
    ):
        sources = [item for item in params if item is not None]
    else:
        sources = [ParameterSource(params, pattern)]
    return [source.with_default_pattern(default_pattern) for source in sources]
