"""Map streamed rows onto user-declared types.

Mapping is best-effort: columns are matched to fields ignoring case, a value
that cannot be coerced to its field type is left out, and a row that cannot
produce an instance at all maps to None so the caller can skip it.
"""

import dataclasses
import typing
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any, Final, Optional

import msgspec
from typing_extensions import is_typeddict

from sqlfill.utils.logging import get_logger
from sqlfill.utils.type_guards import is_attrs_instance, is_dataclass, is_msgspec_struct, is_pydantic_model

__all__ = ("coerce_value", "schema_fields", "to_schema")

logger = get_logger("utils.schema")


@lru_cache(maxsize=128)
def _detect_schema_type(schema_type: type) -> str:
    """Detect schema type with LRU caching.

    Returns:
        Type identifier string; ``"object"`` for plain classes.
    """
    return (
        "typed_dict"
        if is_typeddict(schema_type)
        else "dataclass"
        if is_dataclass(schema_type)
        else "msgspec"
        if is_msgspec_struct(schema_type)
        else "pydantic"
        if is_pydantic_model(schema_type)
        else "attrs"
        if is_attrs_instance(schema_type)
        else "object"
    )


def _type_hints(schema_type: type) -> "dict[str, Any]":
    try:
        return typing.get_type_hints(schema_type)
    except (NameError, TypeError):
        return dict(getattr(schema_type, "__annotations__", {}))


@lru_cache(maxsize=256)
def schema_fields(schema_type: type) -> "dict[str, tuple[str, Any]]":
    """Writable fields of a type, keyed by case-folded name.

    Returns:
        Case-folded name to ``(field name, annotation)``.
    """
    kind = _detect_schema_type(schema_type)
    hints = _type_hints(schema_type)
    if kind == "dataclass":
        names = [field.name for field in dataclasses.fields(schema_type) if field.init]
    elif kind == "msgspec":
        names = [field.name for field in msgspec.structs.fields(schema_type)]  # type: ignore[arg-type]
    elif kind == "pydantic":
        model_fields = schema_type.model_fields  # type: ignore[attr-defined]
        names = list(model_fields)
        hints.update({name: field.annotation for name, field in model_fields.items()})
    elif kind == "attrs":
        names = [attribute.name for attribute in schema_type.__attrs_attrs__]  # type: ignore[attr-defined]
    else:
        names = [name for name in hints if not name.startswith("_")]
        names.extend(
            name
            for name in dir(schema_type)
            if not name.startswith("_")
            and isinstance(getattr(schema_type, name, None), property)
            and getattr(schema_type, name).fset is not None
        )
    return {name.casefold(): (name, hints.get(name, Any)) for name in names}


def coerce_value(value: Any, annotation: Any) -> Any:
    """Convert one column value to a field's declared type.

    Raises:
        msgspec.ValidationError: the value cannot be represented as ``annotation``.

    Returns:
        The converted value.
    """
    if annotation is Any:
        return value
    if annotation is str and not isinstance(value, str):
        return str(value)
    return msgspec.convert(value, annotation, strict=False, from_attributes=True)


def _build_typed_dict(data: "dict[str, Any]", schema_type: Any) -> Any:
    return data


def _build_with_kwargs(data: "dict[str, Any]", schema_type: Any) -> Any:
    return schema_type(**data)


def _build_msgspec(data: "dict[str, Any]", schema_type: Any) -> Any:
    return msgspec.convert(data, schema_type, strict=False)


def _build_pydantic(data: "dict[str, Any]", schema_type: Any) -> Any:
    return schema_type.model_validate(data)


def _build_object(data: "dict[str, Any]", schema_type: Any) -> Any:
    instance = schema_type()
    for name, value in data.items():
        setattr(instance, name, value)
    return instance


_SCHEMA_BUILDERS: "Final[dict[str, Callable[[dict[str, Any], Any], Any]]]" = {
    "typed_dict": _build_typed_dict,
    "dataclass": _build_with_kwargs,
    "msgspec": _build_msgspec,
    "pydantic": _build_pydantic,
    "attrs": _build_with_kwargs,
    "object": _build_object,
}


def to_schema(row: Any, schema_type: Optional[type]) -> Any:
    """Convert one row to ``schema_type``.

    Mapping rows feed the fields of the target; a bare scalar row is converted
    directly. Null values are never assigned.

    Returns:
        The instance, the unchanged row when ``schema_type`` is None, or None
        when the row cannot be represented.
    """
    if schema_type is None or row is None:
        return row
    if isinstance(schema_type, type) and not is_typeddict(schema_type) and isinstance(row, schema_type):
        return row
    if not isinstance(row, Mapping):
        try:
            return coerce_value(row, schema_type)
        except (msgspec.ValidationError, TypeError, ValueError) as exc:
            logger.debug("Skipping scalar row not convertible to %s: %s", schema_type.__name__, exc)
            return None

    fields = schema_fields(schema_type)
    data: "dict[str, Any]" = {}
    for column, value in row.items():
        field = fields.get(str(column).casefold())
        if field is None or value is None:
            continue
        name, annotation = field
        if name in data:
            continue
        try:
            data[name] = coerce_value(value, annotation)
        except (msgspec.ValidationError, TypeError, ValueError) as exc:
            logger.debug("Leaving field %s.%s unset: %s", schema_type.__name__, name, exc)

    try:
        return _SCHEMA_BUILDERS[_detect_schema_type(schema_type)](data, schema_type)
    except (msgspec.ValidationError, TypeError, ValueError) as exc:
        logger.debug("Skipping row not convertible to %s: %s", schema_type.__name__, exc)
        return None
