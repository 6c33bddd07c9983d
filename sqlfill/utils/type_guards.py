"""Type guards used to pick adapters and mapping strategies."""

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

import msgspec
from typing_extensions import TypeGuard

__all__ = (
    "has_dict_attribute",
    "is_attrs_instance",
    "is_dataclass",
    "is_dataclass_instance",
    "is_json_fragment",
    "is_msgspec_struct",
    "is_pair_sequence",
    "is_pydantic_model",
    "is_string_mapping",
)


def is_dataclass_instance(obj: Any) -> bool:
    """Check if an object is a dataclass instance (not the class itself).

    Returns:
        True if the object is a dataclass instance.
    """
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def is_dataclass(obj: Any) -> bool:
    """Check if an object is a dataclass instance or class.

    Returns:
        True if the object is a dataclass.
    """
    return dataclasses.is_dataclass(obj)


def is_msgspec_struct(obj: Any) -> bool:
    """Check if an object is a msgspec Struct instance or class.

    Returns:
        True if the object is a msgspec struct.
    """
    if isinstance(obj, type):
        return issubclass(obj, msgspec.Struct)
    return isinstance(obj, msgspec.Struct)


def is_pydantic_model(obj: Any) -> bool:
    """Check if an object is a pydantic model instance or class.

    Pydantic is not a dependency, so this relies on the v2 model API.

    Returns:
        True if the object looks like a pydantic v2 model.
    """
    target = obj if isinstance(obj, type) else type(obj)
    return hasattr(target, "model_fields") and hasattr(target, "model_dump")


def is_attrs_instance(obj: Any) -> bool:
    """Check if an object is an attrs class or instance.

    Returns:
        True if the object carries ``__attrs_attrs__``.
    """
    target = obj if isinstance(obj, type) else type(obj)
    return hasattr(target, "__attrs_attrs__")


def has_dict_attribute(obj: Any) -> bool:
    """Check if an object has a ``__dict__`` attribute.

    Returns:
        True if ``vars()`` can be called on the object.
    """
    return hasattr(obj, "__dict__")


def is_string_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    """Check if an object is a mapping.

    Returns:
        True for any :class:`~collections.abc.Mapping`.
    """
    return isinstance(obj, Mapping)


def is_pair_sequence(obj: Any) -> "TypeGuard[Sequence[tuple[str, Any]]]":
    """Check if an object is a non-empty sequence of ``(str, value)`` pairs.

    Returns:
        True when every item is a two-element tuple with a string key.
    """
    if isinstance(obj, (str, bytes, bytearray)) or not isinstance(obj, Sequence) or not obj:
        return False
    return all(isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str) for item in obj)  # noqa: PLR2004


def is_json_fragment(obj: Any) -> "TypeGuard[msgspec.Raw]":
    """Check if an object is an undecoded JSON fragment.

    Returns:
        True for :class:`msgspec.Raw` values.
    """
    return isinstance(obj, msgspec.Raw)
