"""Dynamic row records and the JSON / XML column parsers."""

import xml.etree.ElementTree as ET
from typing import Any

import msgspec

from sqlfill.exceptions import TypeHintParseError
from sqlfill.utils.serializers import from_json

__all__ = ("Record", "parse_hinted_value", "parse_json", "parse_xml")


class Record(dict):  # type: ignore[type-arg]
    """A row whose columns are reachable as keys and as attributes.

    >>> row = Record(name="John", age=30)
    >>> row.name, row["age"]
    ('John', 30)
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"Record({dict.__repr__(self)})"


def _to_record_tree(value: Any) -> Any:
    if isinstance(value, dict):
        return Record((key, _to_record_tree(item)) for key, item in value.items())
    if isinstance(value, list):
        return [_to_record_tree(item) for item in value]
    return value


def parse_json(text: str) -> Any:
    """Parse JSON text into records, lists and scalars.

    Raises:
        msgspec.DecodeError: the text is not valid JSON.

    Returns:
        Objects as :class:`Record`, arrays as lists, scalars unchanged.
    """
    return _to_record_tree(from_json(text))


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _is_leaf(element: ET.Element) -> bool:
    return not element.attrib and len(element) == 0


def _element_value(element: ET.Element) -> Any:
    if _is_leaf(element):
        return "".join(element.itertext())

    properties: "dict[str, list[str]]" = {}
    properties.setdefault(_local_name(element.tag), []).append("".join(element.itertext()))
    for name, value in element.attrib.items():
        properties.setdefault(_local_name(name), []).append(value)
    for child in element:
        if _is_leaf(child):
            properties.setdefault(_local_name(child.tag), []).append("".join(child.itertext()))

    record = Record()
    for name, values in properties.items():
        record[name] = values[0] if len(values) == 1 else values
    for child in element:
        if _is_leaf(child):
            continue
        name = _local_name(child.tag)
        if name in properties:
            name = f"_{name}"
        if name not in record:
            record[name] = _element_value(child)
    return record


def parse_xml(text: str) -> "list[Any]":
    """Parse XML text into records.

    The document element is dropped and each of its children becomes one list
    entry. A child without attributes or children becomes its text. Any other
    element becomes a :class:`Record` holding its own text under its tag name,
    its attributes, and its leaf children (repeated names collect into a
    list). Complex children nest as records, with a ``_`` prefix when their
    name is already taken.

    Raises:
        xml.etree.ElementTree.ParseError: the text is not well-formed XML.

    Returns:
        One entry per child of the document element.
    """
    root = ET.fromstring(text)  # noqa: S314
    return [_element_value(child) for child in root]


def parse_hinted_value(value: Any, tag: str, column: str) -> Any:
    """Parse a column value according to its type hint.

    Unknown tags and non-text values pass through unchanged.

    Raises:
        TypeHintParseError: the text could not be parsed.

    Returns:
        The parsed value.
    """
    if not isinstance(value, str) or not value:
        return value
    if tag == "json":
        try:
            return parse_json(value)
        except msgspec.DecodeError as exc:
            raise TypeHintParseError(column, tag, str(exc)) from exc
    if tag == "xml":
        try:
            return parse_xml(value)
        except ET.ParseError as exc:
            raise TypeHintParseError(column, tag, str(exc)) from exc
    return value
