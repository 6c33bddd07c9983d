"""Tests for records and the JSON / XML column parsers."""

import pytest

from sqlfill.core.record import Record, parse_hinted_value, parse_json, parse_xml
from sqlfill.exceptions import TypeHintParseError


def test_record_attribute_access() -> None:
    row = Record(name="John", age=30)
    assert row.name == "John"
    assert row["age"] == 30
    row.email = "john@test.com"
    assert row["email"] == "john@test.com"
    del row.email
    assert "email" not in row


def test_record_missing_attribute() -> None:
    with pytest.raises(AttributeError):
        _ = Record().missing
    with pytest.raises(AttributeError):
        del Record().missing


def test_record_keeps_column_order() -> None:
    row = Record()
    row["b"] = 1
    row["a"] = 2
    assert list(row) == ["b", "a"]


def test_parse_json_object_tree() -> None:
    value = parse_json('{"name": "John", "address": {"city": "Oslo"}, "tags": [{"t": 1}, 2]}')
    assert isinstance(value, Record)
    assert value.address.city == "Oslo"
    assert isinstance(value.tags[0], Record)
    assert value.tags[0].t == 1
    assert value.tags[1] == 2


def test_parse_json_scalar_and_array() -> None:
    assert parse_json("42") == 42
    assert parse_json("[1, 2]") == [1, 2]


def test_parse_xml_drops_document_element() -> None:
    assert parse_xml("<items><item>a</item><item>b</item></items>") == ["a", "b"]


def test_parse_xml_complex_elements() -> None:
    document = (
        '<root><item id="1"><name>A</name><tags><t>x</t><t>y</t></tags></item><item>plain</item></root>'
    )
    first, second = parse_xml(document)
    assert second == "plain"
    assert isinstance(first, Record)
    assert first["id"] == "1"
    assert first["name"] == "A"
    assert first["item"] == "Axy"
    assert first["tags"]["t"] == ["x", "y"]


def test_parse_xml_prefixes_taken_names() -> None:
    first = parse_xml('<root><a k="1"><b>leaf</b><b><c>deep</c></b></a></root>')[0]
    assert first["b"] == "leaf"
    assert first["_b"]["c"] == "deep"


def test_parse_xml_strips_namespaces() -> None:
    first = parse_xml('<root xmlns:x="urn:x"><x:item x:id="7"><x:name>N</x:name></x:item></root>')[0]
    assert first["id"] == "7"
    assert first["name"] == "N"


def test_parse_hinted_value_json() -> None:
    assert parse_hinted_value('{"a": 1}', "json", "col") == {"a": 1}


def test_parse_hinted_value_xml() -> None:
    assert parse_hinted_value("<r><v>1</v></r>", "xml", "col") == ["1"]


@pytest.mark.parametrize(("value", "tag"), [("", "json"), (None, "json"), (5, "xml"), ("raw", "yaml")])
def test_parse_hinted_value_passthrough(value: object, tag: str) -> None:
    assert parse_hinted_value(value, tag, "col") == value


@pytest.mark.parametrize(("value", "tag"), [("{not json", "json"), ("<open>", "xml")])
def test_parse_hinted_value_failure(value: str, tag: str) -> None:
    with pytest.raises(TypeHintParseError) as exc_info:
        parse_hinted_value(value, tag, "payload")
    assert exc_info.value.column == "payload"
    assert exc_info.value.tag == tag
    assert "payload" in str(exc_info.value)
