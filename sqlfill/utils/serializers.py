"""JSON serialization utilities for sqlfill.

Thin wrappers around :mod:`msgspec.json` so the rest of the library has a
single place that decides how JSON is encoded and decoded.
"""

from typing import Any, Literal, Union, overload

import msgspec

__all__ = ("RAW_OBJECT_TYPE", "decode_raw_members", "from_json", "to_json")

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()

RAW_OBJECT_TYPE = dict[str, msgspec.Raw]
"""Decode target that keeps every member of a JSON object as undecoded text."""

_raw_object_decoder = msgspec.json.Decoder(RAW_OBJECT_TYPE)


def _enc_hook(value: Any) -> Any:
    """Fallback encoder for values msgspec does not know natively."""
    return str(value)


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON string or bytes.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of string.

    Returns:
        JSON string or bytes representation based on as_bytes parameter.
    """
    try:
        encoded = _encoder.encode(data)
    except TypeError:
        encoded = msgspec.json.encode(data, enc_hook=_enc_hook)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def from_json(data: Union[str, bytes]) -> Any:
    """Decode JSON string or bytes to Python object.

    Args:
        data: JSON string or bytes to decode.

    Returns:
        Decoded Python object.
    """
    return _decoder.decode(data)


_WHITESPACE = frozenset(b" \t\r\n")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_OPENERS = frozenset(b"{[")
_CLOSERS = frozenset(b"}]")
_SCALAR_END = frozenset(b",}] \t\r\n")


def _skip_whitespace(text: bytes, index: int) -> int:
    while index < len(text) and text[index] in _WHITESPACE:
        index += 1
    return index


def _string_end(text: bytes, start: int) -> int:
    index = start + 1
    while text[index] != _QUOTE:
        index += 2 if text[index] == _BACKSLASH else 1
    return index + 1


def _value_end(text: bytes, start: int) -> int:
    first = text[start]
    if first == _QUOTE:
        return _string_end(text, start)
    if first not in _OPENERS:
        index = start
        while index < len(text) and text[index] not in _SCALAR_END:
            index += 1
        return index
    depth = 0
    index = start
    while True:
        char = text[index]
        if char == _QUOTE:
            index = _string_end(text, index)
            continue
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1


def decode_raw_members(data: Union[str, bytes, msgspec.Raw]) -> "list[tuple[str, msgspec.Raw]]":
    """Decode a JSON object into its members in document order.

    Repeated member names are all kept, so the caller decides which
    occurrence wins.

    Raises:
        msgspec.DecodeError: the text is not valid JSON.
        msgspec.ValidationError: the text is valid JSON but not an object.

    Returns:
        ``(name, raw value)`` pairs.
    """
    text = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    # msgspec validates the document; the scan below only splits it
    _raw_object_decoder.decode(text)
    members: "list[tuple[str, msgspec.Raw]]" = []
    index = _skip_whitespace(text, 0) + 1
    while True:
        index = _skip_whitespace(text, index)
        if text[index] == ord("}"):
            return members
        name_end = _string_end(text, index)
        name = _decoder.decode(text[index:name_end])
        start = _skip_whitespace(text, _skip_whitespace(text, name_end) + 1)
        end = _value_end(text, start)
        members.append((name, msgspec.Raw(text[start:end])))
        index = _skip_whitespace(text, end)
        if text[index] == ord(","):
            index += 1
