"""Encoding and decoding of keys and values.

Integer keys are encoded so that the byte order of their encodings matches
the numeric order of the integers: the type's minimum is subtracted
(wrapping), and the result is written big-endian. Values are encoded as
compact JSON.
"""

from __future__ import annotations

import json
import operator
from collections.abc import Iterable
from enum import Enum
from typing import Any

__all__ = [
    "CodecError",
    "IntKind",
    "encode_int",
    "decode_int",
    "encode_int_seq",
    "decode_int_seq",
    "encode_str_key",
    "decode_str_key",
    "encode_bytes_key",
    "decode_bytes_key",
    "encode_value",
    "decode_value",
]

MAX_ARRAY_LENGTH = 128


class CodecError(ValueError):
    """Raised when a key or value cannot be encoded or decoded."""


class IntKind(Enum):
    """Fixed-width integer types usable as ordered keys."""

    I8 = ("i8", 1, True)
    I16 = ("i16", 2, True)
    I32 = ("i32", 4, True)
    I64 = ("i64", 8, True)
    I128 = ("i128", 16, True)
    ISIZE = ("isize", 8, True)
    U8 = ("u8", 1, False)
    U16 = ("u16", 2, False)
    U32 = ("u32", 4, False)
    U64 = ("u64", 8, False)
    U128 = ("u128", 16, False)
    USIZE = ("usize", 8, False)

    @property
    def signed(self) -> bool:
        return self.value[2]

    def width(self) -> int:
        """Size of one encoded integer, in bytes."""
        return self.value[1]

    def minimum(self) -> int:
        """Smallest value of this type."""
        return -(1 << (8 * self.width() - 1)) if self.signed else 0

    def maximum(self) -> int:
        """Largest value of this type."""
        bits = 8 * self.width()
        return (1 << (bits - 1)) - 1 if self.signed else (1 << bits) - 1


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise CodecError(f"not an integer: {value!r}")
    try:
        return operator.index(value)
    except TypeError as exc:
        raise CodecError(f"not an integer: {value!r}") from exc


def encode_int(value: int, kind: IntKind) -> bytes:
    """Encode an integer so that byte order follows numeric order."""
    number = _as_int(value)
    if not kind.minimum() <= number <= kind.maximum():
        raise CodecError(f"{number} does not fit in {kind.value[0]}")
    return (number - kind.minimum()).to_bytes(kind.width(), "big")


def decode_int(data: bytes, kind: IntKind) -> int:
    """Decode one integer written by :func:`encode_int`."""
    if len(data) != kind.width():
        raise CodecError(
            f"expected {kind.width()} bytes for {kind.value[0]}, got {len(data)}"
        )
    return int.from_bytes(data, "big") + kind.minimum()


def encode_int_seq(values: Iterable[int], kind: IntKind) -> bytes:
    """Encode a sequence of integers as the concatenation of their encodings."""
    return b"".join(encode_int(v, kind) for v in values)


def decode_int_seq(data: bytes, kind: IntKind, length: int | None = None) -> list[int]:
    """Decode a sequence of integers.

    With ``length`` given, the data must hold exactly that many integers, as
    for a fixed-size array of 1 to 128 elements.
    """
    width = kind.width()
    if len(data) % width:
        raise CodecError("invalid bytes")
    if length is not None:
        if not 1 <= length <= MAX_ARRAY_LENGTH:
            raise CodecError(
                f"array length must be between 1 and {MAX_ARRAY_LENGTH}, got {length}"
            )
        if len(data) // width != length:
            raise CodecError("invalid bytes")
    view = memoryview(bytes(data))
    return [
        decode_int(view[start : start + width].tobytes(), kind)
        for start in range(0, len(view), width)
    ]


def encode_str_key(text: str) -> bytes:
    """Encode a string key as UTF-8."""
    if not isinstance(text, str):
        raise CodecError(f"not a string: {text!r}")
    return text.encode("utf-8")


def decode_str_key(data: bytes) -> str:
    """Decode a UTF-8 string key."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"invalid UTF-8 key: {exc}") from exc


def encode_bytes_key(data: bytes) -> bytes:
    """Raw byte keys are stored as they are."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError(f"not a bytes-like object: {data!r}")
    return bytes(data)


def decode_bytes_key(data: bytes) -> bytes:
    """Raw byte keys are read back as they are."""
    return bytes(data)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return list(bytes(obj))
    raise TypeError(f"value of type {type(obj).__name__} cannot be encoded")


def encode_value(value: Any) -> bytes:
    """Encode a value as compact UTF-8 JSON; byte strings become integer lists."""
    try:
        text = json.dumps(
            value,
            default=_json_default,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as exc:
        raise CodecError(str(exc)) from exc
    return text.encode("utf-8")


def decode_value(data: bytes) -> Any:
    """Decode a value written by :func:`encode_value`."""
    try:
        return json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CodecError(f"invalid encoded value: {exc}") from exc