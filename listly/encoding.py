"""Byte encodings for values kept in the key-value store."""

from __future__ import annotations

import struct
from collections.abc import Iterable

_WORD = 8
_MASK = (1 << 64) - 1


def bool_to_bytes(value: bool) -> bytes:
    """Encode a flag as a single byte, 1 or 0."""
    return b"\x01" if value else b"\x00"


def bytes_to_bool(data: bytes) -> bool:
    """Decode a flag; only a leading byte of exactly 1 is true."""
    return len(data) > 0 and data[0] == 1


def itob(value: int) -> bytes:
    """Encode an integer as 8 big-endian bytes, wrapping to 64 bits."""
    return struct.pack(">Q", value & _MASK)


def btoi(data: bytes) -> int:
    """Decode the first 8 big-endian bytes as a signed 64-bit integer."""
    if len(data) < _WORD:
        raise ValueError(f"need {_WORD} bytes to decode an integer, got {len(data)}")
    return struct.unpack_from(">q", data)[0]


def ints_to_bytes(values: Iterable[int]) -> bytes:
    """Encode integers as consecutive 8-byte big-endian words."""
    return b"".join(itob(v) for v in values)


def bytes_to_ints(data: bytes) -> list[int]:
    """Decode consecutive 8-byte words, ignoring any trailing partial word."""
    usable = len(data) - len(data) % _WORD
    return [v for (v,) in struct.iter_unpack(">q", data[:usable])]