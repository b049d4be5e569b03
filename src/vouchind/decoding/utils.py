"""Decoding utilities: ABI word access, typed parsers, name conversion."""

from __future__ import annotations

import re
from typing import Any

from .specs import TopicFieldSpec

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def word_at(data: bytes, i: int) -> bytes:
    """Return the i-th 32-byte ABI word (zero-padded if out-of-range)."""
    start = 32 * i
    end = start + 32
    return data[start:end] if start < len(data) else b"\x00" * 32


def _parse_int_word(word: bytes, typ: str) -> int:
    v = int.from_bytes(word, "big", signed=False)
    if typ.startswith("int"):
        # Two's complement for signed types
        bits = int(typ[3:]) if typ != "int" else 256
        if v >= 2 ** (bits - 1):
            v -= 2**bits
    return v


def parse_topic_field(topic_hex: str, spec: TopicFieldSpec) -> Any:
    """Parse one indexed topic according to the declared type."""
    h = topic_hex.lower()
    raw = bytes.fromhex(h[2:] if h.startswith("0x") else h).rjust(32, b"\x00")
    return parse_data_word(raw, spec.type)


def parse_data_word(word: bytes, typ: str) -> Any:
    """Parse one ABI word according to the declared type."""
    if typ == "address":
        return "0x" + word[-20:].hex()
    if typ == "bool":
        return any(word)
    if typ.startswith("uint") or typ.startswith("int"):
        return _parse_int_word(word, typ)
    return "0x" + word.hex()


def snake_case(name: str) -> str:
    """`goalId` → `goal_id`, `newDeadline` → `new_deadline`."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()
