"""Serialization codecs for bridge frames.

Only JSON-compatible values cross the boundary: object, array, string, number, boolean, null.
Enum members (the symbol-like values of Python) are normalized to plain strings first.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Literal, Protocol, runtime_checkable

from dialogbridge.core import fallback_json
from dialogbridge.utils.exceptions import MalformedPayloadError, PayloadEncodeError


@runtime_checkable
class Codec(Protocol):
    name: str

    def encode(self, value: Any) -> str: ...
    def decode(self, text: str) -> Any: ...


def symbol_to_str(member: Enum) -> str:
    """Enum members become their string value, or their name for non-string values."""
    return member.value if isinstance(member.value, str) else member.name


def normalize(value: Any) -> Any:
    """Return a copy of `value` built only from JSON-native Python types."""
    if isinstance(value, Enum):
        return symbol_to_str(value)
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise PayloadEncodeError(f"{value!r} is not a JSON number")
        return value
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    if isinstance(value, Mapping):
        return {_normalize_key(key): normalize(item) for key, item in value.items()}
    raise PayloadEncodeError(f"value of type {type(value).__name__} is not JSON-compatible")


def _normalize_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return symbol_to_str(key)
    if key is None or isinstance(key, (bool, int, float)):
        return json.dumps(key)
    raise PayloadEncodeError(f"object key of type {type(key).__name__} is not JSON-compatible")


def _reject_constant(token: str) -> Any:
    raise MalformedPayloadError(f"JSON string contains invalid constant {token}", token)


class JsonCodec:
    """Codec backed by the standard library json module."""

    name = "json"

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def encode(self, value: Any) -> str:
        return json.dumps(normalize(value), ensure_ascii=self.ensure_ascii, separators=(",", ":"), allow_nan=False)

    def decode(self, text: str) -> Any:
        if not isinstance(text, str):
            raise MalformedPayloadError("payload must be a string", text)
        try:
            return json.loads(text, parse_constant=_reject_constant)
        except json.JSONDecodeError as e:
            raise MalformedPayloadError(f"Invalid JSON: {e}", text) from e


class FallbackJsonCodec:
    """Codec backed by the recursive-descent reader/writer; output is ASCII-only."""

    name = "fallback"

    def encode(self, value: Any) -> str:
        return fallback_json.dumps(normalize(value))

    def decode(self, text: str) -> Any:
        if not isinstance(text, str):
            raise MalformedPayloadError("payload must be a string", text)
        return fallback_json.loads(text)


def get_codec(name: Literal["json", "fallback"] = "json", *, ensure_ascii: bool = False) -> Codec:
    """Return a codec by name."""
    if name == "json":
        return JsonCodec(ensure_ascii=ensure_ascii)
    if name == "fallback":
        return FallbackJsonCodec()
    raise ValueError(f"unknown codec: {name}")
