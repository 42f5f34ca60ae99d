"""
Recursive-descent JSON reader/writer used by the fallback codec.

Values are classified into a tagged variant (object, array, string, number, boolean, null);
no text is ever evaluated. Output is ASCII-only: code points above 0x7f are written as
\\uXXXX escapes (surrogate pairs above the BMP). Besides true/false/null the reader accepts
`undefined` as null; any other bare word is refused as malformed input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from dialogbridge.utils.exceptions import MalformedPayloadError, PayloadEncodeError

MAX_DEPTH = 512

_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")
_WORD = re.compile(r"[A-Za-z_$][\w$]*")
_KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None, "undefined": None}
_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_SHORT_ESCAPES = {'"': '\\"', "\\": "\\\\", "\b": "\\b", "\f": "\\f", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_WHITESPACE = " \t\n\r"


class JsonKind(Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


def json_kind(value: Any) -> JsonKind:
    """Tag a normalized value with its JSON kind."""
    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, Mapping):
        return JsonKind.OBJECT
    raise PayloadEncodeError(f"value of type {type(value).__name__} is not JSON-compatible")


def quote(text: str) -> str:
    out = ['"']
    for char in text:
        if char in _SHORT_ESCAPES:
            out.append(_SHORT_ESCAPES[char])
            continue
        code = ord(char)
        if code < 0x20 or 0x7F <= code <= 0xFFFF:
            out.append(f"\\u{code:04x}")
        elif code > 0xFFFF:
            code -= 0x10000
            out.append(f"\\u{0xD800 + (code >> 10):04x}\\u{0xDC00 + (code & 0x3FF):04x}")
        else:
            out.append(char)
    out.append('"')
    return "".join(out)


def dumps(value: Any, _depth: int = 0) -> str:
    if _depth > MAX_DEPTH:
        raise PayloadEncodeError("value is nested too deeply")
    kind = json_kind(value)
    if kind is JsonKind.NULL:
        return "null"
    if kind is JsonKind.BOOLEAN:
        return "true" if value else "false"
    if kind is JsonKind.NUMBER:
        if isinstance(value, int):
            return str(int(value))
        if value != value or value in (float("inf"), float("-inf")):
            raise PayloadEncodeError(f"{value!r} is not a JSON number")
        return repr(float(value))
    if kind is JsonKind.STRING:
        return quote(value)
    if kind is JsonKind.ARRAY:
        return "[" + ",".join(dumps(item, _depth + 1) for item in value) + "]"
    parts = []
    for key, item in value.items():
        if not isinstance(key, str):
            raise PayloadEncodeError(f"object key {key!r} is not a string")
        parts.append(f"{quote(key)}:{dumps(item, _depth + 1)}")
    return "{" + ",".join(parts) + "}"


def loads(text: str) -> Any:
    return _Reader(text).read()


class _Reader:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def read(self) -> Any:
        value = self._value(0)
        self._skip_whitespace()
        if self.pos != len(self.text):
            self._fail("unexpected trailing data")
        return value

    def _fail(self, reason: str) -> None:
        raise MalformedPayloadError(f"Invalid JSON at position {self.pos}: {reason}", self.text)

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            self._fail(f"expected {char!r}")
        self.pos += 1

    def _value(self, depth: int) -> Any:
        if depth > MAX_DEPTH:
            self._fail("nested too deeply")
        self._skip_whitespace()
        char = self._peek()
        if char == "{":
            return self._object(depth)
        if char == "[":
            return self._array(depth)
        if char == '"':
            return self._string()
        if char == "-" or char.isdigit():
            return self._number()
        if _WORD.match(char or " "):
            return self._word()
        self._fail("unexpected end of input" if not char else f"unexpected character {char!r}")

    def _object(self, depth: int) -> dict[str, Any]:
        self._expect("{")
        result: dict[str, Any] = {}
        self._skip_whitespace()
        if self._peek() == "}":
            self.pos += 1
            return result
        while True:
            self._skip_whitespace()
            if self._peek() != '"':
                self._fail("object keys must be strings")
            key = self._string()
            self._skip_whitespace()
            self._expect(":")
            result[key] = self._value(depth + 1)
            self._skip_whitespace()
            if self._peek() == ",":
                self.pos += 1
                continue
            self._expect("}")
            return result

    def _array(self, depth: int) -> list[Any]:
        self._expect("[")
        result: list[Any] = []
        self._skip_whitespace()
        if self._peek() == "]":
            self.pos += 1
            return result
        while True:
            result.append(self._value(depth + 1))
            self._skip_whitespace()
            if self._peek() == ",":
                self.pos += 1
                continue
            self._expect("]")
            return result

    def _string(self) -> str:
        self._expect('"')
        out: list[str] = []
        while True:
            if self.pos >= len(self.text):
                self._fail("unterminated string")
            char = self.text[self.pos]
            self.pos += 1
            if char == '"':
                return "".join(out)
            if char == "\\":
                out.append(self._escape())
            elif ord(char) < 0x20:
                self._fail("control character in string")
            else:
                out.append(char)

    def _escape(self) -> str:
        char = self._peek()
        self.pos += 1
        if char in _ESCAPES:
            return _ESCAPES[char]
        if char != "u":
            self._fail(f"invalid escape \\{char}")
        code = self._hex4()
        if 0xD800 <= code <= 0xDBFF and self.text.startswith("\\u", self.pos):
            saved = self.pos
            self.pos += 2
            low = self._hex4()
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            self.pos = saved
        return chr(code)

    def _hex4(self) -> int:
        digits = self.text[self.pos:self.pos + 4]
        if len(digits) != 4 or any(d not in "0123456789abcdefABCDEF" for d in digits):
            self._fail("invalid unicode escape")
        self.pos += 4
        return int(digits, 16)

    def _number(self) -> int | float:
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            self._fail("invalid number")
        self.pos = match.end()
        if match.group(1) or match.group(2):
            return float(match.group(0))
        return int(match.group(0))

    def _word(self) -> Any:
        match = _WORD.match(self.text, self.pos)
        word = match.group(0)
        if word not in _KEYWORDS:
            self._fail(f"invalid unquoted textual expression {word!r}")
        self.pos = match.end()
        return _KEYWORDS[word]
