"""
Exception hierarchy and error classification for dialogbridge.

Provides:
- Custom exception classes with error codes
- Error categorization (validation, protocol, state, remote)
- Envelope kinds for faults that cross the bridge boundary
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PROTOCOL = "protocol"
    STATE = "state"
    REMOTE = "remote"
    FATAL = "fatal"


class ErrorKind(Enum):
    """Kinds of faults an error envelope distinguishes."""
    REFERENCE = "reference"
    SYNTAX = "syntax"
    TYPE = "type"
    GENERIC = "generic"


class BridgeError(Exception):
    """Base exception for all dialogbridge errors."""

    def __init__(
        self,
        message: str,
        code: str = "BRIDGE_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidArgumentError(BridgeError):
    """Malformed call to on/once/off/call/get; never sent over the wire."""

    def __init__(self, message: str, argument: str | None = None):
        details = {"argument": argument} if argument else {}
        super().__init__(message, code="INVALID_ARGUMENT", category=ErrorCategory.VALIDATION, details=details)


class MalformedPayloadError(BridgeError):
    """Inbound data failed shape validation or was refused by the codec."""

    def __init__(self, message: str, payload: Any = None):
        details = {"payload": _preview(payload)} if payload is not None else {}
        super().__init__(message, code="MALFORMED_PAYLOAD", category=ErrorCategory.PROTOCOL, details=details)


class PayloadEncodeError(BridgeError, TypeError):
    """A value handed to the codec is not JSON-compatible."""

    def __init__(self, message: str):
        super().__init__(message, code="PAYLOAD_NOT_SERIALIZABLE", category=ErrorCategory.VALIDATION)


class NoSuchHandlerError(BridgeError):
    """An inbound request names a callback that is not registered."""

    def __init__(self, name: str):
        super().__init__(
            f"No registered callback `{name}` found.",
            code="NO_SUCH_HANDLER",
            category=ErrorCategory.NOT_FOUND,
            details={"name": name},
        )
        self.name = name


class PromiseStateError(BridgeError):
    """A settled promise was settled again in a conflicting way."""

    def __init__(self, message: str):
        super().__init__(message, code="PROMISE_STATE", category=ErrorCategory.STATE)


class PromiseRejection(BridgeError):
    """Raised when awaiting a promise rejected with non-exception reasons."""

    def __init__(self, reasons: tuple[Any, ...]):
        first = reasons[0] if reasons else None
        super().__init__(
            f"Promise rejected with {first!r}",
            code="PROMISE_REJECTED",
            category=ErrorCategory.STATE,
            details={"reasons": list(reasons)},
        )
        self.reasons = reasons


class RemoteError(BridgeError):
    """A fault raised on the remote side, rebuilt from its error envelope."""

    def __init__(self, type: str, message: str, backtrace: list[str] | None = None, kind: ErrorKind | None = None):
        super().__init__(
            message,
            code="REMOTE_ERROR",
            category=ErrorCategory.REMOTE,
            details={"type": type},
        )
        self.type = type
        self.backtrace = list(backtrace or [])
        self.kind = kind or kind_for_type_name(type)

    @property
    def envelope(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "backtrace": list(self.backtrace)}

    def __str__(self) -> str:
        return f"{self.type}: {self.message}"


_REFERENCE_TYPES = {"NameError", "AttributeError", "KeyError", "LookupError", "IndexError", "ReferenceError", "NoMethodError"}
_SYNTAX_TYPES = {"SyntaxError", "JSONDecodeError", "MalformedPayloadError"}
_TYPE_TYPES = {"TypeError", "ValueError", "ArgumentError", "InvalidArgumentError", "RangeError"}


def kind_for_type_name(type_name: str | None) -> ErrorKind:
    """Classify an error class name coming from either side of the bridge."""
    name = (type_name or "").rsplit(".", 1)[-1].rsplit("::", 1)[-1]
    if name in _REFERENCE_TYPES:
        return ErrorKind.REFERENCE
    if name in _SYNTAX_TYPES:
        return ErrorKind.SYNTAX
    if name in _TYPE_TYPES:
        return ErrorKind.TYPE
    return ErrorKind.GENERIC


def classify_exception(exc: BaseException) -> ErrorKind:
    """Return the envelope kind for a local exception."""
    if isinstance(exc, RemoteError):
        return exc.kind
    if isinstance(exc, (NameError, LookupError, NoSuchHandlerError)):
        return ErrorKind.REFERENCE
    if isinstance(exc, (SyntaxError, json.JSONDecodeError, MalformedPayloadError)):
        return ErrorKind.SYNTAX
    if isinstance(exc, (TypeError, ValueError, InvalidArgumentError)):
        return ErrorKind.TYPE
    return ErrorKind.GENERIC


def _preview(payload: Any, limit: int = 200) -> str:
    text = payload if isinstance(payload, str) else repr(payload)
    return text if len(text) <= limit else text[:limit] + "..."
