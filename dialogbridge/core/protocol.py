"""Wire models shared by both sides of the bridge."""

from __future__ import annotations

import re
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dialogbridge.utils.exceptions import (
    BridgeError,
    ErrorKind,
    MalformedPayloadError,
    RemoteError,
    kind_for_type_name,
)

NAME_PATTERN = re.compile(r"^[\w.]+$")


def is_valid_name(name: Any) -> bool:
    """True for identifier-like callback/function names (`word` chars and dots)."""
    return isinstance(name, str) and bool(NAME_PATTERN.match(name))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class HandlerNames:
    """Reserved handler names derived from a namespace prefix."""

    namespace: str = "Bridge"

    @property
    def prefix(self) -> str:
        return f"{self.namespace}."

    @property
    def puts(self) -> str:
        return f"{self.namespace}.puts"

    @property
    def error(self) -> str:
        return f"{self.namespace}.error"

    @property
    def receive(self) -> str:
        return f"{self.namespace}.requestHandler.receive"

    @property
    def get(self) -> str:
        return f"{self.namespace}.requestHandler.get"

    @property
    def ack(self) -> str:
        return f"{self.namespace}.requestHandler.ack"

    def one_shot(self, purpose: str, suffix: int) -> str:
        return f"{self.namespace}.{purpose}_{suffix}"

    def is_reserved(self, name: str) -> bool:
        return name.startswith(self.prefix)


@dataclass(slots=True)
class Message:
    """A request crossing the boundary; `id` is assigned by the sending adapter."""

    name: str
    parameters: list[Any] = field(default_factory=list)
    expects_callback: bool = False
    id: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "parameters": list(self.parameters),
            "expectsCallback": self.expects_callback,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> Message:
        """Validate a decoded payload: integer-or-absent id, string name, array-or-absent parameters."""
        if not isinstance(payload, Mapping):
            raise MalformedPayloadError("Bridge received invalid data: message must be an object", payload)
        msg_id = payload.get("id")
        name = payload.get("name")
        parameters = payload.get("parameters")
        if msg_id is not None and not _is_int(msg_id):
            raise MalformedPayloadError("Bridge received invalid data: id must be an integer", payload)
        if not isinstance(name, str):
            raise MalformedPayloadError("Bridge received invalid data: name must be a string", payload)
        if parameters is not None and not isinstance(parameters, list):
            raise MalformedPayloadError("Bridge received invalid data: parameters must be an array", payload)
        expects_callback = bool(payload.get("expectsCallback", False))
        if expects_callback and msg_id is None:
            raise MalformedPayloadError("Bridge received invalid data: a request expecting a callback needs an id", payload)
        return cls(name=name, parameters=list(parameters or []), expects_callback=expects_callback, id=msg_id)


@dataclass(slots=True)
class Response:
    """Outcome of a request; the first parameter is the result or the error payload."""

    success: bool
    parameters: list[Any] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"success": self.success, "parameters": list(self.parameters)}

    @classmethod
    def from_payload(cls, payload: Any) -> Response:
        if not isinstance(payload, Mapping) or not isinstance(payload.get("success"), bool):
            raise MalformedPayloadError("Bridge received an invalid response", payload)
        parameters = payload.get("parameters")
        if parameters is not None and not isinstance(parameters, list):
            raise MalformedPayloadError("Bridge received an invalid response: parameters must be an array", payload)
        return cls(success=payload["success"], parameters=list(parameters or []))


@dataclass(slots=True)
class ErrorEnvelope:
    """Portable representation of an exception: error class name, message and backtrace."""

    type: str
    message: str
    backtrace: list[str] = field(default_factory=list)

    @property
    def kind(self) -> ErrorKind:
        return kind_for_type_name(self.type)

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorEnvelope:
        if isinstance(exc, RemoteError):
            return cls(type=exc.type, message=exc.message, backtrace=list(exc.backtrace))
        message = exc.message if isinstance(exc, BridgeError) else str(exc)
        frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ is not None else []
        backtrace = [f"{f.filename}:{f.lineno}: in {f.name}" for f in reversed(frames)]
        return cls(type=type(exc).__name__, message=message, backtrace=backtrace)

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "backtrace": list(self.backtrace)}

    @staticmethod
    def is_envelope(payload: Any) -> bool:
        """True for mappings shaped like an envelope (also the `name`/`stack` spelling)."""
        if not isinstance(payload, Mapping):
            return False
        type_name = payload.get("type", payload.get("name"))
        return isinstance(type_name, str) and isinstance(payload.get("message"), str)

    @classmethod
    def from_payload(cls, payload: Any) -> ErrorEnvelope:
        if not cls.is_envelope(payload):
            raise MalformedPayloadError("Bridge received an invalid error report", payload)
        backtrace = payload.get("backtrace", payload.get("stack")) or []
        if isinstance(backtrace, str):
            backtrace = backtrace.splitlines()
        return cls(
            type=payload.get("type", payload.get("name")),
            message=payload["message"],
            backtrace=[str(line) for line in backtrace],
        )

    def to_exception(self) -> RemoteError:
        return RemoteError(self.type, self.message, self.backtrace)


def marshal_reason(reason: Any) -> Any:
    """Exceptions become envelope payloads; JSON values pass through."""
    if isinstance(reason, BaseException):
        return ErrorEnvelope.from_exception(reason).to_payload()
    return reason


def unmarshal_reason(reason: Any) -> Any:
    """Envelope payloads become RemoteError; other values pass through."""
    if ErrorEnvelope.is_envelope(reason):
        return ErrorEnvelope.from_payload(reason).to_exception()
    return reason
