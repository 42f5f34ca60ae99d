"""Utility functions for dialogbridge."""

from dialogbridge.utils.exceptions import (
    BridgeError,
    InvalidArgumentError,
    MalformedPayloadError,
    PayloadEncodeError,
    NoSuchHandlerError,
    PromiseStateError,
    PromiseRejection,
    RemoteError,
    ErrorCategory,
    ErrorKind,
    classify_exception,
    kind_for_type_name,
)
from dialogbridge.utils.logging_utils import configure_logging, ensure_rotating_log_file

__all__ = [
    "BridgeError",
    "InvalidArgumentError",
    "MalformedPayloadError",
    "PayloadEncodeError",
    "NoSuchHandlerError",
    "PromiseStateError",
    "PromiseRejection",
    "RemoteError",
    "ErrorCategory",
    "ErrorKind",
    "classify_exception",
    "kind_for_type_name",
    "configure_logging",
    "ensure_rotating_log_file",
]
