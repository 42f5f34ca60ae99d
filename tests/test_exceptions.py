import json

from dialogbridge.utils.exceptions import (
    BridgeError,
    ErrorCategory,
    ErrorKind,
    InvalidArgumentError,
    MalformedPayloadError,
    NoSuchHandlerError,
    PayloadEncodeError,
    RemoteError,
    classify_exception,
    kind_for_type_name,
)


def test_bridge_error_to_dict():
    err = InvalidArgumentError("Argument `name` must be a string.", "name")
    assert err.to_dict() == {
        "error": "INVALID_ARGUMENT",
        "message": "Argument `name` must be a string.",
        "category": "validation",
        "details": {"argument": "name"},
    }
    assert str(err) == "[INVALID_ARGUMENT] Argument `name` must be a string."


def test_categories():
    assert MalformedPayloadError("bad").category is ErrorCategory.PROTOCOL
    assert NoSuchHandlerError("x").category is ErrorCategory.NOT_FOUND
    assert RemoteError("TypeError", "t").category is ErrorCategory.REMOTE
    assert BridgeError("plain").category is ErrorCategory.FATAL


def test_malformed_payload_preview_is_truncated():
    err = MalformedPayloadError("bad", "x" * 500)
    assert len(err.details["payload"]) == 203


def test_payload_encode_error_is_a_type_error():
    assert isinstance(PayloadEncodeError("nope"), TypeError)


def test_kind_for_type_name_handles_qualified_names():
    assert kind_for_type_name("builtins.NameError") is ErrorKind.REFERENCE
    assert kind_for_type_name("Bridge::ArgumentError") is ErrorKind.TYPE
    assert kind_for_type_name("SyntaxError") is ErrorKind.SYNTAX
    assert kind_for_type_name(None) is ErrorKind.GENERIC


def test_classify_exception():
    assert classify_exception(KeyError("k")) is ErrorKind.REFERENCE
    assert classify_exception(NoSuchHandlerError("x")) is ErrorKind.REFERENCE
    assert classify_exception(json.JSONDecodeError("m", "d", 0)) is ErrorKind.SYNTAX
    assert classify_exception(ValueError("v")) is ErrorKind.TYPE
    assert classify_exception(RuntimeError("r")) is ErrorKind.GENERIC
    assert classify_exception(RemoteError("ReferenceError", "r")) is ErrorKind.REFERENCE
