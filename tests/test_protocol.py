import pytest

from dialogbridge.core.protocol import (
    ErrorEnvelope,
    HandlerNames,
    Message,
    Response,
    is_valid_name,
    marshal_reason,
    unmarshal_reason,
)
from dialogbridge.utils.exceptions import ErrorKind, MalformedPayloadError, NoSuchHandlerError, RemoteError


def test_handler_names_use_namespace():
    names = HandlerNames("Dlg")
    assert names.puts == "Dlg.puts"
    assert names.error == "Dlg.error"
    assert names.receive == "Dlg.requestHandler.receive"
    assert names.get == "Dlg.requestHandler.get"
    assert names.ack == "Dlg.requestHandler.ack"
    assert names.one_shot("resolve/reject", 42) == "Dlg.resolve/reject_42"
    assert names.is_reserved("Dlg.anything")
    assert not names.is_reserved("Dialog.anything")


@pytest.mark.parametrize("name,valid", [("add", True), ("ns.fn_2", True), ("", False), ("a b", False), ("f()", False), (3, False)])
def test_is_valid_name(name, valid):
    assert is_valid_name(name) is valid


def test_message_payload_uses_wire_keys():
    message = Message("add", [4, 2], expects_callback=True, id=7)
    assert message.to_payload() == {"name": "add", "parameters": [4, 2], "expectsCallback": True, "id": 7}
    assert Message.from_payload(message.to_payload()) == message
    assert "id" not in Message("x").to_payload()


def test_message_from_payload_defaults():
    message = Message.from_payload({"name": "x"})
    assert message.parameters == []
    assert message.expects_callback is False
    assert message.id is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "text",
        {"parameters": []},
        {"name": 5},
        {"name": "x", "id": "1"},
        {"name": "x", "id": True},
        {"name": "x", "parameters": {"a": 1}},
        {"name": "x", "expectsCallback": True},
    ],
)
def test_message_from_payload_rejects_bad_shapes(payload):
    with pytest.raises(MalformedPayloadError):
        Message.from_payload(payload)


def test_response_payload():
    assert Response.from_payload({"success": True, "parameters": [6]}) == Response(True, [6])
    assert Response.from_payload({"success": False}).parameters == []
    with pytest.raises(MalformedPayloadError):
        Response.from_payload({"success": "yes"})
    with pytest.raises(MalformedPayloadError):
        Response.from_payload({"success": True, "parameters": 1})


def test_envelope_from_raised_exception_has_backtrace():
    try:
        1 / 0
    except ZeroDivisionError as exc:
        envelope = ErrorEnvelope.from_exception(exc)
    assert envelope.type == "ZeroDivisionError"
    assert "division" in envelope.message
    assert envelope.backtrace and "test_protocol.py" in envelope.backtrace[0]
    assert envelope.kind is ErrorKind.GENERIC


def test_envelope_kinds():
    assert ErrorEnvelope("NameError", "x").kind is ErrorKind.REFERENCE
    assert ErrorEnvelope("SyntaxError", "x").kind is ErrorKind.SYNTAX
    assert ErrorEnvelope("TypeError", "x").kind is ErrorKind.TYPE
    assert ErrorEnvelope("RuntimeError", "x").kind is ErrorKind.GENERIC


def test_envelope_accepts_alternate_keys():
    envelope = ErrorEnvelope.from_payload({"name": "ReferenceError", "message": "f is not defined", "stack": "a\nb"})
    assert envelope.type == "ReferenceError"
    assert envelope.backtrace == ["a", "b"]
    assert envelope.kind is ErrorKind.REFERENCE


def test_bridge_errors_use_their_plain_message():
    envelope = ErrorEnvelope.from_exception(NoSuchHandlerError("nope"))
    assert envelope.type == "NoSuchHandlerError"
    assert envelope.message == "No registered callback `nope` found."


def test_marshal_and_unmarshal_reasons():
    assert marshal_reason("text") == "text"
    payload = marshal_reason(TypeError("wrong"))
    assert payload["type"] == "TypeError"
    error = unmarshal_reason(payload)
    assert isinstance(error, RemoteError)
    assert error.type == "TypeError"
    assert error.message == "wrong"
    assert error.kind is ErrorKind.TYPE
    assert str(error) == "TypeError: wrong"
    assert unmarshal_reason({"message": "no type"}) == {"message": "no type"}
    assert marshal_reason(error) == error.envelope
