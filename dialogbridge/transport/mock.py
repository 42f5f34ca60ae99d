"""Request handler that answers requests locally, for developing one side without the other."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from dialogbridge.core.correlation import ResponseHandler
from dialogbridge.core.protocol import Message, Response, marshal_reason
from dialogbridge.promise.promise import Promise, as_thenable, is_thenable
from dialogbridge.transport.base import RequestHandler
from dialogbridge.utils.exceptions import NoSuchHandlerError


def _describe(message: Message) -> str:
    params = ", ".join(repr(p) for p in message.parameters)
    return f"{message.name}({params})"


class MockRequestHandler(RequestHandler):
    """
    Nothing leaves the process: fire-and-forget calls are logged, requests that expect a
    callback are answered from the mocks.

    A mock is a plain value, a promise or awaitable for the value, or a callable invoked
    with the message parameters.
    """

    def __init__(self, mocks: Mapping[str, Any] | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.mocks: dict[str, Any] = dict(mocks or {})

    def mock_requests(self, mocks: Mapping[str, Any]) -> None:
        self.mocks.update(mocks)

    def send(self, message: Message, callback: ResponseHandler | None = None) -> None:
        self._prepare(message, callback)
        logger.info("[mock] {}", _describe(message))
        if callback is None:
            return
        msg_id = message.id
        if message.name not in self.mocks:
            self._answer(msg_id, message.name, False, NoSuchHandlerError(message.name))
            return
        mock = self.mocks[message.name]
        if callable(mock) and not is_thenable(mock):
            try:
                mock = as_thenable(mock(*message.parameters))
            except Exception as exc:
                self._answer(msg_id, message.name, False, exc)
                return
        if is_thenable(mock):
            Promise.coerce(mock).then(
                lambda *results: self._answer(msg_id, message.name, True, *results),
                lambda *reasons: self._answer(msg_id, message.name, False, *reasons),
            )
        else:
            self._answer(msg_id, message.name, True, mock)

    def _answer(self, msg_id: int, name: str, success: bool, *values: Any) -> None:
        if success:
            logger.info("[mock] {} >> {!r}", name, values[0] if len(values) == 1 else list(values))
        else:
            logger.info("[mock] {} >> (rejected) {!r}", name, values[0] if values else None)
        parameters = [marshal_reason(v) for v in values] if not success else list(values)
        self.receive(msg_id, Response(success=success, parameters=parameters))
