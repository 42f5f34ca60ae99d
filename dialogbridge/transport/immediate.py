"""Unthrottled transport: every message is delivered as soon as it is sent."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from dialogbridge.core.correlation import ResponseHandler
from dialogbridge.core.protocol import Message
from dialogbridge.transport.base import RequestHandler

Deliver = Callable[[str], None]


class ImmediateRequestHandler(RequestHandler):
    """For channels that accept messages at any rate; there is no internal queue."""

    def __init__(self, deliver: Deliver, **kwargs: Any):
        super().__init__(**kwargs)
        self._deliver = deliver

    def send(self, message: Message, callback: ResponseHandler | None = None) -> None:
        text = self._prepare(message, callback)
        logger.debug("Delivering {} (id={})", message.name, message.id)
        try:
            self._deliver(text)
        except Exception:
            if callback is not None:
                self.pending.discard(message.id)
            raise
