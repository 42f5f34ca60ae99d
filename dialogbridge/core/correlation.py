"""Message correlation: monotonic ids and the pending-reply registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from dialogbridge.core.protocol import Response

ResponseHandler = Callable[[Response], Any]


class IdGenerator:
    """Per-instance counter starting at 0; ids are never reused."""

    def __init__(self, start: int = 0):
        self._next = start

    def next_id(self) -> int:
        """Return the current value, then increment."""
        current = self._next
        self._next += 1
        return current

    __next__ = next_id

    def __iter__(self) -> IdGenerator:
        return self


class PendingRegistry:
    """Maps message ids to the handler awaiting their response; each entry is consumed once."""

    def __init__(self) -> None:
        self._handlers: dict[int, ResponseHandler] = {}

    def __contains__(self, msg_id: object) -> bool:
        return msg_id in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def register(self, msg_id: int, handler: ResponseHandler) -> None:
        # Ids come from IdGenerator, so an existing entry can only be a caller bug.
        if msg_id in self._handlers:
            logger.warning("Overwriting pending response handler for id={}", msg_id)
        self._handlers[msg_id] = handler

    def discard(self, msg_id: int) -> ResponseHandler | None:
        return self._handlers.pop(msg_id, None)

    def resolve(self, msg_id: int, response: Response) -> bool:
        """
        Hand `response` to the handler registered for `msg_id` and forget it.

        Unknown ids are warned about; faults raised by the handler are logged and not propagated.
        Returns True when a handler was found.
        """
        handler = self._handlers.pop(msg_id, None)
        if handler is None:
            logger.warning("No callback registered for received response with id={}: {}", msg_id, response)
            return False
        try:
            handler(response)
        except Exception as exc:
            logger.opt(exception=exc).error(
                "Error when executing response handler {} ({}): {}",
                getattr(handler, "__qualname__", handler),
                msg_id,
                exc,
            )
        return True
