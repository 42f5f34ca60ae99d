"""
Throttled transport for rate-limited delivery primitives.

State machine:
- idle: nothing in flight; the next enqueued message is submitted right away.
- sending: one message is in flight; further messages wait in FIFO order.
- ack(id) from the remote side moves sending -> idle and submits the next queued message.

A message is written to the side band first; the trigger that tells the remote side to
read it fires on a later scheduler turn, so the write is always observable first.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from loguru import logger

from dialogbridge.core.correlation import ResponseHandler
from dialogbridge.core.protocol import Message, Response, marshal_reason
from dialogbridge.promise.scheduler import Scheduler, get_scheduler
from dialogbridge.transport.base import RequestHandler


class SideBandWriter(Protocol):
    def write(self, text: str) -> None: ...


class QueueState(Enum):
    IDLE = "idle"
    SENDING = "sending"


@dataclass(slots=True)
class QueuedMessage:
    id: int
    name: str
    text: str


class QueuedRequestHandler(RequestHandler):
    """Sends one message at a time and waits for the remote acknowledgement before the next."""

    def __init__(
        self,
        side_band: SideBandWriter,
        trigger: Callable[[], None],
        *,
        scheduler: Scheduler | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.side_band = side_band
        self._trigger = trigger
        self._scheduler = scheduler
        self._queue: deque[QueuedMessage] = deque()
        self._in_flight: QueuedMessage | None = None
        self.state = QueueState.IDLE

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def in_flight_id(self) -> int | None:
        return self._in_flight.id if self._in_flight is not None else None

    def send(self, message: Message, callback: ResponseHandler | None = None) -> None:
        self.enqueue(message, callback)

    def enqueue(self, message: Message, callback: ResponseHandler | None = None) -> int:
        """Assign an id, remember the callback and queue the message. Returns the id."""
        text = self._prepare(message, callback)
        self._queue.append(QueuedMessage(id=message.id, name=message.name, text=text))
        logger.debug("Queued {} (id={}, depth={}, state={})", message.name, message.id, len(self._queue), self.state.value)
        if self.state is QueueState.IDLE:
            self.dequeue()
        return message.id

    def dequeue(self) -> None:
        if not self._queue:
            self.state = QueueState.IDLE
            self._in_flight = None
            return
        self.state = QueueState.SENDING
        self.submit(self._queue.popleft())

    def submit(self, item: QueuedMessage) -> None:
        self._in_flight = item
        self.side_band.write(item.text)
        logger.debug("Submitted {} (id={})", item.name, item.id)
        (self._scheduler or get_scheduler()).call_soon(self._fire, item)

    def _fire(self, item: QueuedMessage) -> None:
        if self._in_flight is not item:
            return
        try:
            self._trigger()
        except Exception as exc:
            logger.opt(exception=exc).error("Delivery of {} (id={}) failed: {}", item.name, item.id, exc)
            if item.id in self.pending:
                self.pending.resolve(item.id, Response(success=False, parameters=[marshal_reason(exc)]))
            if self._in_flight is item:
                self.state = QueueState.IDLE
                self.cleanup()
                self.dequeue()

    def receive(self, msg_id: int, response: Response) -> None:
        """The remote side answered `msg_id`; the side band is left alone while a message is in flight."""
        try:
            self.pending.resolve(msg_id, response)
        finally:
            if self._in_flight is None:
                self.cleanup()

    def ack(self, msg_id: int) -> None:
        """The remote side retrieved message `msg_id`; release the next queued message."""
        if self.state is QueueState.IDLE:
            logger.warning("Received acknowledgement for id={} while no message is in flight", msg_id)
        elif self.in_flight_id != msg_id:
            logger.warning("Received acknowledgement for id={} while id={} is in flight", msg_id, self.in_flight_id)
        else:
            logger.debug("Acknowledged id={}", msg_id)
        self.state = QueueState.IDLE
        self._in_flight = None
        self.cleanup()
        if self._queue:
            self.dequeue()
