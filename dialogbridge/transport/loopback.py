"""In-memory collaborators that connect two bridges living in the same process."""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from loguru import logger

from dialogbridge.promise.scheduler import Scheduler, get_scheduler

Side = Literal["a", "b"]
Receiver = Callable[[str], None]


class SideBand:
    """
    Single-slot string storage the remote side reads after being triggered.

    Writing over a slot that was never read loses the earlier message; such writes are counted.
    """

    def __init__(self) -> None:
        self._text: str | None = None
        self._read = True
        self.overwritten = 0

    def write(self, text: str) -> None:
        if self._text is not None and not self._read:
            self.overwritten += 1
            logger.warning("Side band overwritten before it was read ({} lost so far)", self.overwritten)
        self._text = text
        self._read = False

    def read(self) -> str | None:
        self._read = True
        return self._text

    def clear(self) -> None:
        self._text = None
        self._read = True

    @property
    def empty(self) -> bool:
        return self._text is None


class LoopbackLink:
    """Two endpoints, `a` and `b`; text sent towards one side arrives on a later scheduler turn."""

    def __init__(self, scheduler: Scheduler | None = None):
        self._scheduler = scheduler
        self._receivers: dict[str, Receiver] = {}
        self.delivered = 0
        self.dropped = 0

    def attach(self, side: Side, receive: Receiver) -> None:
        self._receivers[side] = receive

    def deliver_to(self, side: Side) -> Callable[[str], None]:
        """Delivery primitive for an unthrottled adapter whose peer is `side`."""

        def deliver(text: str) -> None:
            (self._scheduler or get_scheduler()).call_soon(self._arrive, side, text)

        return deliver

    def trigger_to(self, side: Side, side_band: SideBand) -> Callable[[], None]:
        """Trigger for a throttled adapter: `side` fetches whatever the side band holds."""

        def trigger() -> None:
            text = side_band.read()
            if text is None:
                self.dropped += 1
                logger.warning("Trigger towards {} fired with an empty side band", side)
                return
            self._arrive(side, text)

        return trigger

    def _arrive(self, side: str, text: str) -> None:
        receive = self._receivers.get(side)
        if receive is None:
            self.dropped += 1
            logger.warning("No endpoint attached on side {}; dropping {} chars", side, len(text))
            return
        self.delivered += 1
        receive(text)
