"""Schedulers that run promise reactions on a later turn of the event loop."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Protocol, runtime_checkable

from loguru import logger


@runtime_checkable
class Scheduler(Protocol):
    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None: ...


class AsyncioScheduler:
    """Defers callbacks onto the running asyncio loop."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                "no running asyncio event loop to defer promise reactions; "
                "run inside a loop or install a ManualScheduler with use_scheduler()"
            ) from None
        loop.call_soon(callback, *args)


class ManualScheduler:
    """
    FIFO of deferred callbacks drained explicitly.

    For hosts that pump their own loop (e.g. a GUI timer) and for deterministic tests.
    Callbacks queued while draining run in the same drain, after the ones already queued.
    """

    def __init__(self) -> None:
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_once(self) -> int:
        """Run the callbacks queued so far (one turn). Returns how many ran."""
        count = len(self._queue)
        for _ in range(count):
            callback, args = self._queue.popleft()
            try:
                callback(*args)
            except Exception as exc:
                logger.opt(exception=exc).error("Deferred callback {} failed: {}", callback, exc)
        return count

    def run_until_idle(self, max_turns: int = 10_000) -> int:
        """Run turns until nothing is queued. Returns the number of callbacks run."""
        total = 0
        for _ in range(max_turns):
            if not self._queue:
                return total
            total += self.run_once()
        raise RuntimeError(f"scheduler still busy after {max_turns} turns")


_DEFAULT_SCHEDULER = AsyncioScheduler()
_current_scheduler: ContextVar[Scheduler] = ContextVar("dialogbridge_scheduler", default=_DEFAULT_SCHEDULER)


def get_scheduler() -> Scheduler:
    """Return the scheduler new promises will use."""
    return _current_scheduler.get()


@contextmanager
def use_scheduler(scheduler: Scheduler) -> Iterator[Scheduler]:
    """Make `scheduler` current for promises created inside the block."""
    token = _current_scheduler.set(scheduler)
    try:
        yield scheduler
    finally:
        _current_scheduler.reset(token)
