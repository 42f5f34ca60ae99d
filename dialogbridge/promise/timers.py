"""Timer-backed promises; timeouts are layered on top of `Promise.race`."""

from __future__ import annotations

import asyncio
from typing import Any

from dialogbridge.promise.promise import Promise


def delay(seconds: float, *values: Any) -> Promise:
    """A promise resolved with `values` after `seconds` on the running loop."""
    promise = Promise()
    asyncio.get_running_loop().call_later(seconds, promise.resolve, *values)
    return promise


def timeout(promise: Any, seconds: float, message: str | None = None) -> Promise:
    """
    Race `promise` against a timer that rejects with TimeoutError.

    The timer is cancelled once the race settles; the raced promise itself is not cancelled.
    """
    timer = Promise()
    error = TimeoutError(message or f"promise not settled within {seconds}s")
    handle = asyncio.get_running_loop().call_later(seconds, timer.reject, error)
    raced = Promise.race([promise, timer])
    raced.then(lambda *_: handle.cancel(), lambda *_: handle.cancel())
    return raced
