"""Caller-side re-issue of bridge requests; the bridge itself never retries."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from dialogbridge.promise.promise import Promise, as_thenable
from dialogbridge.promise.timers import delay
from dialogbridge.utils.exceptions import RemoteError


@dataclass(slots=True)
class RetryPolicy:
    """
    Exponential backoff over rejected requests.

    `retry_on` filters local exception classes. `remote_types` narrows `RemoteError`
    rejections to the remote error type names worth another attempt; empty means any.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 5.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    remote_types: tuple[str, ...] = ()

    def backoff(self, attempt: int) -> float:
        return min(self.max_delay_seconds, self.base_delay_seconds * (2**attempt))

    def should_retry(self, attempt: int, reasons: tuple[Any, ...]) -> bool:
        if attempt >= self.max_attempts - 1:
            return False
        reason = reasons[0] if reasons else None
        if not isinstance(reason, self.retry_on):
            return False
        if isinstance(reason, RemoteError) and self.remote_types:
            return reason.type in self.remote_types
        return True


def with_retry(request: Callable[[], Any], policy: RetryPolicy) -> Promise:
    """
    Re-issue `request()` until it resolves or `policy` gives up.

    `request` is a factory such as `lambda: bridge.get("add", 1, 2)`; it may also return a
    coroutine or a plain value. The returned promise settles like the last attempt.
    Backoff timers need a running asyncio loop.
    """

    def attempt(number: int) -> Promise:
        issued = Promise(lambda resolve, _reject: resolve(as_thenable(request())))

        def retry_or_give_up(*reasons: Any) -> Promise:
            if not policy.should_retry(number, reasons):
                return Promise.rejected(*reasons)
            wait = policy.backoff(number)
            logger.debug("Attempt {} failed ({}); retrying in {}s", number + 1, reasons[0] if reasons else None, wait)
            return delay(wait).then(lambda *_: attempt(number + 1))

        return issued.then(None, retry_or_give_up)

    return attempt(0)
