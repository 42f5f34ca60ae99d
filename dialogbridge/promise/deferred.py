"""Deferred: a promise together with its settle functions."""

from __future__ import annotations

from typing import Any

from dialogbridge.promise.promise import Promise
from dialogbridge.promise.scheduler import Scheduler


class Deferred:
    """Exposes `resolve`/`reject` of a promise to code other than its executor."""

    def __init__(self, *, scheduler: Scheduler | None = None):
        self.promise = Promise(scheduler=scheduler)

    @property
    def pending(self) -> bool:
        return self.promise.pending

    @property
    def decided(self) -> bool:
        return self.promise.decided

    def resolve(self, *results: Any) -> None:
        self.promise.resolve(*results)

    def reject(self, *reasons: Any) -> None:
        self.promise.reject(*reasons)
