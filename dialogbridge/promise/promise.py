"""
Minimal promise engine for the bridge.

State machine: pending -> resolved | pending -> rejected (terminal, one-way).
A promise holds a tuple of result values (or rejection reasons) and a FIFO of reactions
registered before settlement. Reactions always run on a later scheduler turn, never inside
the call to `then`, `resolve` or `reject`.

Observability: a rejection that has no reaction attached one turn after settlement is
reported once through loguru as an uncaught promise rejection.
"""

from __future__ import annotations

import asyncio
import inspect
import traceback
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from dialogbridge.promise.scheduler import Scheduler, get_scheduler
from dialogbridge.utils.exceptions import PromiseRejection, PromiseStateError

_THIS_FILE = __file__


class PromiseState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass(slots=True)
class _Reaction:
    on_resolve: Callable[..., Any] | None
    on_reject: Callable[..., Any] | None
    resolve_next: Callable[..., Any]
    reject_next: Callable[..., Any]


def is_thenable(value: Any) -> bool:
    """True for objects exposing a callable `then` (classes excluded)."""
    if isinstance(value, type):
        return False
    return callable(getattr(value, "then", None))


def as_thenable(value: Any, *, scheduler: Scheduler | None = None) -> Any:
    """Turn coroutines and futures into promises; any other value is returned unchanged."""
    if inspect.isawaitable(value) and not is_thenable(value):
        return Promise.from_awaitable(value, scheduler=scheduler)
    return value


def _collapse(values: tuple[Any, ...]) -> Any:
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


def _as_exception(reasons: tuple[Any, ...]) -> BaseException:
    first = reasons[0] if reasons else None
    if isinstance(first, BaseException):
        return first
    return PromiseRejection(reasons)


def _frame_location(frame: traceback.FrameSummary) -> str:
    return f"{frame.filename}:{frame.lineno}"


def _caller_location() -> str | None:
    frames = [f for f in traceback.extract_stack()[:-2] if f.filename != _THIS_FILE]
    return _frame_location(frames[-1]) if frames else None


def _reason_location(reason: Any, origin: str | None) -> str:
    if isinstance(reason, BaseException) and reason.__traceback__ is not None:
        frames = [f for f in traceback.extract_tb(reason.__traceback__) if f.filename != _THIS_FILE]
        if frames:
            return _frame_location(frames[-1])
    return origin or "<unknown>"


def _reaction_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class Promise:
    """A future value settled once with one or more results or reasons."""

    def __init__(
        self,
        executor: Callable[[Callable[..., None], Callable[..., None]], Any] | None = None,
        *,
        scheduler: Scheduler | None = None,
    ):
        self._state = PromiseState.PENDING
        self._values: tuple[Any, ...] = ()
        self._reactions: list[_Reaction] = []
        self._handled = False
        self._adopting: tuple[Any, ...] | None = None
        self._origin: str | None = None
        self._scheduler = scheduler or get_scheduler()
        if executor is not None:
            try:
                executor(self.resolve, self.reject)
            except Exception as error:
                if not self.decided:
                    self.reject(error)
                else:
                    logger.opt(exception=error).error("Promise executor raised after settlement: {}", error)

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is PromiseState.PENDING

    @property
    def decided(self) -> bool:
        """True once resolve or reject fixed the outcome, including while a thenable is adopted."""
        return self._state is not PromiseState.PENDING or self._adopting is not None

    @property
    def values(self) -> tuple[Any, ...]:
        """Results (resolved) or reasons (rejected); empty while pending."""
        return self._values

    def then(
        self,
        on_resolve: Callable[..., Any] | None = None,
        on_reject: Callable[..., Any] | None = None,
    ) -> Promise:
        """
        Register reactions and return a promise for their outcome.

        A missing reaction passes the values (or reasons) through to the returned promise.
        """
        self._handled = True
        next_promise = Promise(scheduler=self._scheduler)
        reaction = _Reaction(on_resolve, on_reject, next_promise.resolve, next_promise.reject)
        if self._state is PromiseState.PENDING:
            self._reactions.append(reaction)
        else:
            self._dispatch(reaction)
        return next_promise

    def catch(self, on_reject: Callable[..., Any]) -> Promise:
        return self.then(None, on_reject)

    def resolve(self, *values: Any) -> None:
        """
        Resolve with one or more results.

        Thenable results are adopted first, so a resolved promise never holds a pending one.
        """
        if self._state is PromiseState.REJECTED:
            raise PromiseStateError("A once rejected promise can not be resolved later")
        if self._state is PromiseState.RESOLVED:
            if values and values != self._values:
                raise PromiseStateError("A resolved promise can not be resolved again with different results")
            return None
        if self._adopting is not None:
            if values and values != self._adopting:
                raise PromiseStateError("A promise adopting another result can not be resolved again with different results")
            return None
        if any(value is self for value in values):
            raise TypeError("A promise cannot be resolved with itself.")
        if any(is_thenable(value) for value in values):
            self._adopting = values
            Promise.all(values, scheduler=self._scheduler).then(
                lambda results: self._settle(PromiseState.RESOLVED, tuple(results)),
                self._adopt_failed,
            )
            return None
        self._settle(PromiseState.RESOLVED, values)
        return None

    def reject(self, *reasons: Any) -> None:
        """Reject with one or more reasons (reasons are not unwrapped)."""
        if self._state is PromiseState.RESOLVED:
            raise PromiseStateError("A once resolved promise can not be rejected later")
        if self._state is PromiseState.REJECTED:
            if reasons != self._values:
                raise PromiseStateError(
                    f"A rejected promise can not be rejected again with a different reason ({self._values}, {reasons})"
                )
            return None
        if self._adopting is not None:
            raise PromiseStateError("A promise adopting another result can not be rejected")
        if any(reason is self for reason in reasons):
            raise TypeError("A promise cannot be rejected with itself.")
        self._origin = _caller_location()
        self._settle(PromiseState.REJECTED, reasons)
        return None

    def _adopt_failed(self, *reasons: Any) -> None:
        if self._state is PromiseState.PENDING:
            self._origin = _caller_location()
            self._settle(PromiseState.REJECTED, reasons)

    def _settle(self, state: PromiseState, values: tuple[Any, ...]) -> None:
        if self._state is not PromiseState.PENDING:
            return
        self._state = state
        self._values = values
        self._adopting = None
        reactions, self._reactions = self._reactions, []
        for reaction in reactions:
            self._dispatch(reaction)
        if state is PromiseState.REJECTED and not self._handled:
            self._scheduler.call_soon(self._check_unhandled)

    def _dispatch(self, reaction: _Reaction) -> None:
        if self._state is PromiseState.RESOLVED:
            if reaction.on_resolve is not None:
                self._scheduler.call_soon(self._handle, reaction.on_resolve, reaction.resolve_next, reaction.reject_next)
            else:
                self._scheduler.call_soon(reaction.resolve_next, *self._values)
        else:
            if reaction.on_reject is not None:
                self._scheduler.call_soon(self._handle, reaction.on_reject, reaction.resolve_next, reaction.reject_next)
            else:
                self._scheduler.call_soon(reaction.reject_next, *self._values)

    def _handle(
        self,
        reaction: Callable[..., Any],
        resolve_next: Callable[..., Any],
        reject_next: Callable[..., Any],
    ) -> None:
        try:
            result = as_thenable(reaction(*self._values), scheduler=self._scheduler)
        except Exception as error:
            logger.opt(exception=error).error("Promise reaction {} raised: {}", _reaction_name(reaction), error)
            reject_next(error)
            return
        resolve_next(result)

    def _check_unhandled(self) -> None:
        if self._handled:
            return
        self._handled = True
        reason = self._values[0] if self._values else None
        location = _reason_location(reason, self._origin)
        logger.warning(
            'Uncaught promise rejection with reason [{}]: "{}"\nTip: add a catch() reaction to the promise rejected at {}',
            type(reason).__name__,
            reason,
            location,
        )

    def __await__(self):
        future = asyncio.get_running_loop().create_future()

        def _on_resolve(*values: Any) -> None:
            if not future.done():
                future.set_result(_collapse(values))

        def _on_reject(*reasons: Any) -> None:
            if not future.done():
                future.set_exception(_as_exception(reasons))

        self.then(_on_resolve, _on_reject)
        return future.__await__()

    def __repr__(self) -> str:
        return f"<Promise {self._state.value} at 0x{id(self):x}>"

    @classmethod
    def resolved(cls, *values: Any, scheduler: Scheduler | None = None) -> Promise:
        """A promise resolved from the start with the given values."""
        return cls(lambda resolve, _reject: resolve(*values), scheduler=scheduler)

    @classmethod
    def rejected(cls, *reasons: Any, scheduler: Scheduler | None = None) -> Promise:
        """A promise rejected from the start with the given reasons."""
        return cls(lambda _resolve, reject: reject(*reasons), scheduler=scheduler)

    @classmethod
    def all(cls, promises: Iterable[Any], *, scheduler: Scheduler | None = None) -> Promise:
        """
        Resolve with the list of every input's result once all resolve.

        Rejects with the first rejection reason; later outcomes are discarded. Non-thenable
        inputs count as already resolved. An empty input resolves with an empty list.
        """
        try:
            items = list(promises)
        except TypeError:
            return cls.rejected(TypeError("Argument must be iterable"), scheduler=scheduler)

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            results: list[Any] = [None] * len(items)
            remaining = len(items)
            settled = False

            def fulfil(index: int, *values: Any) -> None:
                nonlocal remaining, settled
                if settled:
                    return
                results[index] = _collapse(values)
                remaining -= 1
                if remaining == 0:
                    settled = True
                    resolve(results)

            def fail(*reasons: Any) -> None:
                nonlocal settled
                if settled:
                    return
                settled = True
                reject(*reasons)

            for index, item in enumerate(items):
                if is_thenable(item):
                    item.then(lambda *values, index=index: fulfil(index, *values), fail)
                else:
                    results[index] = item
                    remaining -= 1
            if remaining == 0 and not settled:
                settled = True
                resolve(results)

        return cls(executor, scheduler=scheduler)

    @classmethod
    def race(cls, promises: Iterable[Any], *, scheduler: Scheduler | None = None) -> Promise:
        """Settle like whichever input settles first; a non-thenable input wins at once."""
        try:
            items = list(promises)
        except TypeError:
            return cls.rejected(TypeError("Argument must be iterable"), scheduler=scheduler)

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            settled = False

            def win(*values: Any) -> None:
                nonlocal settled
                if not settled:
                    settled = True
                    resolve(*values)

            def lose(*reasons: Any) -> None:
                nonlocal settled
                if not settled:
                    settled = True
                    reject(*reasons)

            for item in items:
                if is_thenable(item):
                    item.then(win, lose)
                else:
                    win(item)

        return cls(executor, scheduler=scheduler)

    @classmethod
    def from_awaitable(cls, awaitable: Any, *, scheduler: Scheduler | None = None) -> Promise:
        """Adapt a coroutine, task or future into a promise."""
        if isinstance(awaitable, Promise):
            return awaitable
        future = asyncio.ensure_future(awaitable)
        promise = cls(scheduler=scheduler)

        def _done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                promise.reject(asyncio.CancelledError())
                return
            error = fut.exception()
            if error is not None:
                promise.reject(error)
            else:
                promise.resolve(fut.result())

        future.add_done_callback(_done)
        return promise

    @classmethod
    def coerce(cls, value: Any, *, scheduler: Scheduler | None = None) -> Promise:
        """Return `value` as a promise: adopt thenables and awaitables, wrap plain values."""
        if isinstance(value, Promise):
            return value
        if inspect.isawaitable(value) and not is_thenable(value):
            return cls.from_awaitable(value, scheduler=scheduler)
        return cls(lambda resolve, _reject: resolve(value), scheduler=scheduler)
