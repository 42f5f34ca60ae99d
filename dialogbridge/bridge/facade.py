"""
Request handler facade: the public API of one side of the bridge.

- on/once/off manage local handlers the remote side can call.
- call/get/invoke send requests to the remote side.
- receive is the entry point for inbound text handed over by the host collaborator.
"""

from __future__ import annotations

import inspect
import random
from collections.abc import Callable, Mapping, MutableMapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from dialogbridge.bridge.context import ResponseContext
from dialogbridge.core.protocol import (
    ErrorEnvelope,
    HandlerNames,
    Message,
    Response,
    is_valid_name,
    marshal_reason,
    unmarshal_reason,
)
from dialogbridge.promise.promise import Promise, as_thenable, is_thenable
from dialogbridge.promise.scheduler import Scheduler
from dialogbridge.transport.base import RequestHandler
from dialogbridge.utils.exceptions import InvalidArgumentError, MalformedPayloadError, NoSuchHandlerError

Handler = Callable[..., Any]


def _inspect(value: Any) -> str:
    return value if isinstance(value, str) else repr(value)


class Bridge:
    """
    Pairs a handler registry with a transport adapter.

    Handlers are called as `handler(context, *parameters)`. `context` is a `ResponseContext`
    when the remote side waits for an answer, otherwise the `recipient` object.
    """

    def __init__(
        self,
        request_handler: RequestHandler,
        *,
        recipient: Any = None,
        namespace: str = "Bridge",
        acknowledge_inbound: bool = False,
        handler_name_range: int = 10000,
        handler_name_attempts: int = 1000,
        scheduler: Scheduler | None = None,
    ):
        self.request_handler = request_handler
        self.recipient = self if recipient is None else recipient
        self.names = HandlerNames(namespace)
        self.acknowledge_inbound = acknowledge_inbound
        self.handler_name_range = handler_name_range
        self.handler_name_attempts = handler_name_attempts
        self._scheduler = scheduler
        self._handlers: dict[str, Handler] = {}
        self._add_default_handlers()

    @property
    def handlers(self) -> Mapping[str, Handler]:
        """Read-only view of the registered handlers, reserved ones included."""
        return MappingProxyType(self._handlers)

    # --- local handlers ---

    def on(self, name: str, callback: Handler | None = None) -> Bridge:
        """Register `callback` under `name`, replacing any earlier registration."""
        self._check_registration(name, callback)
        self._handlers[name] = callback
        return self

    def once(self, name: str, callback: Handler | None = None) -> Bridge:
        """Like `on`, but the registration is removed before its first invocation."""
        self._check_registration(name, callback)
        self._register_once(name, callback)
        return self

    def off(self, name: str) -> Bridge:
        if not isinstance(name, str):
            raise InvalidArgumentError("Argument `name` must be a string.", "name")
        if self.names.is_reserved(name):
            raise InvalidArgumentError(f"Argument `name` can not be `{name}`.", "name")
        self._handlers.pop(name, None)
        return self

    def expose(self, name: str, function: Handler) -> Bridge:
        """Make `function` available to the remote side's `invoke` under a (dotted) name."""
        if not is_valid_name(name):
            raise InvalidArgumentError("Argument `name` must be a valid function identifier string.", "name")
        if not callable(function):
            raise InvalidArgumentError("Argument `function` must be callable.", "function")
        namespace = self.request_handler.functions
        *parents, leaf = name.split(".")
        for part in parents:
            if not isinstance(namespace, MutableMapping):
                raise InvalidArgumentError(f"Can not expose `{name}`: `{part}` is not a namespace.", "name")
            namespace = namespace.setdefault(part, {})
        if not isinstance(namespace, MutableMapping):
            raise InvalidArgumentError(f"Can not expose `{name}`: parent is not a namespace.", "name")
        namespace[leaf] = function
        return self

    def _check_registration(self, name: Any, callback: Any) -> None:
        if not isinstance(name, str):
            raise InvalidArgumentError("Argument `name` must be a string.", "name")
        if self.names.is_reserved(name):
            raise InvalidArgumentError(f"Argument `name` can not be `{name}`.", "name")
        if not callable(callback):
            raise InvalidArgumentError("Argument `callback` must be callable.", "callback")

    def _register_once(self, name: str, callback: Handler) -> None:
        def handler(*args: Any) -> Any:
            self._handlers.pop(name, None)
            return callback(*args)

        handler.__qualname__ = getattr(callback, "__qualname__", name)
        self._handlers[name] = handler

    # --- outbound ---

    def call(self, name: str, *parameters: Any) -> None:
        """Fire-and-forget request to the remote handler `name`."""
        self._check_target(name, "name")
        self.request_handler.send(Message(name=name, parameters=list(parameters)))

    def get(self, name: str, *parameters: Any) -> Promise:
        """Request to the remote handler `name`; the promise settles with its answer."""
        self._check_target(name, "name")

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            handler_name = self._create_one_shot_handler(resolve, reject)

            def forward(response: Response) -> None:
                self.dispatch(Message(name=handler_name, parameters=[response.success, *response.parameters]))

            try:
                self.request_handler.send(Message(name=name, parameters=list(parameters)), forward)
            except Exception:
                self._handlers.pop(handler_name, None)
                raise

        return Promise(executor, scheduler=self._scheduler)

    def invoke(self, function_name: str, *parameters: Any) -> Promise:
        """Run a function the remote side exposed; the promise settles with its return value."""
        self._check_target(function_name, "function_name")

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            handler_name = self._create_one_shot_handler(resolve, reject)
            try:
                self.request_handler.send(Message(name=self.names.get, parameters=[handler_name, function_name, *parameters]))
            except Exception:
                self._handlers.pop(handler_name, None)
                raise

        return Promise(executor, scheduler=self._scheduler)

    def puts(self, *objects: Any) -> None:
        """Print objects on the remote side's debug sink."""
        self.call(self.names.puts, *objects)

    def error(
        self,
        error: BaseException | str,
        *,
        type: str = "Error",
        filename: str | None = None,
        line: int | None = None,
        backtrace: list[str] | None = None,
    ) -> None:
        """Report an exception or an error text on the remote side's error sink."""
        if isinstance(error, BaseException):
            envelope = ErrorEnvelope.from_exception(error)
        elif isinstance(error, str):
            trace = list(backtrace or [])
            if filename:
                trace.insert(0, f"{filename}:{line}" if line is not None else filename)
            envelope = ErrorEnvelope(type=type, message=error, backtrace=trace)
        else:
            raise InvalidArgumentError("Argument must be a string or an exception.", "error")
        self.call(self.names.error, envelope.type, envelope.message, envelope.backtrace)

    def _check_target(self, name: Any, argument: str) -> None:
        if not is_valid_name(name):
            raise InvalidArgumentError(f"Argument `{argument}` must be a valid method identifier string.", argument)

    def _create_one_shot_handler(self, resolve: Callable[..., None], reject: Callable[..., None]) -> str:
        handler_name = self._create_unique_handler_name("resolve/reject")

        def settle(_context: Any, success: bool = False, *parameters: Any) -> None:
            if success:
                resolve(*parameters)
            else:
                reject(*[unmarshal_reason(p) for p in parameters])

        self._register_once(handler_name, settle)
        return handler_name

    def _create_unique_handler_name(self, purpose: str) -> str:
        for _ in range(self.handler_name_attempts):
            handler_name = self.names.one_shot(purpose, random.randrange(self.handler_name_range))
            if handler_name not in self._handlers:
                return handler_name
        raise RuntimeError(f"No unused handler name for {purpose} after {self.handler_name_attempts} attempts")

    # --- inbound ---

    def receive(self, text: str) -> None:
        """Handle one inbound string from the host collaborator; faults are logged, not raised."""
        payload: Any = None
        try:
            payload = self.request_handler.codec.decode(text)
            self.dispatch(self._parse(payload))
        except Exception as exc:
            logger.opt(exception=exc).error("Bridge failed to handle inbound message: {}", exc)
        finally:
            if self.acknowledge_inbound:
                self._acknowledge(payload)

    def dispatch(self, message: Message) -> Any:
        """
        Run the handler registered for `message`.

        Faults (including an unknown name) reject the response context when there is one,
        then propagate to the caller.
        """
        logger.debug("Dispatching {} (id={}, expectsCallback={})", message.name, message.id, message.expects_callback)
        if not message.expects_callback:
            result = self._lookup(message.name)(self.recipient, *message.parameters)
            if is_thenable(result) or inspect.isawaitable(result):
                Promise.coerce(result).catch(
                    lambda *reasons: logger.error("Handler {} failed: {}", message.name, reasons[0] if reasons else None)
                )
            return result
        context = ResponseContext(message.id, self.recipient, self.request_handler, self.names, scheduler=self._scheduler)
        try:
            result = self._lookup(message.name)(context, *message.parameters)
            if not context.decided and result is not None:
                context.resolve(as_thenable(result))
        except Exception as exc:
            if not context.decided:
                context.reject(exc)
            raise
        return result

    def _lookup(self, name: str) -> Handler:
        handler = self._handlers.get(name)
        if handler is None:
            raise NoSuchHandlerError(name)
        return handler

    def _parse(self, payload: Any) -> Message:
        try:
            return Message.from_payload(payload)
        except MalformedPayloadError as error:
            self._reject_malformed(payload, error)
            raise

    def _reject_malformed(self, payload: Any, error: MalformedPayloadError) -> None:
        """Answer a malformed request that still carries an id and waits for a response."""
        if not isinstance(payload, Mapping) or not payload.get("expectsCallback"):
            return
        msg_id = payload.get("id")
        if not isinstance(msg_id, int) or isinstance(msg_id, bool):
            return
        response = Response(success=False, parameters=[marshal_reason(error)])
        self.request_handler.send(Message(name=self.names.receive, parameters=[msg_id, response.to_payload()]))

    def _acknowledge(self, payload: Any) -> None:
        name = payload.get("name") if isinstance(payload, Mapping) else None
        if name == self.names.ack:
            return
        msg_id = payload.get("id") if isinstance(payload, Mapping) else None
        try:
            self.request_handler.send(Message(name=self.names.ack, parameters=[msg_id]))
        except Exception as exc:
            logger.opt(exception=exc).error("Failed to acknowledge inbound message id={}: {}", msg_id, exc)

    # --- reserved handlers ---

    def _add_default_handlers(self) -> None:
        self._handlers[self.names.puts] = self._handle_puts
        self._handlers[self.names.error] = self._handle_error
        self._handlers[self.names.receive] = self._handle_receive
        self._handlers[self.names.get] = self._handle_get
        self._handlers[self.names.ack] = self._handle_ack

    def _handle_puts(self, _context: Any, *objects: Any) -> None:
        logger.info("{} {}", self.names.puts, "\n".join(_inspect(o) for o in objects))

    def _handle_error(self, _context: Any, type: Any = None, message: Any = None, backtrace: Any = None) -> None:
        if ErrorEnvelope.is_envelope(type):
            envelope = ErrorEnvelope.from_payload(type)
        else:
            envelope = ErrorEnvelope.from_payload({"type": str(type or "Error"), "message": str(message or ""), "backtrace": backtrace})
        trace = "\n".join(envelope.backtrace)
        logger.error("{}: {}{}", envelope.type, envelope.message, f"\n{trace}" if trace else "")

    def _handle_receive(self, _context: Any, msg_id: Any = None, response: Any = None) -> None:
        if not isinstance(msg_id, int) or isinstance(msg_id, bool):
            raise MalformedPayloadError("Bridge received a response without a valid id", msg_id)
        try:
            parsed = Response.from_payload(response)
        except MalformedPayloadError as error:
            self.request_handler.receive(msg_id, Response(success=False, parameters=[marshal_reason(error)]))
            raise
        self.request_handler.receive(msg_id, parsed)

    def _handle_get(self, _context: Any, handler_name: Any = None, function_name: Any = None, *parameters: Any) -> Promise:
        if not isinstance(handler_name, str) or not isinstance(function_name, str):
            raise MalformedPayloadError("Bridge received an invalid function request", [handler_name, function_name])
        return self.request_handler.get(handler_name, function_name, *parameters)

    def _handle_ack(self, _context: Any, msg_id: Any = None) -> None:
        self.request_handler.ack(msg_id)

    def __repr__(self) -> str:
        return f"<Bridge {self.names.namespace} via {type(self.request_handler).__name__}>"
