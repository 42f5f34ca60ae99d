"""Transport adapter contract shared by every request handler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from dialogbridge.core.correlation import IdGenerator, PendingRegistry, ResponseHandler
from dialogbridge.core.protocol import Message, Response, marshal_reason
from dialogbridge.core.serialization import Codec, JsonCodec
from dialogbridge.promise.promise import Promise, as_thenable
from dialogbridge.utils.exceptions import PayloadEncodeError

Cleanup = Callable[[], None]


def resolve_object_path(path: str, root: Any) -> Callable[..., Any]:
    """Look up a dotted path through mapping keys or attributes, ending at a callable."""
    target = root
    for part in path.split("."):
        if isinstance(target, Mapping):
            if part not in target:
                raise NameError(f"{path} is not defined")
            target = target[part]
        else:
            try:
                target = getattr(target, part)
            except AttributeError:
                raise NameError(f"{path} is not defined") from None
    if not callable(target):
        raise TypeError(f"{path} is not a function")
    return target


class RequestHandler(ABC):
    """
    Delivers messages to the remote side and routes responses back to their callbacks.

    Subclasses implement `send`; `receive` and `get` are shared re-entry points.
    """

    def __init__(
        self,
        *,
        codec: Codec | None = None,
        id_generator: IdGenerator | None = None,
        functions: Any = None,
        cleanup: Cleanup | None = None,
    ):
        self.codec = codec or JsonCodec()
        self.id_generator = id_generator or IdGenerator()
        self.pending = PendingRegistry()
        self.functions: Any = functions if functions is not None else {}
        self._cleanup = cleanup

    @abstractmethod
    def send(self, message: Message, callback: ResponseHandler | None = None) -> None:
        """Assign an id to `message`, remember `callback` for its response and deliver it."""

    def receive(self, msg_id: int, response: Response) -> None:
        """The remote side answered the message `msg_id`."""
        try:
            self.pending.resolve(msg_id, response)
        finally:
            self.cleanup()

    def ack(self, msg_id: int) -> None:
        """The remote side accepted message `msg_id`; only throttled adapters care."""
        logger.debug("Ignoring acknowledgement for id={} on unthrottled transport", msg_id)

    def _prepare(self, message: Message, callback: ResponseHandler | None) -> str:
        """Assign the id, encode, then remember the callback. Encoding faults leave no pending entry."""
        message.id = self.id_generator.next_id()
        message.expects_callback = callback is not None
        text = self.codec.encode(message.to_payload())
        if callback is not None:
            self.pending.register(message.id, callback)
        return text

    def cleanup(self) -> None:
        """Drop artifacts the collaborator retained from earlier deliveries."""
        if self._cleanup is None:
            return
        try:
            self._cleanup()
        except Exception as exc:
            logger.opt(exception=exc).error("Transport cleanup failed: {}", exc)

    def get(self, handler_name: str, function_name: str, *parameters: Any) -> Promise:
        """
        Run a local function for the remote side and report back.

        The outcome is sent as a message named `handler_name` with parameters
        `[success, *results]`. The returned promise settles once that reply was handed over.
        """

        def run(resolve: Callable[..., None], _reject: Callable[..., None]) -> None:
            function = resolve_object_path(function_name, self.functions)
            resolve(as_thenable(function(*parameters)))

        return Promise(run).then(
            lambda *results: self._reply(handler_name, True, list(results)),
            lambda *reasons: self._reply(handler_name, False, [marshal_reason(r) for r in reasons]),
        )

    def _reply(self, handler_name: str, success: bool, parameters: list[Any]) -> None:
        try:
            self.send(Message(name=handler_name, parameters=[success, *parameters]))
        except PayloadEncodeError as error:
            if not success:
                raise
            logger.warning("Result for {} is not serializable: {}", handler_name, error)
            self.send(Message(name=handler_name, parameters=[False, marshal_reason(error)]))
