"""Response context handed to handlers of requests that expect an answer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from dialogbridge.core.protocol import HandlerNames, Message, Response, marshal_reason
from dialogbridge.promise.deferred import Deferred
from dialogbridge.promise.scheduler import Scheduler
from dialogbridge.utils.exceptions import PayloadEncodeError

if TYPE_CHECKING:
    from dialogbridge.transport.base import RequestHandler


class ResponseContext(Deferred):
    """
    Answers one inbound request.

    `resolve(*results)` / `reject(*reasons)` send the outcome back under the request's id on a
    later scheduler turn. The host object the bridge was created for is available as `recipient`.
    """

    def __init__(
        self,
        msg_id: int,
        recipient: Any,
        request_handler: RequestHandler,
        names: HandlerNames,
        *,
        scheduler: Scheduler | None = None,
    ):
        super().__init__(scheduler=scheduler)
        self.id = msg_id
        self.recipient = recipient
        self._request_handler = request_handler
        self._names = names
        self.promise.then(self._send_results, self._send_reasons).catch(self._report_send_failure)

    def _send_results(self, *results: Any) -> None:
        try:
            self._send(Response(success=True, parameters=list(results)))
        except PayloadEncodeError as error:
            logger.warning("Result for request id={} is not serializable: {}", self.id, error)
            self._send(Response(success=False, parameters=[marshal_reason(error)]))

    def _send_reasons(self, *reasons: Any) -> None:
        self._send(Response(success=False, parameters=[marshal_reason(reason) for reason in reasons]))

    def _send(self, response: Response) -> None:
        self._request_handler.send(Message(name=self._names.receive, parameters=[self.id, response.to_payload()]))

    def _report_send_failure(self, *reasons: Any) -> None:
        logger.debug("Response for request id={} was not delivered: {}", self.id, reasons[0] if reasons else None)

    def __repr__(self) -> str:
        state = "pending" if self.pending else self.promise.state.value
        return f"<ResponseContext id={self.id} {state}>"
