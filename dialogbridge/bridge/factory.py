"""Explicit construction of bridges and their transport adapters from configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from loguru import logger

from dialogbridge.bridge.facade import Bridge
from dialogbridge.config.schema import BridgeConfig
from dialogbridge.core.serialization import get_codec
from dialogbridge.promise.scheduler import Scheduler
from dialogbridge.transport.base import RequestHandler
from dialogbridge.transport.immediate import ImmediateRequestHandler
from dialogbridge.transport.loopback import LoopbackLink, SideBand
from dialogbridge.transport.queued import QueuedRequestHandler

TransportName = Literal["immediate", "queued"]


def create_request_handler(
    transport: TransportName,
    *,
    deliver: Callable[[str], None] | None = None,
    side_band: SideBand | None = None,
    trigger: Callable[[], None] | None = None,
    config: BridgeConfig | None = None,
    scheduler: Scheduler | None = None,
    **kwargs: Any,
) -> RequestHandler:
    """Build the adapter named `transport` around the collaborator's delivery primitives."""
    config = config or BridgeConfig()
    kwargs.setdefault("codec", get_codec(config.codec, ensure_ascii=config.ensure_ascii))
    if transport == "immediate":
        if deliver is None:
            raise ValueError("immediate transport needs a `deliver` primitive")
        return ImmediateRequestHandler(deliver, **kwargs)
    if transport == "queued":
        if side_band is None or trigger is None:
            raise ValueError("queued transport needs a `side_band` and a `trigger`")
        if "cleanup" not in kwargs:
            kwargs["cleanup"] = side_band.clear
        return QueuedRequestHandler(side_band, trigger, scheduler=scheduler, **kwargs)
    raise ValueError(f"unknown transport: {transport}")


def create_bridge(
    config: BridgeConfig | None = None,
    *,
    recipient: Any = None,
    request_handler: RequestHandler | None = None,
    scheduler: Scheduler | None = None,
    **primitives: Any,
) -> Bridge:
    """
    Build a bridge for `config.transport`.

    Pass the collaborator's primitives (`deliver`, or `side_band` and `trigger`) or a ready
    `request_handler`.
    """
    config = config or BridgeConfig()
    if request_handler is None:
        request_handler = create_request_handler(config.transport, config=config, scheduler=scheduler, **primitives)
    return Bridge(
        request_handler,
        recipient=recipient,
        namespace=config.namespace,
        acknowledge_inbound=config.acknowledge_inbound,
        handler_name_range=config.handler_name_range,
        handler_name_attempts=config.handler_name_attempts,
        scheduler=scheduler,
    )


def create_loopback_pair(
    config_a: BridgeConfig | None = None,
    config_b: BridgeConfig | None = None,
    *,
    scheduler: Scheduler | None = None,
) -> tuple[Bridge, Bridge, LoopbackLink]:
    """
    Two bridges talking to each other in memory.

    The peer of a queued side always acknowledges inbound messages. Two queued sides would
    each hold their acknowledgements behind a message the other has not acknowledged yet, so
    that combination is refused.
    """
    config_a = config_a or BridgeConfig()
    config_b = config_b or BridgeConfig()
    if config_a.transport == "queued" and config_b.transport == "queued":
        raise ValueError("a loopback pair can not have a queued transport on both sides")
    if config_a.namespace != config_b.namespace:
        raise ValueError("both sides of a loopback pair must share a namespace")
    link = LoopbackLink(scheduler)
    bridges: dict[str, Bridge] = {}
    for side, peer, config, peer_config in (("a", "b", config_a, config_b), ("b", "a", config_b, config_a)):
        if peer_config.transport == "queued" and not config.acknowledge_inbound:
            config = config.model_copy(update={"acknowledge_inbound": True})
        if config.transport == "queued":
            side_band = SideBand()
            primitives: dict[str, Any] = {"side_band": side_band, "trigger": link.trigger_to(peer, side_band)}
        else:
            primitives = {"deliver": link.deliver_to(peer)}
        bridges[side] = create_bridge(config, scheduler=scheduler, **primitives)
        link.attach(side, bridges[side].receive)
    logger.debug("Loopback pair ready: a={} b={}", config_a.transport, config_b.transport)
    return bridges["a"], bridges["b"], link
