"""Transport adapters: how messages reach the other side."""

from .base import RequestHandler, resolve_object_path
from .immediate import ImmediateRequestHandler
from .loopback import LoopbackLink, SideBand
from .mock import MockRequestHandler
from .queued import QueuedMessage, QueuedRequestHandler, QueueState

__all__ = [
    "ImmediateRequestHandler",
    "LoopbackLink",
    "MockRequestHandler",
    "QueueState",
    "QueuedMessage",
    "QueuedRequestHandler",
    "RequestHandler",
    "SideBand",
    "resolve_object_path",
]
