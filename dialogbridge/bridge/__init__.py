"""Request handler facade and its factory."""

from .context import ResponseContext
from .facade import Bridge
from .factory import create_bridge, create_loopback_pair, create_request_handler

__all__ = ["Bridge", "ResponseContext", "create_bridge", "create_loopback_pair", "create_request_handler"]
