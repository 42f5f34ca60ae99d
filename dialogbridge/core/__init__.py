"""Shared wire models, codecs and correlation helpers."""

from .correlation import IdGenerator, PendingRegistry
from .protocol import ErrorEnvelope, HandlerNames, Message, Response, is_valid_name, marshal_reason, unmarshal_reason
from .serialization import Codec, FallbackJsonCodec, JsonCodec, get_codec, normalize

__all__ = [
    "Codec",
    "ErrorEnvelope",
    "FallbackJsonCodec",
    "HandlerNames",
    "IdGenerator",
    "JsonCodec",
    "Message",
    "PendingRegistry",
    "Response",
    "get_codec",
    "is_valid_name",
    "marshal_reason",
    "normalize",
    "unmarshal_reason",
]
