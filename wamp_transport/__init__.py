"""WAMP v1 client over a raw WebSocket transport."""

__version__ = "0.1.0"

from .endpoint import Endpoint, resolve_endpoint
from .errors import (
    WampClientError,
    WampConnectionError,
    WampHandshakeError,
    WampInvalidEndpoint,
    WampNoResponse,
    WampNotConnected,
    WampProtocolError,
    WampShortRead,
    WampTimeout,
    WampUnexpectedStatus,
)
from .frame import Frame, Opcode, decode_frame, encode_frame
from .handshake import build_handshake_request, generate_key, perform_handshake
from .protocol import (
    WampMessage,
    WampMessageType,
    WampWelcome,
    build_call,
    build_event,
    build_prefix,
    build_publish,
    build_subscribe,
    build_unsubscribe,
    new_call_id,
    parse_welcome,
)
from .session import ConnectionState, WampSession
from .stream import WampStream, open_stream

__all__ = [
    "ConnectionState",
    "Endpoint",
    "Frame",
    "Opcode",
    "WampClientError",
    "WampConnectionError",
    "WampHandshakeError",
    "WampInvalidEndpoint",
    "WampMessage",
    "WampMessageType",
    "WampNoResponse",
    "WampNotConnected",
    "WampProtocolError",
    "WampSession",
    "WampShortRead",
    "WampStream",
    "WampTimeout",
    "WampUnexpectedStatus",
    "WampWelcome",
    "__version__",
    "build_call",
    "build_event",
    "build_handshake_request",
    "build_prefix",
    "build_publish",
    "build_subscribe",
    "build_unsubscribe",
    "decode_frame",
    "encode_frame",
    "generate_key",
    "new_call_id",
    "open_stream",
    "parse_welcome",
    "perform_handshake",
    "resolve_endpoint",
]
