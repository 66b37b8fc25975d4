"""Client error types for WAMP server interactions."""

from __future__ import annotations


class WampClientError(Exception):
    """Base error for WAMP client failures."""


class WampInvalidEndpoint(WampClientError):
    """Endpoint string or handshake target could not be used."""


class WampTimeout(WampClientError):
    """Timeout while communicating with the server."""


class WampConnectionError(WampClientError):
    """Network connection to the server failed."""


class WampNotConnected(WampConnectionError):
    """Operation requires an established WAMP session."""


class WampHandshakeError(WampClientError):
    """WebSocket handshake failed."""


class WampNoResponse(WampHandshakeError):
    """Server closed the stream without answering the upgrade request."""


class WampUnexpectedStatus(WampHandshakeError):
    """Server answered the upgrade request with a non-101 status."""

    def __init__(self, status_line: str, message: str) -> None:
        super().__init__(message)
        self.status_line = status_line


class WampShortRead(WampClientError):
    """Stream ended before a complete frame could be read."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Stream closed after {received} of {expected} expected bytes"
        )
        self.expected = expected
        self.received = received


class WampProtocolError(WampClientError):
    """Frame or WAMP message violated the protocol."""
