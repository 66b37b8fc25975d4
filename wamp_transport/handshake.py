"""WebSocket upgrade handshake for the WAMP transport."""

from __future__ import annotations

import base64
import logging
import os
from typing import TYPE_CHECKING

from websockets.utils import accept_key

from .errors import (
    WampHandshakeError,
    WampInvalidEndpoint,
    WampNoResponse,
    WampUnexpectedStatus,
)

if TYPE_CHECKING:
    from .stream import WampStream

_LOGGER = logging.getLogger(__name__)

EXPECTED_STATUS = "HTTP/1.1 101"
WEBSOCKET_VERSION = "13"
DEFAULT_KEY_LENGTH = 16
MAX_HEADER_LINES = 100


def generate_key(length: int = DEFAULT_KEY_LENGTH) -> str:
    """Return a base64-encoded nonce of length random bytes."""
    if length <= 0:
        raise ValueError("Key length must be positive")
    return base64.b64encode(os.urandom(length)).decode("ascii")


def build_handshake_request(host: str, target: str, key: str) -> bytes:
    """Build the HTTP/1.1 upgrade request."""
    lines = [
        f"GET {target} HTTP/1.1",
        f"Host: [{host}]" if ":" in host else f"Host: {host}",
        "Upgrade: WebSocket",
        "Connection: Upgrade",
        f"Sec-WebSocket-Key: {key}",
        f"Sec-WebSocket-Version: {WEBSOCKET_VERSION}",
        "Origin: *",
    ]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def verify_status_line(response: bytes | str | None) -> str:
    """Check the first response line of the upgrade.

    Returns:
        The status line without its terminator.

    Raises:
        WampNoResponse: If nothing was read.
        WampUnexpectedStatus: If the line does not start with HTTP/1.1 101.
    """
    if not response:
        raise WampNoResponse("WAMP server did not respond properly")

    if isinstance(response, bytes):
        response = response.decode("latin-1")

    status = response[: len(EXPECTED_STATUS)]
    if status != EXPECTED_STATUS:
        raise WampUnexpectedStatus(
            response.rstrip("\r\n"),
            f"Unexpected response. Expected {EXPECTED_STATUS} got {status}",
        )
    return response.rstrip("\r\n")


async def _read_headers(stream: WampStream) -> dict[str, str]:
    headers: dict[str, str] = {}
    for _ in range(MAX_HEADER_LINES):
        line = (await stream.read_line()).decode("latin-1").rstrip("\r\n")
        if not line:
            return headers
        name, sep, value = line.partition(":")
        if not sep:
            _LOGGER.debug("Ignoring malformed handshake header: %r", line)
            continue
        headers[name.strip().lower()] = value.strip()
    raise WampHandshakeError(
        f"Handshake response exceeds {MAX_HEADER_LINES} header lines"
    )


async def perform_handshake(
    stream: WampStream,
    host: str,
    target: str,
    *,
    verify_accept: bool = False,
    key: str | None = None,
) -> dict[str, str]:
    """Upgrade the stream to the WebSocket protocol.

    Args:
        stream: Open byte stream to the server
        host: Value of the Host header
        target: Request target, e.g. "/websocket/"
        verify_accept: Check Sec-WebSocket-Accept against the key
        key: Handshake nonce; generated when omitted

    Returns:
        Response headers with lower-cased names.
    """
    if "/" not in target:
        raise WampInvalidEndpoint(f"WAMP server target is wrong: {target!r}")

    key = key or generate_key()
    await stream.write(build_handshake_request(host, target, key))

    status_line = verify_status_line(await stream.read_line())
    headers = await _read_headers(stream)
    _LOGGER.debug("Handshake response: %s (%d headers)", status_line, len(headers))

    if verify_accept:
        expected = accept_key(key)
        received = headers.get("sec-websocket-accept")
        if received != expected:
            raise WampHandshakeError(
                f"Invalid Sec-WebSocket-Accept: expected {expected}, got {received}"
            )

    return headers
