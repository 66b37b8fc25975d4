"""WAMP session over a raw WebSocket stream.

The session owns the connection lifecycle:

    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSED

CLOSED is terminal; construct a new session to reconnect. A failed connect
attempt returns to DISCONNECTED so the caller may retry.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .endpoint import Endpoint, resolve_endpoint
from .errors import (
    WampClientError,
    WampConnectionError,
    WampNotConnected,
    WampProtocolError,
    WampTimeout,
)
from .frame import Opcode, decode_frame, encode_frame
from .handshake import perform_handshake
from .protocol import (
    WampMessage,
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
from .stream import WampStream, open_stream

_LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET = "/websocket/"


class ConnectionState(Enum):
    """Lifecycle states of a WampSession."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass(slots=True)
class _Link:
    """Stream and session details that only exist while connected."""

    stream: WampStream
    welcome: WampWelcome


class WampSession:
    """Client session for a WAMP v1 server.

    Usage:
        session = WampSession("ws://127.0.0.1:8080")
        session_id = await session.connect()
        await session.prefix("calc", "http://example.com/simple/calc#")
        await session.call("calc:square", 23)
        await session.publish("http://example.com/event#myevent", {"a": 1})
        await session.disconnect()
    """

    def __init__(
        self,
        endpoint: str,
        *,
        target: str = DEFAULT_TARGET,
        timeout: float | None = 15.0,
        verify_accept: bool = False,
        max_size: int | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        """Initialize session.

        Args:
            endpoint: Server URL, e.g. "ws://host:8080" or "https://host"
            target: Default request target for the upgrade handshake
            timeout: Deadline for opening the stream and for session
                establishment (seconds); None waits indefinitely
            verify_accept: Validate the server's Sec-WebSocket-Accept header
            max_size: Maximum inbound frame payload in bytes; None for no limit
            ssl_context: TLS context for encrypted endpoints

        Raises:
            WampInvalidEndpoint: If the endpoint cannot be parsed.
        """
        self._endpoint = resolve_endpoint(endpoint)
        self._target = target
        self._timeout = timeout
        self._verify_accept = verify_accept
        self._max_size = max_size
        self._ssl_context = ssl_context

        self._state = ConnectionState.DISCONNECTED
        self._link: _Link | None = None

    async def __aenter__(self) -> WampSession:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def session_id(self) -> str | None:
        """Server-issued session id, None unless connected."""
        return self._link.welcome.session_id if self._link else None

    @property
    def welcome(self) -> WampWelcome | None:
        return self._link.welcome if self._link else None

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    async def connect(self, target: str | None = None) -> str:
        """Open the stream, upgrade it and wait for the WELCOME message.

        Returns the cached session id without touching the network when the
        session is already connected.

        Args:
            target: Request target overriding the constructor default

        Returns:
            The server-issued session id.
        """
        if self._link is not None:
            return self._link.welcome.session_id
        if self._state is ConnectionState.CLOSED:
            raise WampConnectionError("Session is closed; create a new session")
        if self._state is ConnectionState.CONNECTING:
            raise WampConnectionError("Connection already in progress")

        target = target or self._target
        _LOGGER.info(
            "[%s] Connecting to %s://%s%s",
            self._endpoint,
            "wss" if self._endpoint.encrypted else "ws",
            self._endpoint,
            target,
        )

        try:
            stream = await open_stream(
                self._endpoint, timeout=self._timeout, ssl_context=self._ssl_context
            )
        except WampClientError as err:
            _LOGGER.warning("[%s] Connection failed: %s", self._endpoint, err)
            raise

        self._set_state(ConnectionState.CONNECTING)
        try:
            welcome = await asyncio.wait_for(
                self._establish(stream, target), timeout=self._timeout
            )
        except TimeoutError as err:
            await self._abort(stream, "timed out")
            raise WampTimeout("WAMP session establishment timed out") from err
        except WampClientError as err:
            await self._abort(stream, str(err))
            raise
        except BaseException as err:
            await self._abort(stream, repr(err))
            raise

        self._link = _Link(stream=stream, welcome=welcome)
        self._set_state(ConnectionState.CONNECTED)
        _LOGGER.info(
            "[%s] Session %s established (server: %s)",
            self._endpoint,
            welcome.session_id,
            welcome.server_ident or "unknown",
        )
        return welcome.session_id

    async def disconnect(self) -> bool:
        """Close the stream and end the session.

        Returns:
            True if an open stream was closed, False if there was none.
        """
        link, self._link = self._link, None
        closed = False
        if link is not None:
            closed = await link.stream.close()
            _LOGGER.info("[%s] Session %s closed", self._endpoint, link.welcome.session_id)

        self._set_state(ConnectionState.CLOSED)
        return closed

    # -------------------------------------------------------------------------
    # Outbound messages
    # -------------------------------------------------------------------------

    async def prefix(self, prefix: str, uri: str) -> None:
        """Establish a CURIE prefix on the server."""
        await self._send(build_prefix(prefix, uri))

    async def call(self, proc_uri: str, *args: Any) -> str:
        """Call a remote procedure.

        Returns:
            The call id sent with the CALL message.
        """
        call_id = new_call_id()
        await self._send(build_call(call_id, proc_uri, *args))
        return call_id

    async def subscribe(self, topic_uri: str) -> None:
        await self._send(build_subscribe(topic_uri))

    async def unsubscribe(self, topic_uri: str) -> None:
        await self._send(build_unsubscribe(topic_uri))

    async def publish(
        self,
        topic_uri: str,
        payload: Any,
        exclude: list[str] | None = None,
        eligible: list[str] | None = None,
    ) -> None:
        """Publish an event to all subscribers of topic_uri."""
        await self._send(build_publish(topic_uri, payload, exclude, eligible))

    async def event(self, topic_uri: str, payload: Any) -> None:
        """Forward an EVENT message for topic_uri."""
        await self._send(build_event(topic_uri, payload))

    # -------------------------------------------------------------------------
    # Inbound messages
    # -------------------------------------------------------------------------

    async def receive(self, timeout: float | None = None) -> WampMessage:
        """Read the next message sent by the server.

        Raises:
            WampNotConnected: If the session is not connected.
            WampTimeout: If no complete frame arrives within timeout.
            WampProtocolError: On a non-text frame or malformed message.
        """
        link = self._require_link()
        try:
            frame = await asyncio.wait_for(
                decode_frame(link.stream, max_size=self._max_size), timeout=timeout
            )
        except TimeoutError as err:
            raise WampTimeout("Timed out waiting for a WAMP message") from err

        if frame.opcode is not Opcode.TEXT:
            raise WampProtocolError(f"Unexpected {frame.opcode.name} frame")
        return WampMessage.decode(frame.text())

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _establish(self, stream: WampStream, target: str) -> WampWelcome:
        await perform_handshake(
            stream,
            self._endpoint.host,
            target,
            verify_accept=self._verify_accept,
        )
        frame = await decode_frame(stream, max_size=self._max_size)
        return parse_welcome(WampMessage.decode(frame.text()))

    async def _abort(self, stream: WampStream, reason: str) -> None:
        _LOGGER.warning("[%s] Session establishment failed: %s", self._endpoint, reason)
        await stream.close()
        self._set_state(ConnectionState.DISCONNECTED)

    def _require_link(self) -> _Link:
        if self._link is None:
            raise WampNotConnected(
                f"WAMP session is not connected (state: {self._state.value})"
            )
        return self._link

    async def _send(self, message: WampMessage) -> None:
        link = self._require_link()
        await link.stream.write(encode_frame(Opcode.TEXT, message.encode(), mask=True))
        _LOGGER.debug("[%s] Sent %s", self._endpoint, message.type.name)

    def _set_state(self, state: ConnectionState) -> None:
        if self._state is not state:
            _LOGGER.debug(
                "[%s] State: %s → %s", self._endpoint, self._state.value, state.value
            )
            self._state = state
