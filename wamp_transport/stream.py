"""Byte stream helpers for the WAMP WebSocket transport."""

from __future__ import annotations

import asyncio
import logging
import ssl
from typing import TYPE_CHECKING

from .errors import WampConnectionError, WampShortRead, WampTimeout

if TYPE_CHECKING:
    from .endpoint import Endpoint

_LOGGER = logging.getLogger(__name__)

CLOSE_TIMEOUT = 2.0


class WampStream:
    """Blocking-style byte stream over an asyncio reader/writer pair.

    Every call waits for its read or write to complete before returning.
    """

    def __init__(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._reader = reader
        self._writer: asyncio.StreamWriter | None = writer

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def write(self, data: bytes) -> None:
        """Write data and wait until it is flushed to the transport."""
        if self._writer is None:
            raise WampConnectionError("Stream is closed")
        self._writer.write(data)
        try:
            await self._writer.drain()
        except (ConnectionError, OSError) as err:
            raise WampConnectionError(f"Write failed: {err}") from err

    async def read_exactly(self, count: int) -> bytes:
        """Read exactly count bytes.

        Raises:
            WampShortRead: If the stream ends first.
        """
        try:
            return await self._reader.readexactly(count)
        except asyncio.IncompleteReadError as err:
            raise WampShortRead(count, len(err.partial)) from err
        except (ConnectionError, OSError) as err:
            raise WampConnectionError(f"Read failed: {err}") from err

    async def read_line(self) -> bytes:
        """Read one line including its terminator, or b"" at end of stream."""
        try:
            return await self._reader.readline()
        except ValueError as err:
            # readline raises ValueError when the line exceeds the buffer limit
            raise WampConnectionError(f"Line too long: {err}") from err
        except (ConnectionError, OSError) as err:
            raise WampConnectionError(f"Read failed: {err}") from err

    async def close(self) -> bool:
        """Close the stream.

        Returns:
            True if an open stream was closed, False if it was already closed.
        """
        writer = self._writer
        if writer is None:
            return False
        self._writer = None

        writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=CLOSE_TIMEOUT)
        except TimeoutError:
            _LOGGER.warning("Stream close timed out")
        except (ConnectionError, OSError) as err:
            _LOGGER.debug("Error while closing stream: %s", err)
        return True


async def open_stream(
    endpoint: Endpoint,
    *,
    timeout: float | None = 15.0,
    ssl_context: ssl.SSLContext | None = None,
) -> WampStream:
    """Open a TCP (or TLS when the endpoint is encrypted) stream.

    Args:
        endpoint: Resolved server endpoint
        timeout: Connection timeout, None to wait indefinitely
        ssl_context: TLS context used for encrypted endpoints
    """
    tls: ssl.SSLContext | None = None
    if endpoint.encrypted:
        tls = ssl_context or ssl.create_default_context()

    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(endpoint.host, endpoint.port, ssl=tls),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise WampTimeout(f"Connection to {endpoint} timed out") from err
    except OSError as err:
        raise WampConnectionError(
            f"Could not open socket. Reason: {err}"
        ) from err

    return WampStream(reader, writer)
