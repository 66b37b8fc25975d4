"""Pytest configuration and fixtures for wamp_transport tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from wamp_transport.errors import WampConnectionError, WampShortRead
from wamp_transport.frame import Opcode, decode_frame, encode_frame

HANDSHAKE_OK = (
    b"HTTP/1.1 101 Switching Protocols\r\n"
    b"Upgrade: websocket\r\n"
    b"Connection: Upgrade\r\n"
    b"\r\n"
)


class FakeStream:
    """In-memory stand-in for WampStream.

    Reads are served from a preloaded buffer; writes are recorded.
    """

    def __init__(self, incoming: bytes = b"") -> None:
        self._incoming = bytearray(incoming)
        self.written: list[bytes] = []
        self.closed = False

    def feed(self, data: bytes) -> None:
        self._incoming += data

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise WampConnectionError("Stream is closed")
        self.written.append(bytes(data))

    async def read_exactly(self, count: int) -> bytes:
        if len(self._incoming) < count:
            received = len(self._incoming)
            self._incoming.clear()
            raise WampShortRead(count, received)
        data = bytes(self._incoming[:count])
        del self._incoming[:count]
        return data

    async def read_line(self) -> bytes:
        end = self._incoming.find(b"\n")
        end = len(self._incoming) if end == -1 else end + 1
        data = bytes(self._incoming[:end])
        del self._incoming[:end]
        return data

    async def close(self) -> bool:
        if self.closed:
            return False
        self.closed = True
        return True


def server_frame(payload: Any, opcode: Opcode = Opcode.TEXT) -> bytes:
    """Encode an unmasked frame as a server would send it.

    Non-bytes payloads are serialized to JSON first.
    """
    if not isinstance(payload, (bytes, str)):
        payload = json.dumps(payload)
    return encode_frame(opcode, payload, mask=False)


def welcome_bytes(session_id: str = "abc123") -> bytes:
    """Handshake response followed by a WELCOME frame."""
    return HANDSHAKE_OK + server_frame([0, session_id, 1, "test-server/1.0"])


async def sent_messages(stream: FakeStream) -> list[list[Any]]:
    """Decode every frame the client wrote after the handshake request."""
    messages = []
    for data in stream.written[1:]:
        frame = await decode_frame(FakeStream(data))
        assert frame.masked
        assert frame.opcode is Opcode.TEXT
        messages.append(json.loads(frame.payload))
    return messages


@pytest.fixture
def welcome_stream() -> FakeStream:
    """Stream preloaded with a valid handshake and WELCOME for abc123."""
    return FakeStream(welcome_bytes())
