"""WebSocket frame codec (RFC 6455 section 5.2).

Outbound frames always carry FIN and, for client-to-server traffic, a random
4-byte masking key. Inbound frames are unmasked when the peer sets the mask
bit; servers normally do not.
"""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

from websockets.utils import apply_mask

from .errors import WampProtocolError

if TYPE_CHECKING:
    from .stream import WampStream

FIN_BIT = 0x80
MASK_BIT = 0x80
OPCODE_MASK = 0x0F
LENGTH_MASK = 0x7F

LENGTH_16BIT = 126
LENGTH_64BIT = 127
MAX_7BIT_LENGTH = 125
MAX_16BIT_LENGTH = 0xFFFF
MAX_64BIT_LENGTH = 0x7FFFFFFFFFFFFFFF


class Opcode(IntEnum):
    """WebSocket frame opcodes."""

    CONTINUATION = 0x0
    TEXT = 0x1
    BINARY = 0x2
    CLOSE = 0x8
    PING = 0x9
    PONG = 0xA


@dataclass(frozen=True)
class Frame:
    """A single decoded WebSocket frame."""

    opcode: Opcode
    payload: bytes
    masked: bool = False
    fin: bool = True

    @property
    def payload_length(self) -> int:
        return len(self.payload)

    def text(self) -> str:
        """Decode the payload as UTF-8 text."""
        try:
            return self.payload.decode("utf-8")
        except UnicodeDecodeError as err:
            raise WampProtocolError(f"Frame payload is not UTF-8: {err}") from err


def _length_header(length: int, mask_bit: int) -> bytes:
    if length <= MAX_7BIT_LENGTH:
        return bytes([mask_bit | length])
    if length <= MAX_16BIT_LENGTH:
        return struct.pack("!BH", mask_bit | LENGTH_16BIT, length)
    if length > MAX_64BIT_LENGTH:
        raise ValueError(f"Payload too large for a WebSocket frame: {length}")
    return struct.pack("!BQ", mask_bit | LENGTH_64BIT, length)


def encode_frame(
    opcode: Opcode | int, payload: bytes | str, *, mask: bool = True
) -> bytes:
    """Encode a payload into a single final WebSocket frame.

    Args:
        opcode: Frame opcode
        payload: Payload bytes; str payloads are UTF-8 encoded
        mask: Whether to mask the payload with a random key

    Returns:
        The complete frame, header included.
    """
    opcode = Opcode(opcode)
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    header = bytearray([FIN_BIT | opcode])
    header += _length_header(len(payload), MASK_BIT if mask else 0)

    if not mask:
        return bytes(header) + payload

    key = os.urandom(4)
    header += key
    return bytes(header) + apply_mask(payload, key)


async def decode_frame(stream: WampStream, *, max_size: int | None = None) -> Frame:
    """Read one frame from the stream.

    Consumes exactly the header, extended length, optional masking key and
    payload of a single frame.

    Raises:
        WampShortRead: If the stream ends mid-frame.
        WampProtocolError: On an unknown opcode, an invalid 64-bit length or a
            payload larger than max_size.
    """
    first, second = await stream.read_exactly(2)

    try:
        opcode = Opcode(first & OPCODE_MASK)
    except ValueError as err:
        raise WampProtocolError(f"Unknown opcode: {first & OPCODE_MASK:#x}") from err

    masked = bool(second & MASK_BIT)
    length = second & LENGTH_MASK
    if length == LENGTH_16BIT:
        (length,) = struct.unpack("!H", await stream.read_exactly(2))
    elif length == LENGTH_64BIT:
        (length,) = struct.unpack("!Q", await stream.read_exactly(8))
        if length > MAX_64BIT_LENGTH:
            raise WampProtocolError("Most significant bit of 64-bit length is set")

    if max_size is not None and length > max_size:
        raise WampProtocolError(
            f"Frame payload of {length} bytes exceeds limit of {max_size}"
        )

    key = await stream.read_exactly(4) if masked else None
    payload = await stream.read_exactly(length) if length else b""
    if key is not None:
        payload = apply_mask(payload, key)

    return Frame(
        opcode=opcode, payload=payload, masked=masked, fin=bool(first & FIN_BIT)
    )
