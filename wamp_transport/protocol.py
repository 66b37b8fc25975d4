"""WAMP v1 message helpers.

Messages are JSON arrays whose first element is the message type. This
module builds the client-side messages and parses whatever the server sends.
"""

from __future__ import annotations

import itertools
import json
import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .errors import WampProtocolError

_CALL_SEQUENCE = itertools.count(1)


class WampMessageType(IntEnum):
    """WAMP v1 message type codes."""

    WELCOME = 0
    PREFIX = 1
    CALL = 2
    CALL_RESULT = 3
    CALL_ERROR = 4
    SUBSCRIBE = 5
    UNSUBSCRIBE = 6
    PUBLISH = 7
    EVENT = 8


@dataclass(frozen=True)
class WampMessage:
    """A WAMP message: a type tag followed by type-specific fields."""

    type: WampMessageType
    args: tuple[Any, ...] = ()

    def to_list(self) -> list[Any]:
        return [int(self.type), *self.args]

    def encode(self) -> str:
        """Serialize to the JSON wire form."""
        return json.dumps(self.to_list())

    @classmethod
    def decode(cls, data: str | bytes) -> WampMessage:
        """Parse a JSON array into a message.

        Raises:
            WampProtocolError: If the payload is not a JSON array tagged with a
                known message type.
        """
        try:
            raw = json.loads(data)
        except ValueError as err:
            raise WampProtocolError(f"Message is not valid JSON: {err}") from err

        if not isinstance(raw, list) or not raw:
            raise WampProtocolError("Message must be a non-empty JSON array")

        tag = raw[0]
        # bool is an int subclass but never a valid tag
        if isinstance(tag, bool) or not isinstance(tag, int):
            raise WampProtocolError(f"Message type must be an integer, got {tag!r}")
        try:
            msg_type = WampMessageType(tag)
        except ValueError as err:
            raise WampProtocolError(f"Unknown message type: {tag}") from err

        return cls(msg_type, tuple(raw[1:]))


@dataclass(frozen=True)
class WampWelcome:
    """Session details announced by the server's WELCOME message."""

    session_id: str
    protocol_version: int | None = None
    server_ident: str | None = None


def _require_uri(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


def new_call_id() -> str:
    """Return a call id unique within this process."""
    return f"{uuid.uuid4().hex[:12]}.{next(_CALL_SEQUENCE)}"


def build_prefix(prefix: str, uri: str) -> WampMessage:
    """Construct a PREFIX message mapping prefix to uri."""
    return WampMessage(
        WampMessageType.PREFIX,
        (_require_uri(prefix, "prefix"), _require_uri(uri, "uri")),
    )


def build_call(call_id: str, proc_uri: str, *args: Any) -> WampMessage:
    """Construct a CALL message; args are passed through untouched."""
    return WampMessage(
        WampMessageType.CALL,
        (_require_uri(call_id, "call_id"), _require_uri(proc_uri, "proc_uri"), *args),
    )


def build_subscribe(topic_uri: str) -> WampMessage:
    return WampMessage(WampMessageType.SUBSCRIBE, (_require_uri(topic_uri, "topic_uri"),))


def build_unsubscribe(topic_uri: str) -> WampMessage:
    return WampMessage(
        WampMessageType.UNSUBSCRIBE, (_require_uri(topic_uri, "topic_uri"),)
    )


def build_publish(
    topic_uri: str,
    payload: Any,
    exclude: list[str] | None = None,
    eligible: list[str] | None = None,
) -> WampMessage:
    """Construct a PUBLISH message.

    Args:
        topic_uri: Topic to publish to.
        payload: JSON-serializable event payload.
        exclude: Session ids that must not receive the event.
        eligible: Session ids that may receive the event.
    """
    return WampMessage(
        WampMessageType.PUBLISH,
        (
            _require_uri(topic_uri, "topic_uri"),
            payload,
            list(exclude or []),
            list(eligible or []),
        ),
    )


def build_event(topic_uri: str, payload: Any) -> WampMessage:
    """Construct an EVENT message forwarded by this client."""
    return WampMessage(
        WampMessageType.EVENT, (_require_uri(topic_uri, "topic_uri"), payload)
    )


def parse_welcome(message: WampMessage) -> WampWelcome:
    """Extract session details from a WELCOME message.

    Raises:
        WampProtocolError: If the message is not a WELCOME or lacks a session id.
    """
    if message.type is not WampMessageType.WELCOME:
        raise WampProtocolError(
            f"WAMP server did not send welcome message (got {message.type.name})"
        )
    session_id = message.args[0] if message.args else None
    if isinstance(session_id, int) and not isinstance(session_id, bool):
        session_id = str(session_id)
    if not isinstance(session_id, str) or not session_id:
        raise WampProtocolError("WELCOME message carries no session id")

    version = message.args[1] if len(message.args) > 1 else None
    ident = message.args[2] if len(message.args) > 2 else None
    return WampWelcome(
        session_id=session_id,
        protocol_version=version if isinstance(version, int) else None,
        server_ident=ident if isinstance(ident, str) else None,
    )
