"""Tests for WAMP message helpers."""

from __future__ import annotations

import json

import pytest

from wamp_transport.errors import WampProtocolError
from wamp_transport.protocol import (
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


class TestWampMessageType:
    """Tests for WampMessageType enum."""

    def test_enum_values(self):
        """Test the WAMP v1 type codes."""
        assert [(t.name, t.value) for t in WampMessageType] == [
            ("WELCOME", 0),
            ("PREFIX", 1),
            ("CALL", 2),
            ("CALL_RESULT", 3),
            ("CALL_ERROR", 4),
            ("SUBSCRIBE", 5),
            ("UNSUBSCRIBE", 6),
            ("PUBLISH", 7),
            ("EVENT", 8),
        ]


class TestBuilders:
    """Tests for outbound message builders."""

    def test_prefix(self):
        """Test PREFIX layout."""
        message = build_prefix("calc", "http://example.com/simple/calc#")
        assert message.to_list() == [1, "calc", "http://example.com/simple/calc#"]

    def test_call(self):
        """Test CALL layout with trailing arguments."""
        message = build_call("id-1", "arith.add", 1, 2)
        assert message.to_list() == [2, "id-1", "arith.add", 1, 2]

    def test_call_arguments_are_opaque(self):
        """Test structured arguments pass through untouched."""
        message = build_call("id-1", "store", {"a": [1, 2]}, None, [True])
        assert message.args[2:] == ({"a": [1, 2]}, None, [True])

    def test_publish_defaults(self):
        """Test PUBLISH with default exclude and eligible lists."""
        message = build_publish("topic.x", {"a": 1})
        assert json.loads(message.encode()) == [7, "topic.x", {"a": 1}, [], []]

    def test_publish_exclude_eligible(self):
        """Test PUBLISH carries exclude and eligible session lists."""
        message = build_publish("topic.x", "hi", ["s1"], ["s2", "s3"])
        assert message.to_list() == [7, "topic.x", "hi", ["s1"], ["s2", "s3"]]

    def test_event(self):
        """Test EVENT layout."""
        assert build_event("topic.x", [1, 2]).to_list() == [8, "topic.x", [1, 2]]

    def test_subscribe_unsubscribe(self):
        """Test SUBSCRIBE and UNSUBSCRIBE layouts."""
        assert build_subscribe("topic.x").to_list() == [5, "topic.x"]
        assert build_unsubscribe("topic.x").to_list() == [6, "topic.x"]

    @pytest.mark.parametrize(
        "build",
        [
            lambda: build_prefix("", "http://x"),
            lambda: build_call("id", ""),
            lambda: build_publish(None, {}),  # type: ignore[arg-type]
            lambda: build_event("", 1),
            lambda: build_subscribe(""),
        ],
    )
    def test_rejects_empty_uri(self, build):
        """Test builders refuse empty or non-string URIs."""
        with pytest.raises(ValueError):
            build()

    def test_message_is_frozen(self):
        """Test that messages are immutable."""
        message = build_event("topic.x", 1)
        with pytest.raises(AttributeError):
            message.args = ()  # type: ignore[misc]


class TestDecode:
    """Tests for WampMessage.decode()."""

    def test_event(self):
        """Test decoding an inbound EVENT."""
        message = WampMessage.decode('[8, "topic.x", {"a": 1}]')
        assert message == WampMessage(WampMessageType.EVENT, ("topic.x", {"a": 1}))

    def test_bytes(self):
        """Test bytes payloads are accepted."""
        message = WampMessage.decode(b'[3, "id-1", 42]')
        assert message.type is WampMessageType.CALL_RESULT
        assert message.args == ("id-1", 42)

    @pytest.mark.parametrize(
        ("data", "match"),
        [
            ("not json", "not valid JSON"),
            ('{"type": 0}', "non-empty JSON array"),
            ("[]", "non-empty JSON array"),
            ('["0", "abc"]', "must be an integer"),
            ("[true]", "must be an integer"),
            ("[42]", "Unknown message type"),
        ],
    )
    def test_invalid(self, data, match):
        """Test malformed payloads raise WampProtocolError."""
        with pytest.raises(WampProtocolError, match=match):
            WampMessage.decode(data)


class TestParseWelcome:
    """Tests for parse_welcome()."""

    def test_full_welcome(self):
        """Test session id, protocol version and server ident are parsed."""
        message = WampMessage.decode('[0, "abc123", 1, "Autobahn/0.5.14"]')
        assert parse_welcome(message) == WampWelcome("abc123", 1, "Autobahn/0.5.14")

    def test_minimal_welcome(self):
        """Test a WELCOME carrying only the session id."""
        assert parse_welcome(WampMessage.decode('[0, "abc123"]')) == WampWelcome("abc123")

    def test_integer_session_id(self):
        """Test numeric session ids are kept as strings."""
        assert parse_welcome(WampMessage.decode("[0, 42]")).session_id == "42"

    def test_not_welcome(self):
        """Test any other message type is a protocol violation."""
        with pytest.raises(WampProtocolError, match="did not send welcome"):
            parse_welcome(WampMessage.decode('[8, "topic", 1]'))

    @pytest.mark.parametrize("data", ["[0]", '[0, ""]', "[0, null]"])
    def test_missing_session_id(self, data):
        """Test a WELCOME without a usable session id is rejected."""
        with pytest.raises(WampProtocolError, match="no session id"):
            parse_welcome(WampMessage.decode(data))


class TestNewCallId:
    """Tests for new_call_id()."""

    def test_unique(self):
        """Test ids do not repeat within the process."""
        ids = [new_call_id() for _ in range(1000)]
        assert len(set(ids)) == len(ids)
        assert all(ids)
