"""Tests for Socket Mode frame parsing."""

import json
import pytest

from conftest import envelope_frame, message_event
from slack_executor.errors import FrameParseError
from slack_executor.socket.events import (
    ChannelMessageEvent,
    DisconnectFrame,
    EnvelopeFrame,
    HelloFrame,
    MentionEvent,
    MessageDeletedEvent,
    ReactionEvent,
    ThreadReplyEvent,
    UnrecognizedEvent,
    build_ack,
    classify_event,
    extract_envelope_id,
    parse_frame,
    unescape_slack_text,
)


class TestParseFrame:
    """Tests for parse_frame."""

    def test_hello(self):
        raw = json.dumps({
            "type": "hello",
            "num_connections": 1,
            "debug_info": {"host": "applink-1", "approximate_connection_time": 18060},
            "connection_info": {"app_id": "A123"},
        })

        frame = parse_frame(raw)

        assert isinstance(frame, HelloFrame)
        assert frame.num_connections == 1
        assert frame.connection_info == {"app_id": "A123"}

    def test_disconnect(self):
        frame = parse_frame(json.dumps({"type": "disconnect", "reason": "refresh_requested"}))

        assert isinstance(frame, DisconnectFrame)
        assert frame.reason == "refresh_requested"

    def test_envelope_with_channel_message(self):
        frame = parse_frame(envelope_frame("env-1", message_event("hello")))

        assert isinstance(frame, EnvelopeFrame)
        assert frame.envelope_id == "env-1"
        assert frame.frame_type == "events_api"
        assert isinstance(frame.event, ChannelMessageEvent)
        assert frame.event.text == "hello"
        assert frame.payload["event_id"] == "Ev123"

    def test_envelope_keeps_unknown_fields(self):
        frame = parse_frame(envelope_frame("env-1", message_event("hello"), shiny_new_field=True))

        assert frame.extra == {"shiny_new_field": True}
        assert frame.event.extra["client_msg_id"] == "c0ffee"
        assert frame.event.extra["team"] == "T123"

    def test_envelope_without_event(self):
        raw = json.dumps({"envelope_id": "env-2", "type": "slash_commands", "payload": {"command": "/x"}})

        frame = parse_frame(raw)

        assert isinstance(frame.event, UnrecognizedEvent)

    def test_retry_fields(self):
        frame = parse_frame(envelope_frame("env-1", message_event("x"), retry_attempt=2, retry_reason="timeout"))

        assert frame.retry_attempt == 2
        assert frame.retry_reason == "timeout"

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        json.dumps({"no_type": True}),
        json.dumps({"type": "mystery"}),
        json.dumps({"type": "events_api", "envelope_id": 42, "payload": {}}),
        json.dumps({"type": "events_api", "envelope_id": "env-1", "payload": "nope"}),
    ])
    def test_malformed_frames_raise(self, raw):
        with pytest.raises(FrameParseError):
            parse_frame(raw)


class TestClassifyEvent:
    """Tests for payload event classification."""

    def test_app_mention(self):
        event = classify_event({
            "type": "app_mention",
            "text": "<@U0BOT> ```# executor: echo\nhi```",
            "user": "U123",
            "channel": "C123",
            "ts": "1.1",
            "thread_ts": "1.0",
            "parent_user_id": "U999",
        })

        assert isinstance(event, MentionEvent)
        assert event.thread_ts == "1.0"
        assert event.extra == {"parent_user_id": "U999"}

    def test_channel_message(self):
        event = classify_event(message_event("hi"))

        assert isinstance(event, ChannelMessageEvent)
        assert event.channel == "C123"
        assert event.channel_type == "channel"

    def test_thread_reply(self):
        event = classify_event(message_event("reply", ts="2.0", thread_ts="1.0"))

        assert isinstance(event, ThreadReplyEvent)
        assert event.thread_ts == "1.0"

    def test_thread_root_is_channel_message(self):
        event = classify_event(message_event("root", ts="1.0", thread_ts="1.0"))

        assert isinstance(event, ChannelMessageEvent)

    def test_message_deleted(self):
        event = classify_event({
            "type": "message",
            "subtype": "message_deleted",
            "hidden": True,
            "channel": "C123",
            "deleted_ts": "1.0",
            "previous_message": {"text": "old"},
            "ts": "2.0",
        })

        assert isinstance(event, MessageDeletedEvent)
        assert event.deleted_ts == "1.0"
        assert event.extra["hidden"] is True

    @pytest.mark.parametrize("event_type", ["reaction_added", "reaction_removed"])
    def test_reactions(self, event_type):
        event = classify_event({
            "type": event_type,
            "user": "U123",
            "reaction": "thumbsup",
            "item": {"type": "message", "channel": "C123", "ts": "1.0"},
            "item_user": "U456",
            "event_ts": "2.0",
        })

        assert isinstance(event, ReactionEvent)
        assert event.event_type == event_type
        assert event.reaction == "thumbsup"

    def test_bot_message_is_unrecognized(self):
        event = classify_event(message_event("✅ `echo` finished", bot_id="B123"))

        assert isinstance(event, UnrecognizedEvent)

    def test_other_subtypes_are_unrecognized(self):
        assert isinstance(classify_event(message_event("x", subtype="message_changed")), UnrecognizedEvent)

    def test_unknown_type(self):
        event = classify_event({"type": "channel_created", "channel": {"id": "C9"}})

        assert isinstance(event, UnrecognizedEvent)
        assert event.event_type == "channel_created"

    def test_non_dict_event(self):
        assert isinstance(classify_event(None), UnrecognizedEvent)


class TestEnvelopeIdFallback:
    """Tests for the untyped envelope_id fallback."""

    def test_from_json_with_bad_shape(self):
        raw = json.dumps({"type": "events_api", "envelope_id": "env-9", "payload": "garbage"})

        assert extract_envelope_id(raw) == "env-9"

    def test_from_truncated_json(self):
        assert extract_envelope_id('{"envelope_id": "env-7", "payload": {"event": ') == "env-7"

    def test_missing(self):
        assert extract_envelope_id("complete garbage") is None
        assert extract_envelope_id(json.dumps({"type": "mystery"})) is None


class TestHelpers:
    def test_build_ack(self):
        assert json.loads(build_ack("env-1")) == {"envelope_id": "env-1"}

    def test_unescape_slack_text(self):
        assert unescape_slack_text("a &lt;b&gt; &amp;&amp; c") == "a <b> && c"

    def test_unescape_does_not_double_decode(self):
        assert unescape_slack_text("&amp;lt;") == "&lt;"
