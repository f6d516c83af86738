"""Pytest configuration and shared fixtures."""

import json
import os
import pytest

# Set dummy env vars before importing modules that require them
os.environ.setdefault("SLACK_APP_TOKEN", "xapp-test")
os.environ.setdefault("SLACK_BOT_TOKEN", "xoxb-test")

from slack_executor.commands.registry import registry_from_mapping
from slack_executor.errors import PostError
from slack_executor.slack import ChatPoster, ConnectionProvider


class FakeTransport:
    """In-memory stand-in for WebSocketTransport.

    `frames` are returned by receive() in order; an Exception instance in the
    list is raised instead. Once empty, receive() reports a clean close.
    """

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent: list[str] = []
        self.connected = False
        self.closed = False
        self.status = 101
        self.headers = {"Upgrade": "websocket", "Connection": "upgrade"}

    async def connect(self):
        self.connected = True

    async def receive(self):
        if not self.frames:
            return None
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame

    async def send_text(self, text):
        self.sent.append(text)

    async def close(self):
        self.closed = True

    @property
    def acked_ids(self) -> list[str]:
        return [json.loads(s)["envelope_id"] for s in self.sent]


class FakeProvider(ConnectionProvider):
    def __init__(self, url="wss://wss-primary.slack.com/link/?ticket=test"):
        self.url = url
        self.calls = 0

    async def open(self) -> str:
        self.calls += 1
        return self.url


class FakePoster(ChatPoster):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.posts: list[tuple[str, str, str | None]] = []

    async def post(self, channel, text, thread_ts=None):
        if self.fail:
            raise PostError("chat.postMessage failed: channel_not_found")
        self.posts.append((channel, text, thread_ts))
        return "1700000000.000200"


def envelope_frame(envelope_id: str, event: dict, **overrides) -> str:
    """Build an events_api Socket Mode frame around an event."""
    frame = {
        "envelope_id": envelope_id,
        "type": "events_api",
        "payload": {
            "token": "verification-token",
            "team_id": "T123",
            "type": "event_callback",
            "event_id": "Ev123",
            "event_time": 1700000000,
            "event": event,
        },
        "accepts_response_payload": False,
        "retry_attempt": 0,
        "retry_reason": "",
    }
    frame.update(overrides)
    return json.dumps(frame)


def message_event(text: str, **fields) -> dict:
    event = {
        "client_msg_id": "c0ffee",
        "type": "message",
        "text": text,
        "user": "U123",
        "ts": "1700000000.000100",
        "team": "T123",
        "channel": "C123",
        "event_ts": "1700000000.000100",
        "channel_type": "channel",
    }
    event.update(fields)
    return event


@pytest.fixture
def registry():
    return registry_from_mapping({
        "executors": {
            "echo": "echo {{payload}}",
            "fail": "echo {{payload}} >&2; exit 3",
        }
    })


@pytest.fixture
def fake_poster():
    return FakePoster()


@pytest.fixture
def fake_provider():
    return FakeProvider()
