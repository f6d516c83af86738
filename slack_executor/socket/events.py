"""Socket Mode wire frames and the Events API payloads they carry.

Frames are parsed into a closed set of types. Unknown event shapes map to
UnrecognizedEvent instead of failing, and every type keeps the fields it
doesn't model in `extra` so nothing is dropped.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Union

from slack_executor.errors import FrameParseError


# -----------------------------------------------------------------------------
# Payload events
# -----------------------------------------------------------------------------

@dataclass
class MentionEvent:
    """`app_mention` - the bot was @-mentioned."""
    text: str
    user: str = ""
    channel: str = ""
    ts: str = ""
    thread_ts: str | None = None
    extra: dict = field(default_factory=dict)


@dataclass
class ChannelMessageEvent:
    """Top-level `message` posted by a user."""
    text: str
    user: str = ""
    channel: str = ""
    ts: str = ""
    channel_type: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class ThreadReplyEvent:
    """`message` posted inside a thread (including our own replies)."""
    text: str
    user: str = ""
    channel: str = ""
    ts: str = ""
    thread_ts: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class MessageDeletedEvent:
    """`message` with subtype `message_deleted`."""
    channel: str = ""
    deleted_ts: str = ""
    previous_message: dict = field(default_factory=dict)
    extra: dict = field(default_factory=dict)


@dataclass
class ReactionEvent:
    """`reaction_added` / `reaction_removed`."""
    event_type: str
    reaction: str = ""
    user: str = ""
    item: dict = field(default_factory=dict)
    item_user: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class UnrecognizedEvent:
    """Anything else. Kept whole so it can be logged."""
    event_type: str = ""
    raw: dict = field(default_factory=dict)


PayloadEvent = Union[
    MentionEvent,
    ChannelMessageEvent,
    ThreadReplyEvent,
    MessageDeletedEvent,
    ReactionEvent,
    UnrecognizedEvent,
]

REACTION_TYPES = {"reaction_added", "reaction_removed"}


def _pick(data: dict, *names: str) -> tuple[dict, dict]:
    """Split `data` into (modelled fields, everything else)."""
    known = {name: data[name] for name in names if name in data}
    extra = {k: v for k, v in data.items() if k not in names and k != "type"}
    return known, extra


def classify_event(event) -> PayloadEvent:
    """Map an Events API `event` object to one of the payload event types."""
    if not isinstance(event, dict):
        return UnrecognizedEvent(raw={"value": event})

    event_type = event.get("type") or ""

    if event_type == "app_mention":
        known, extra = _pick(event, "text", "user", "channel", "ts", "thread_ts")
        return MentionEvent(text=known.pop("text", "") or "", **known, extra=extra)

    if event_type in REACTION_TYPES:
        known, extra = _pick(event, "reaction", "user", "item", "item_user")
        return ReactionEvent(event_type=event_type, **known, extra=extra)

    if event_type == "message":
        subtype = event.get("subtype")
        if subtype == "message_deleted":
            known, extra = _pick(event, "channel", "deleted_ts", "previous_message")
            return MessageDeletedEvent(**known, extra=extra)

        # Edits, joins, bot posts etc. - never treat these as commands
        if subtype or event.get("bot_id"):
            return UnrecognizedEvent(event_type=event_type, raw=event)

        thread_ts = event.get("thread_ts")
        if thread_ts and thread_ts != event.get("ts"):
            known, extra = _pick(event, "text", "user", "channel", "ts", "thread_ts")
            return ThreadReplyEvent(text=known.pop("text", "") or "", **known, extra=extra)

        known, extra = _pick(event, "text", "user", "channel", "ts", "channel_type")
        return ChannelMessageEvent(text=known.pop("text", "") or "", **known, extra=extra)

    return UnrecognizedEvent(event_type=event_type, raw=event)


# -----------------------------------------------------------------------------
# Frames
# -----------------------------------------------------------------------------

@dataclass
class HelloFrame:
    num_connections: int = 0
    connection_info: dict = field(default_factory=dict)
    debug_info: dict = field(default_factory=dict)
    extra: dict = field(default_factory=dict)


@dataclass
class DisconnectFrame:
    reason: str = ""
    debug_info: dict = field(default_factory=dict)
    extra: dict = field(default_factory=dict)


@dataclass
class EnvelopeFrame:
    """A frame that must be acknowledged (events_api, slash_commands, ...)."""
    envelope_id: str
    frame_type: str
    payload: dict
    event: PayloadEvent
    accepts_response_payload: bool = False
    retry_attempt: int = 0
    retry_reason: str = ""
    extra: dict = field(default_factory=dict)


Frame = Union[HelloFrame, DisconnectFrame, EnvelopeFrame]


def parse_frame(raw: str) -> Frame:
    """Parse a raw text frame.

    Raises:
        FrameParseError: the frame is not JSON or doesn't match a known shape
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise FrameParseError(f"Frame is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise FrameParseError("Frame is not a JSON object")

    frame_type = data.get("type")
    if not isinstance(frame_type, str):
        raise FrameParseError("Frame has no `type`")

    if "envelope_id" in data:
        envelope_id = data["envelope_id"]
        if not isinstance(envelope_id, str) or not envelope_id:
            raise FrameParseError("Frame has an invalid `envelope_id`")
        payload = data.get("payload", {})
        if not isinstance(payload, dict):
            raise FrameParseError("Frame `payload` is not an object")
        known, extra = _pick(
            data, "envelope_id", "payload", "accepts_response_payload", "retry_attempt", "retry_reason",
        )
        return EnvelopeFrame(
            envelope_id=envelope_id,
            frame_type=frame_type,
            payload=payload,
            event=classify_event(payload.get("event")),
            accepts_response_payload=bool(known.get("accepts_response_payload", False)),
            retry_attempt=known.get("retry_attempt") or 0,
            retry_reason=known.get("retry_reason") or "",
            extra=extra,
        )

    if frame_type == "hello":
        known, extra = _pick(data, "num_connections", "connection_info", "debug_info")
        return HelloFrame(**known, extra=extra)

    if frame_type == "disconnect":
        known, extra = _pick(data, "reason", "debug_info")
        return DisconnectFrame(**known, extra=extra)

    raise FrameParseError(f"Unknown frame type: {frame_type!r}")


_ENVELOPE_ID_RE = re.compile(r'"envelope_id"\s*:\s*"([^"]+)"')


def extract_envelope_id(raw: str) -> str | None:
    """Best-effort envelope_id lookup for frames that failed `parse_frame`.

    Tries a generic JSON lookup first, then falls back to scanning the raw
    text (for frames that aren't even valid JSON).
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        data = None

    if isinstance(data, dict):
        envelope_id = data.get("envelope_id")
        if isinstance(envelope_id, str) and envelope_id:
            return envelope_id

    if isinstance(raw, str):
        match = _ENVELOPE_ID_RE.search(raw)
        if match:
            return match.group(1)
    return None


def build_ack(envelope_id: str) -> str:
    """Build the acknowledgement frame for an envelope."""
    return json.dumps({"envelope_id": envelope_id})


def unescape_slack_text(text: str) -> str:
    """Undo Slack's control-character escaping in message text."""
    # &amp; last so "&amp;lt;" becomes "&lt;" rather than "<"
    return text.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")
