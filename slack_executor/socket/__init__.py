"""Socket Mode connection handling."""

from .dispatcher import ConnectionState, Dispatcher
from .events import parse_frame, classify_event, extract_envelope_id, build_ack
from .transport import WebSocketTransport

__all__ = [
    "ConnectionState",
    "Dispatcher",
    "parse_frame",
    "classify_event",
    "extract_envelope_id",
    "build_ack",
    "WebSocketTransport",
]
