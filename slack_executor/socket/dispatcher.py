"""Socket Mode event dispatcher.

Reads frames off the websocket one at a time, acknowledges every envelope,
and routes chat messages to the parse -> execute -> reply path.

Execution runs on a bounded pool of asyncio workers so a slow command doesn't
hold up acknowledgements. Only the read loop ever writes to the socket;
workers report back through the ChatPoster. With `workers=0` every message is
handled inline before its acknowledgement is sent.
"""

import asyncio
from enum import Enum
from typing import Callable

from slack_executor.commands.executor import run
from slack_executor.commands.parser import extract_request
from slack_executor.commands.registry import CommandRegistry
from slack_executor.commands.reply import format_error, format_result
from slack_executor.commands.threading import get_reply_target
from slack_executor.errors import (
    AuthError,
    FrameParseError,
    NoCodeBlock,
    ParseError,
    PostError,
    ResolutionError,
    TemplateError,
    TransportError,
)
from slack_executor.slack import ChatPoster, ConnectionProvider
from slack_executor.socket.events import (
    ChannelMessageEvent,
    DisconnectFrame,
    EnvelopeFrame,
    HelloFrame,
    MentionEvent,
    MessageDeletedEvent,
    ReactionEvent,
    ThreadReplyEvent,
    build_ack,
    extract_envelope_id,
    parse_frame,
    unescape_slack_text,
)
from slack_executor.socket.transport import WebSocketTransport


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


CommandEvent = MentionEvent | ChannelMessageEvent


class Dispatcher:
    """Owns one Socket Mode connection and everything that arrives on it."""

    def __init__(
        self,
        registry: CommandRegistry,
        provider: ConnectionProvider,
        poster: ChatPoster,
        *,
        transport_factory: Callable[[str], WebSocketTransport] = WebSocketTransport,
        workers: int = 4,
        timeout: float | None = None,
        allowed_users: frozenset[str] = frozenset(),
        debug_frames: bool = False,
    ):
        self.registry = registry
        self.provider = provider
        self.poster = poster
        self.transport_factory = transport_factory
        self.workers = workers
        self.timeout = timeout
        self.allowed_users = allowed_users
        self.debug_frames = debug_frames

        self.state = ConnectionState.DISCONNECTED
        self.url: str | None = None
        self.transport = None
        self._pool = asyncio.Semaphore(workers) if workers > 0 else None
        self._tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self):
        """Get an endpoint from the provider and open the websocket."""
        self.state = ConnectionState.CONNECTING
        print("· [WS] Requesting Socket Mode endpoint...", flush=True)
        try:
            self.url = await self.provider.open()
            transport = self.transport_factory(self.url)
            await transport.connect()
        except (AuthError, TransportError) as e:
            self.state = ConnectionState.CLOSED
            print(f"❌ [WS] Connection failed: {e}", flush=True)
            raise

        self.transport = transport
        self.state = ConnectionState.CONNECTED
        print("✅ [WS] Connected to the server", flush=True)
        status = getattr(transport, "status", None)
        if status is not None:
            print(f"   Response HTTP code: {status}", flush=True)
        headers = getattr(transport, "headers", None) or {}
        if headers:
            print("   Response contains the following headers:", flush=True)
            for name in headers:
                print(f"   * {name}", flush=True)

    async def run(self):
        """Connect (if needed) and dispatch frames until the socket closes.

        A clean close from the server returns normally; a hard read error
        raises TransportError. There is no reconnect here, restarting is left
        to whatever supervises the process.
        """
        if self.transport is None:
            await self.connect()

        try:
            while True:
                raw = await self.transport.receive()
                if raw is None:
                    print("· [WS] Server closed the connection", flush=True)
                    break
                await self.handle_frame(raw)
        except TransportError as e:
            print(f"❌ [WS] Transport error: {e}", flush=True)
            raise
        finally:
            self.state = ConnectionState.CLOSED
            await self.drain()
            await self.transport.close()

    async def drain(self):
        """Wait for all in-flight executions to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Frame handling
    # -------------------------------------------------------------------------

    async def handle_frame(self, raw: str):
        """Classify one raw frame and act on it.

        Only a failure to send an acknowledgement propagates; everything else
        is logged so one bad frame can't end the session.
        """
        if self.debug_frames:
            print(f"· [WS] Raw frame: {raw}", flush=True)

        previous = self.state
        self.state = ConnectionState.DISPATCHING
        try:
            try:
                frame = parse_frame(raw)
            except FrameParseError as e:
                await self._handle_unparseable(raw, e)
                return

            if isinstance(frame, HelloFrame):
                print(f"· [WS] Hello (connections: {frame.num_connections})", flush=True)
            elif isinstance(frame, DisconnectFrame):
                print(f"⚠️ [WS] Disconnect requested by server (reason: {frame.reason or 'unknown'})", flush=True)
            else:
                await self._handle_envelope(frame)
        finally:
            if self.state == ConnectionState.DISPATCHING:
                self.state = previous

    async def _handle_unparseable(self, raw: str, error: FrameParseError):
        print(f"⚠️ [WS] Unexpected frame format ({error}). Raw frame: {raw[:200]}", flush=True)
        envelope_id = extract_envelope_id(raw)
        if envelope_id is None:
            print("  → No envelope_id found, nothing to ack", flush=True)
            return
        await self.acknowledge(envelope_id)

    async def _handle_envelope(self, frame: EnvelopeFrame):
        event = frame.event
        envelope_id = frame.envelope_id
        if frame.retry_attempt:
            print(f"· [WS] Redelivery #{frame.retry_attempt} of [{envelope_id}] ({frame.retry_reason})", flush=True)

        if isinstance(event, (MentionEvent, ChannelMessageEvent)):
            print(f"▶ [WS] Received channel message [{envelope_id}]: {event.text[:60]!r}", flush=True)
            if self._pool is None:
                await self._process_safely(event)
            else:
                await self._submit(event)
        elif isinstance(event, ReactionEvent):
            print(f"· [WS] Received reaction update [{envelope_id}]: {event.event_type} - {event.reaction}", flush=True)
        elif isinstance(event, ThreadReplyEvent):
            pass
        elif isinstance(event, MessageDeletedEvent):
            print(f"· [WS] Message deleted [{envelope_id}] in {event.channel}", flush=True)
        else:
            label = f"{frame.frame_type}/{event.event_type or '?'}"
            print(f"· [WS] Unhandled event [{envelope_id}]: {label} → ignored", flush=True)

        await self.acknowledge(envelope_id)

    async def acknowledge(self, envelope_id: str):
        """Send the ack frame for an envelope. Safe to call more than once."""
        await self.transport.send_text(build_ack(envelope_id))
        print(f"  → Acked [{envelope_id}]", flush=True)

    # -------------------------------------------------------------------------
    # Command execution
    # -------------------------------------------------------------------------

    async def _submit(self, event: CommandEvent):
        # Blocks the read loop only while every worker is busy
        await self._pool.acquire()
        task = asyncio.create_task(self._worker(event))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            import traceback
            print(f"❌ [EX] Worker crashed: {error!r}", flush=True)
            traceback.print_exception(type(error), error, error.__traceback__)

    async def _worker(self, event: CommandEvent):
        try:
            await self._process_safely(event)
        finally:
            self._pool.release()

    async def _process_safely(self, event: CommandEvent):
        thread_ts = get_reply_target(event.ts, getattr(event, "thread_ts", None))
        try:
            await self.process_message(event)
        except Exception as e:
            print(f"❌ [EX] Message handling failed with error: {e}", flush=True)
            import traceback
            traceback.print_exc()
            await self._reply(event.channel, "❌ _Command handling failed. Please check the bot logs for details._", thread_ts)

    async def process_message(self, event: CommandEvent):
        """Parse, execute and reply to one chat message."""
        channel = event.channel
        thread_ts = get_reply_target(event.ts, getattr(event, "thread_ts", None))

        if self.allowed_users and event.user not in self.allowed_users:
            print(f"  → User {event.user} is not allowed to run commands", flush=True)
            await self._reply(channel, "⛔ You are not allowed to run commands on this bot.", thread_ts)
            return

        try:
            request = extract_request(unescape_slack_text(event.text))
        except NoCodeBlock:
            print("  → No code block, ignored", flush=True)
            return
        except ParseError as e:
            print(f"  → Parse error: {e}", flush=True)
            await self._reply(channel, format_error(e), thread_ts)
            return

        try:
            result = await run(request, self.registry, timeout=self.timeout)
        except (ResolutionError, TemplateError) as e:
            print(f"  → {e}", flush=True)
            await self._reply(channel, format_error(e, self.registry), thread_ts)
            return

        await self._reply(channel, format_result(request.name, result), thread_ts)

    async def _reply(self, channel: str, text: str, thread_ts: str | None) -> bool:
        try:
            await self.poster.post(channel, text, thread_ts=thread_ts)
        except PostError as e:
            print(f"⚠️ [EX] Failed to post reply to {channel}: {e}", flush=True)
            return False
        except Exception as e:
            print(f"⚠️ [EX] Unexpected error posting reply to {channel}: {e!r}", flush=True)
            return False
        return True
