"""Websocket transport for the Socket Mode connection (aiohttp)."""

import aiohttp

from slack_executor.errors import TransportError


class WebSocketTransport:
    """Thin wrapper over an aiohttp client websocket.

    `receive()` hides keep-alive frames (aiohttp answers pings itself) and
    returns the next text frame, or None once the server sends a close frame.
    A connection dropped without one raises TransportError.
    """

    def __init__(self, url: str, heartbeat: float | None = None):
        self.url = url
        self.heartbeat = heartbeat
        self.status: int | None = None
        self.headers: dict[str, str] = {}
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None

    async def connect(self):
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(self.url, autoping=True, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, OSError) as e:
            await self._session.close()
            self._session = None
            raise TransportError(f"Websocket handshake failed: {e}") from e

        response = getattr(self._ws, "_response", None)
        if response is not None:
            self.status = response.status
            self.headers = dict(response.headers)

    async def receive(self) -> str | None:
        if self._ws is None:
            raise TransportError("Transport is not connected")

        while True:
            try:
                msg = await self._ws.receive()
            except (aiohttp.ClientError, OSError) as e:
                raise TransportError(f"Websocket read failed: {e}") from e

            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data
            if msg.type == aiohttp.WSMsgType.BINARY:
                return msg.data.decode("utf-8", errors="replace")
            if msg.type in (aiohttp.WSMsgType.PING, aiohttp.WSMsgType.PONG):
                continue
            if msg.type == aiohttp.WSMsgType.CLOSE:
                return None
            if msg.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                # No close frame from the server: the connection was lost
                raise TransportError(
                    f"Websocket connection lost (close code {self._ws.close_code}, error: {self._ws.exception()!r})"
                )
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(f"Websocket error: {self._ws.exception()}")

    async def send_text(self, text: str):
        if self._ws is None or self._ws.closed:
            raise TransportError("Cannot send on a closed websocket")
        try:
            await self._ws.send_str(text)
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise TransportError(f"Websocket send failed: {e}") from e

    async def close(self):
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._session is not None:
            await self._session.close()
        self._ws = None
        self._session = None
