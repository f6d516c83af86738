"""Slack Web API calls: opening a Socket Mode connection and posting replies."""

import asyncio
from abc import ABC, abstractmethod

import aiohttp
import httpx
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from slack_executor.errors import AuthError, PostError


CONNECTIONS_OPEN_URL = "https://slack.com/api/apps.connections.open"


class ConnectionProvider(ABC):
    """Hands out a websocket URL for the event stream."""

    @abstractmethod
    async def open(self) -> str:
        """Return a fresh websocket URL.

        Raises:
            AuthError: the credential was rejected or the call failed
        """
        pass


class ChatPoster(ABC):
    """Posts text replies into a channel or thread."""

    @abstractmethod
    async def post(self, channel: str, text: str, thread_ts: str | None = None) -> str | None:
        """Post a message. Raises PostError on failure."""
        pass


class SlackConnectionProvider(ConnectionProvider):
    """Requests a Socket Mode websocket URL using the app-level token."""

    def __init__(self, app_token: str, url: str = CONNECTIONS_OPEN_URL):
        self.app_token = app_token
        self.url = url

    async def open(self) -> str:
        if not self.app_token:
            raise AuthError("SLACK_APP_TOKEN is not set")

        headers = {
            "Authorization": f"Bearer {self.app_token}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.url, headers=headers, timeout=30)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise AuthError(f"apps.connections.open request failed: {e}") from e

        if not data.get("ok") or not data.get("url"):
            raise AuthError(f"apps.connections.open failed: {data.get('error', 'unknown error')}")
        return data["url"]


class SlackPoster(ChatPoster):
    """Posts messages with the bot token."""

    def __init__(self, bot_token: str, client: AsyncWebClient | None = None):
        self._client = client or AsyncWebClient(token=bot_token)

    async def post(self, channel: str, text: str, thread_ts: str | None = None) -> str | None:
        """Post a message, optionally as a thread reply. Returns the message ts."""
        try:
            response = await self._client.chat_postMessage(
                channel=channel,
                text=text,
                thread_ts=thread_ts,
            )
        except SlackApiError as e:
            raise PostError(f"chat.postMessage failed: {e.response['error']}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PostError(f"chat.postMessage failed: {e!r}") from e
        return response.get("ts")
