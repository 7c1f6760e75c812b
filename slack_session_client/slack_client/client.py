"""
Slack Socket Mode implementation of the session client.

This module connects to Slack over Socket Mode with an app-level token and
translates WebSocket lifecycle callbacks into session client events. Each
``connect`` makes exactly one attempt, and a lost connection is reported
rather than re-established: the session manager decides when to reconnect.
"""

import asyncio
import json
from functools import partial
from typing import Any, Awaitable, Callable, Optional, Set

import aiohttp
from aiohttp import WSMessage
from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode.aiohttp import SocketModeClient

from ..models import Credential
from ..exceptions import SessionConnectError
from ..interfaces import SessionClient
from ..utils import get_logger, mask_token


APP_TOKEN_PREFIX = "xapp-"


class SingleAttemptSocketModeClient(SocketModeClient):
    """
    Socket Mode client that opens one WebSocket per ``connect`` call.

    The SDK routes Slack's ``disconnect`` request, CLOSE frames and its
    health monitor (closed or stale socket) through
    ``connect_to_new_endpoint``. Here that hook calls ``on_lost`` instead
    of opening a new connection.
    """

    on_lost: Optional[Callable[[], Awaitable[None]]] = None

    async def connect(self) -> None:
        """
        Open the WebSocket once.

        Raises:
            SlackApiError: If Slack refuses to issue a WebSocket URL
            aiohttp.ClientError: If the WebSocket cannot be opened
        """
        if self.wss_uri is None:
            self.wss_uri = await self.issue_new_wss_url()

        self.current_session = await self.aiohttp_client_session.ws_connect(
            self.wss_uri,
            autoping=False,
            heartbeat=self.ping_interval,
            proxy=self.proxy,
            ssl=self.web_client.ssl if self.web_client.ssl is not None else True,
        )
        self.stale = False
        self.current_session_monitor = asyncio.ensure_future(self.monitor_current_session())
        self.message_receiver = asyncio.ensure_future(self.receive_messages())

    async def connect_to_new_endpoint(self, force: bool = False) -> None:
        if self.closed or self.on_lost is None:
            return
        await self.on_lost()


class SlackSessionClient(SessionClient):
    """
    Session client backed by a Slack Socket Mode WebSocket.

    Emits ``ready`` when Slack sends its ``hello`` frame, ``error`` on
    WebSocket errors and ``disconnected`` once per lost connection. Events
    from a socket that has since been replaced are dropped.
    """

    def __init__(self, ping_interval: float = 5):
        """
        Initialize the Slack session client.

        Args:
            ping_interval: Seconds between Socket Mode keepalive pings
        """
        super().__init__()
        self.logger = get_logger(__name__)
        self.ping_interval = ping_interval

        self.socket_client: Optional[SingleAttemptSocketModeClient] = None
        self.is_connected = False
        self._pending_closes: Set[asyncio.Future] = set()

    async def connect(self, credential: Credential) -> None:
        """
        Open a Socket Mode connection with the credential's app token.

        Args:
            credential: Credential holding a Slack app-level token

        Raises:
            SessionConnectError: If the token is invalid or the connection fails
        """
        token = credential.token
        if not token or not token.startswith(APP_TOKEN_PREFIX):
            raise SessionConnectError(
                "Invalid Slack app token",
                f"token must start with '{APP_TOKEN_PREFIX}'"
            )

        await self._close_socket()

        self.logger.info(f"Connecting to Slack with {mask_token(token)}...")
        socket = SingleAttemptSocketModeClient(app_token=token, ping_interval=self.ping_interval)
        socket.on_message_listeners.append(partial(self._on_message, socket))
        socket.on_error_listeners.append(partial(self._on_error, socket))
        socket.on_close_listeners.append(partial(self._on_close, socket))
        socket.on_lost = partial(self._lost, socket)
        self.socket_client = socket

        try:
            socket.wss_uri = await socket.issue_new_wss_url()
            await socket.connect()
        except SlackApiError as e:
            await self._close_socket()
            raise SessionConnectError("Slack rejected the app token", str(e))
        except Exception as e:
            await self._close_socket()
            raise SessionConnectError("Failed to connect to Slack", str(e))

        self.is_connected = True
        self.logger.info("Socket Mode connection established")

    async def disconnect(self) -> None:
        """Close the Socket Mode connection without reporting a disconnect."""
        await self._close_socket()
        if self._pending_closes:
            await asyncio.gather(*list(self._pending_closes))
        self.logger.info("Disconnected from Slack")

    async def _close_socket(self) -> None:
        socket = self.socket_client
        if socket is None:
            return

        # Detach first so events from the closing socket are ignored
        self.socket_client = None
        self.is_connected = False
        await self._close(socket)

    async def _close(self, socket: SingleAttemptSocketModeClient) -> None:
        try:
            await socket.close()
        except Exception as e:
            self.logger.error(f"Error closing Socket Mode client: {e}")

    async def _on_message(self, socket: SingleAttemptSocketModeClient, message: WSMessage) -> None:
        if socket is not self.socket_client:
            return

        try:
            payload = json.loads(message.data)
        except (TypeError, ValueError):
            return

        message_type = payload.get("type") if isinstance(payload, dict) else None
        if message_type == "hello":
            self.logger.debug("Received hello from Slack")
            await self.emit_ready()
        elif message_type == "disconnect":
            self.logger.info(f"Slack requested disconnect: {payload.get('reason', 'unknown')}")
            await self._lost(socket)

    async def _on_error(self, socket: SingleAttemptSocketModeClient, message: WSMessage) -> None:
        if socket is not self.socket_client:
            return

        error: Any = message.data if message.data is not None else message
        await self.emit_error(error)

        # Heartbeat timeouts and transport failures leave the socket dead
        session = socket.current_session
        if isinstance(message.data, aiohttp.ClientError) or session is None or session.closed:
            self.logger.warning(f"Socket Mode connection failed: {error}")
            await self._lost(socket)

    async def _on_close(self, socket: SingleAttemptSocketModeClient, message: WSMessage) -> None:
        self.logger.debug(f"Socket Mode connection closed: {message.data}")
        await self._lost(socket)

    async def _lost(self, socket: SingleAttemptSocketModeClient) -> None:
        # One disconnected event per established connection
        if socket is not self.socket_client or not self.is_connected:
            return

        self.socket_client = None
        self.is_connected = False
        await self.emit_disconnected()

        # Closing cancels this socket's SDK tasks, which may include the caller
        task = asyncio.ensure_future(self._close(socket))
        self._pending_closes.add(task)
        task.add_done_callback(self._pending_closes.discard)
