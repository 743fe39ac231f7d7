"""WebSocket connection tracking and broadcast."""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Callable, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Readiness of a client channel."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    """One live client channel.

    The readiness state is derived from the transport: a connection is
    ``OPEN`` only while both sides of the WebSocket are connected and it
    has not been marked closed.
    """

    def __init__(self, websocket: WebSocket):
        self.id = str(uuid.uuid4())
        self.websocket = websocket
        self._closed = False

    @property
    def state(self) -> ConnectionState:
        if self._closed:
            return ConnectionState.CLOSED
        client_state = self.websocket.client_state
        app_state = self.websocket.application_state
        if WebSocketState.DISCONNECTED in (client_state, app_state):
            return ConnectionState.CLOSED
        if client_state == WebSocketState.CONNECTED and app_state == WebSocketState.CONNECTED:
            return ConnectionState.OPEN
        return ConnectionState.CONNECTING

    def mark_closed(self) -> None:
        self._closed = True

    async def send_text(self, text: str) -> None:
        await self.websocket.send_text(text)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, state={self.state.value})"


class ConnectionRegistry:
    """Tracks connected clients and supports broadcast.

    All access happens on the event loop thread, so no locking is used.

    Args:
        send_timeout: Seconds a single send may take before it is
            abandoned. ``None`` waits indefinitely.
    """

    def __init__(self, send_timeout: Optional[float] = None):
        self.send_timeout = send_timeout
        self._connections: Dict[str, Connection] = {}

    @property
    def count(self) -> int:
        """Number of registered connections."""
        return len(self._connections)

    def add(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def remove(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)

    def __contains__(self, connection: Connection) -> bool:
        return connection.id in self._connections

    def for_each(self, visitor: Callable[[Connection], None]) -> None:
        """Call ``visitor`` on every registered connection that is open."""
        # Snapshot so visitors may add/remove while iterating
        for connection in list(self._connections.values()):
            if connection.state == ConnectionState.OPEN:
                visitor(connection)

    async def broadcast_text(self, text: str) -> int:
        """Send the same text to every open connection.

        Sends run concurrently; a failed send is logged and does not affect
        the other recipients.

        Returns:
            Number of connections the message was handed to.
        """
        targets: List[Connection] = []
        self.for_each(targets.append)
        if not targets:
            return 0

        await asyncio.gather(*(self._send(conn, text) for conn in targets))
        return len(targets)

    async def _send(self, connection: Connection, text: str) -> None:
        try:
            await asyncio.wait_for(connection.send_text(text), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "WebSocket send to %s timed out after %ss", connection.id, self.send_timeout
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("WebSocket send to %s failed: %s", connection.id, exc)
