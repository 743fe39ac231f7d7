"""Per-connection session handling.

A session reacts to four events on a client channel:
- connect: register and greet
- message: decode JSON and apply ``selectEffect``
- close: unregister
- error: log only; the close that follows performs cleanup
"""

import json
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from cuesync.core.types import CueState
from .connection_registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)

SELECT_EFFECT_ACTION = "selectEffect"


class SessionHandler:
    """Drives the lifecycle of client connections.

    Args:
        registry: Registry that new connections are added to.
        state: Shared cue state updated by ``selectEffect`` messages.
        welcome_message: Greeting sent once on connect.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        state: CueState,
        welcome_message: str,
    ):
        self.registry = registry
        self.state = state
        self.welcome_message = welcome_message

    async def run(self, websocket: WebSocket) -> None:
        """Serve one client until it disconnects."""
        await websocket.accept()
        connection = Connection(websocket)
        await self.on_connect(connection)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None and message.get("bytes") is not None:
                    raw = message["bytes"].decode("utf-8", errors="replace")
                if raw is not None:
                    self.on_message(connection, raw)
        except WebSocketDisconnect:
            pass
        except Exception as exc:  # noqa: BLE001
            self.on_error(connection, exc)
        finally:
            self.on_close(connection)

    async def on_connect(self, connection: Connection) -> None:
        logger.info("Client connected: %s", connection.id)
        self.registry.add(connection)
        try:
            await connection.send_text(
                json.dumps(
                    {"type": "welcome", "message": self.welcome_message},
                    ensure_ascii=False,
                )
            )
        except Exception as exc:  # noqa: BLE001
            self.on_error(connection, exc)

    def on_message(self, connection: Connection, raw: str) -> None:
        """Apply a raw client message to the shared state.

        Undecodable input is logged and dropped; nothing is sent back and
        the connection stays open.
        """
        logger.info("Message from %s: %s", connection.id, raw)
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            logger.error("Failed to parse message from %s: %s", connection.id, exc)
            return

        if not isinstance(data, dict):
            return

        if data.get("action") == SELECT_EFFECT_ACTION:
            effect_id = data.get("effectId")
            self.state.select_effect(effect_id)
            logger.info("Selected effect: %r", effect_id)

    def on_close(self, connection: Connection) -> None:
        connection.mark_closed()
        self.registry.remove(connection)
        logger.info("Client disconnected: %s", connection.id)

    def on_error(self, connection: Connection, error: Optional[BaseException]) -> None:
        logger.error("WebSocket error on %s: %s", connection.id, error)
