"""Tests for per-connection session handling."""

import asyncio
import json
import logging
from unittest.mock import AsyncMock

import pytest
from fastapi import WebSocketDisconnect

from cuesync.api.connection_registry import Connection, ConnectionState
from cuesync.api.session import SessionHandler


@pytest.fixture
def handler(registry, cue_state):
    """Session handler over a fresh registry and state."""
    return SessionHandler(registry=registry, state=cue_state, welcome_message="welcome!")


# ============================================================
# Connect / Close Tests
# ============================================================

class TestConnectLifecycle:
    """Tests for connect and close reactions."""

    def test_connect_registers_and_greets(self, handler, registry, open_connection):
        asyncio.run(handler.on_connect(open_connection))

        assert open_connection in registry
        sent = open_connection.websocket.send_text.await_args.args[0]
        assert json.loads(sent) == {"type": "welcome", "message": "welcome!"}

    def test_welcome_keeps_non_ascii(self, registry, cue_state, open_connection):
        handler = SessionHandler(registry, cue_state, "AR同期サーバーへようこそ！")

        asyncio.run(handler.on_connect(open_connection))

        sent = open_connection.websocket.send_text.await_args.args[0]
        assert "AR同期サーバーへようこそ！" in sent

    def test_failed_welcome_does_not_raise(self, handler, registry, open_connection):
        open_connection.websocket.send_text.side_effect = RuntimeError("gone")

        asyncio.run(handler.on_connect(open_connection))

        assert open_connection in registry

    def test_close_unregisters(self, handler, registry, open_connection):
        registry.add(open_connection)

        handler.on_close(open_connection)

        assert open_connection not in registry
        assert open_connection.state == ConnectionState.CLOSED

    def test_error_only_logs(self, handler, registry, open_connection, caplog):
        registry.add(open_connection)

        with caplog.at_level(logging.ERROR):
            handler.on_error(open_connection, OSError("reset by peer"))

        assert open_connection in registry
        assert "reset by peer" in caplog.text


# ============================================================
# Message Tests
# ============================================================

class TestOnMessage:
    """Tests for message decoding and effect selection."""

    def test_select_effect(self, handler, cue_state, open_connection):
        handler.on_message(open_connection, '{"action": "selectEffect", "effectId": 7}')

        assert cue_state.effect_id == 7

    def test_last_writer_wins(self, handler, cue_state, websocket_factory):
        a = Connection(websocket_factory())
        b = Connection(websocket_factory())

        handler.on_message(a, '{"action": "selectEffect", "effectId": 3}')
        handler.on_message(b, '{"action": "selectEffect", "effectId": 9}')

        assert cue_state.effect_id == 9

    def test_effect_id_not_validated(self, handler, cue_state, open_connection):
        handler.on_message(open_connection, '{"action": "selectEffect", "effectId": "fireworks"}')

        assert cue_state.effect_id == "fireworks"

    def test_missing_effect_id_becomes_none(self, handler, cue_state, open_connection):
        handler.on_message(open_connection, '{"action": "selectEffect"}')

        assert cue_state.effect_id is None

    @pytest.mark.parametrize(
        "raw",
        ["not json {", "[" * 100000, '{"a":' * 100000],
        ids=["syntax-error", "deeply-nested-array", "deeply-nested-object"],
    )
    def test_malformed_json_dropped(self, handler, cue_state, open_connection, caplog, raw):
        cue_state.select_effect(4)

        with caplog.at_level(logging.ERROR):
            handler.on_message(open_connection, raw)

        assert cue_state.effect_id == 4
        assert open_connection.state == ConnectionState.OPEN
        open_connection.websocket.send_text.assert_not_awaited()
        open_connection.websocket.close.assert_not_awaited()
        assert "Failed to parse" in caplog.text

    @pytest.mark.parametrize(
        "raw",
        [
            '{"action": "reset", "effectId": 5}',
            '{"effectId": 5}',
            '[{"action": "selectEffect", "effectId": 5}]',
            "5",
            "null",
        ],
    )
    def test_other_messages_ignored(self, handler, cue_state, open_connection, raw):
        handler.on_message(open_connection, raw)

        assert cue_state.effect_id == 0


# ============================================================
# Run Loop Tests
# ============================================================

class TestRun:
    """Tests for the full session loop over a WebSocket double."""

    def test_run_processes_messages_until_disconnect(
        self, handler, registry, cue_state, websocket_factory
    ):
        ws = websocket_factory()
        ws.receive = AsyncMock(side_effect=[
            {"type": "websocket.receive", "text": "garbage"},
            {"type": "websocket.receive", "bytes": b'{"action":"selectEffect","effectId":2}'},
            {"type": "websocket.disconnect", "code": 1000},
        ])

        asyncio.run(handler.run(ws))

        ws.accept.assert_awaited_once()
        assert cue_state.effect_id == 2
        assert registry.count == 0

    def test_run_survives_deeply_nested_frame(
        self, handler, registry, cue_state, websocket_factory
    ):
        """A frame that exhausts the decoder is dropped and the session goes on."""
        ws = websocket_factory()
        seen = []
        frames = [
            {"type": "websocket.receive", "text": "[" * 100000},
            {"type": "websocket.receive", "text": '{"action":"selectEffect","effectId":8}'},
            {"type": "websocket.disconnect", "code": 1000},
        ]

        async def receive():
            seen.append(len(seen) + 1)
            return frames[len(seen) - 1]

        ws.receive = receive

        asyncio.run(handler.run(ws))

        assert seen == [1, 2, 3]
        assert cue_state.effect_id == 8
        assert registry.count == 0

    def test_run_removes_after_transport_error(
        self, handler, registry, websocket_factory, caplog
    ):
        ws = websocket_factory()
        ws.receive = AsyncMock(side_effect=ConnectionResetError("boom"))

        with caplog.at_level(logging.ERROR):
            asyncio.run(handler.run(ws))

        assert registry.count == 0
        assert "boom" in caplog.text

    def test_run_handles_disconnect_exception(self, handler, registry, websocket_factory):
        ws = websocket_factory()
        ws.receive = AsyncMock(side_effect=WebSocketDisconnect(code=1001))

        asyncio.run(handler.run(ws))

        assert registry.count == 0
