"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketState

# Make the project root importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


# ============================================================
# WebSocket Fixtures
# ============================================================

def make_websocket(state: WebSocketState = WebSocketState.CONNECTED) -> MagicMock:
    """Create a WebSocket double in the given transport state."""
    ws = MagicMock()
    ws.client_state = state
    ws.application_state = state
    ws.send_text = AsyncMock()
    ws.accept = AsyncMock()
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def websocket_factory():
    """Factory for WebSocket doubles."""
    return make_websocket


@pytest.fixture
def open_connection():
    """A registered-ready connection whose transport is open."""
    from cuesync.api.connection_registry import Connection

    return Connection(make_websocket())


# ============================================================
# Core Fixtures
# ============================================================

@pytest.fixture
def cue_state():
    """Fresh shared cue state."""
    from cuesync.core.types import CueState
    return CueState()


@pytest.fixture
def registry():
    """Empty connection registry."""
    from cuesync.api.connection_registry import ConnectionRegistry
    return ConnectionRegistry()


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same millisecond timestamp."""
    return lambda: 1_700_000_000_000


# ============================================================
# Config Fixtures
# ============================================================

@pytest.fixture
def app_config():
    """Create an AppConfig instance for testing."""
    from cuesync.config import AppConfig
    return AppConfig()


@pytest.fixture
def fast_config():
    """Config with a short broadcast interval for end-to-end tests."""
    from cuesync.config import AppConfig, BroadcastConfig

    return AppConfig(broadcast=BroadcastConfig(interval_ms=50))
