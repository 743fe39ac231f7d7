"""FastAPI dependency injection for API routes.

This module provides dependency injection using FastAPI's app.state pattern.
Dependencies are created once in create_app() and shared by the HTTP routes,
the WebSocket session handler and the broadcast scheduler.

Usage:
    # In routes
    @router.get("/health")
    async def health(state: AppState = Depends(get_app_state)):
        return {"connections": state.registry.count}
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request
from starlette.requests import HTTPConnection

from cuesync.config import AppConfig
from cuesync.core.types import CueState
from cuesync.scheduler.broadcast_scheduler import BroadcastScheduler
from .connection_registry import ConnectionRegistry
from .session import SessionHandler

logger = logging.getLogger(__name__)


# ============================================================
# State Container
# ============================================================

class AppState:
    """Application state container.

    Holds all injected dependencies. Attached to app.state at creation.
    This ensures a single source of truth for all components.
    """

    def __init__(
        self,
        config: AppConfig,
        cue_state: CueState,
        registry: ConnectionRegistry,
        sessions: SessionHandler,
        scheduler: Optional[BroadcastScheduler] = None,
    ):
        self.config = config
        self.cue_state = cue_state
        self.registry = registry
        self.sessions = sessions
        self.scheduler = scheduler


# ============================================================
# Dependency Getters
# ============================================================

def _state_from(connection: HTTPConnection) -> Optional[AppState]:
    return getattr(connection.app.state, "app_state", None)


def get_app_state(request: Request) -> AppState:
    """Get application state from request.

    Args:
        request: FastAPI request object.

    Returns:
        AppState instance.

    Raises:
        HTTPException: If app state not initialized.
    """
    state = _state_from(request)
    if state is None:
        raise HTTPException(
            status_code=503,
            detail="Application not properly initialized"
        )
    return state


def get_optional_app_state(connection: HTTPConnection) -> Optional[AppState]:
    """Get application state (optional, no error if missing).

    Works for both HTTP requests and WebSocket connections; the WebSocket
    route closes the socket itself when state is missing.
    """
    return _state_from(connection)
