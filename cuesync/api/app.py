"""FastAPI applications for the cue sync server.

This module provides the application factories with proper dependency injection.
Shared state (config, cue state, connection registry) is created once per app
and reachable from routes through app.state.

Example:
    config = AppConfig.from_yaml("config/settings.yaml")
    app = create_app(config=config)
    static_app = create_static_app(config)

    # Run with uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cuesync.config import AppConfig
from cuesync.core.generator import Clock, CueGenerator
from cuesync.core.types import CueState
from cuesync.scheduler.broadcast_scheduler import (
    BroadcastScheduler,
    BroadcastSchedulerConfig,
)

from .connection_registry import ConnectionRegistry
from .dependencies import AppState
from .routes import cues, health
from .session import SessionHandler

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    cue_state: Optional[CueState] = None,
    clock: Optional[Clock] = None,
    title: str = "Cue Sync Server",
) -> FastAPI:
    """Create and configure the cue server application.

    Args:
        config: Application configuration (defaults if omitted).
        cue_state: Shared cue state (injected). A fresh one seeded with
            ``broadcast.default_effect_id`` is created if omitted.
        clock: Millisecond clock for cue timestamps (injected for tests).
        title: API title.

    Returns:
        Configured FastAPI application with injected dependencies.
    """
    config = config or AppConfig()
    cue_state = cue_state or CueState(effect_id=config.broadcast.default_effect_id)

    send_timeout_ms = config.broadcast.send_timeout_ms
    registry = ConnectionRegistry(
        send_timeout=send_timeout_ms / 1000.0 if send_timeout_ms else None
    )
    sessions = SessionHandler(
        registry=registry,
        state=cue_state,
        welcome_message=config.broadcast.welcome_message,
    )
    scheduler = BroadcastScheduler(
        generator=CueGenerator(cue_state, config=config.broadcast, clock=clock),
        broadcaster=registry,
        config=BroadcastSchedulerConfig(interval_ms=config.broadcast.interval_ms),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.broadcast.enabled:
            scheduler.start()
        else:
            logger.info("Cue broadcast disabled by configuration")
        try:
            yield
        finally:
            await scheduler.stop()

    app = FastAPI(
        title=title,
        description="Real-time cue broadcast for synchronized AR effects",
        version=config.app.version,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # Configure CORS
    cors_config = config.server.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.allow_origins,
        allow_credentials=cors_config.allow_credentials,
        allow_methods=cors_config.allow_methods,
        allow_headers=cors_config.allow_headers,
    )

    # Inject dependencies via app.state
    app.state.app_state = AppState(
        config=config,
        cue_state=cue_state,
        registry=registry,
        sessions=sessions,
        scheduler=scheduler,
    )

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(cues.router, tags=["Cues"])

    return app


def create_static_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create the application serving the front-end's static files.

    A missing directory is reported but does not prevent startup; every
    request then answers 404.
    """
    config = config or AppConfig()
    directory = Path(config.static.directory)

    app = FastAPI(
        title="Cue Sync Front-end",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    if directory.is_dir():
        app.mount("/", StaticFiles(directory=str(directory), html=True), name="static")
    else:
        logger.warning("Static directory not found: %s", directory.absolute())
    return app
