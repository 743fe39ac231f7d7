"""Health check endpoints.

These endpoints follow Kubernetes health check conventions:
- /health: Basic health plus cue broadcast status
- /live: Liveness probe (service is running)
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cuesync.api.dependencies import AppState, get_app_state

router = APIRouter()
logger = logging.getLogger(__name__)


# ============================================================
# Response Models
# ============================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    version: str
    connections: int
    effect_id: Any = None
    cue_counter: int
    broadcasting: bool


class LivenessResponse(BaseModel):
    """Liveness check response."""
    alive: bool
    timestamp: datetime


# ============================================================
# Endpoints
# ============================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(state: AppState = Depends(get_app_state)):
    """Basic health check endpoint.

    Reports the number of registered clients, the currently selected
    effect and how many cues have been generated.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        version=state.config.app.version,
        connections=state.registry.count,
        effect_id=state.cue_state.effect_id,
        cue_counter=state.cue_state.counter,
        broadcasting=state.scheduler is not None and state.scheduler.is_running,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness_check():
    """Liveness probe endpoint.

    Simple check that the service is running.
    Used by Kubernetes liveness probes.
    """
    return LivenessResponse(
        alive=True,
        timestamp=datetime.now(),
    )
