"""Cue channel: WebSocket upgrade and plain liveness response on one path."""

from fastapi import APIRouter, WebSocket
from fastapi.responses import PlainTextResponse

from cuesync.api.dependencies import get_optional_app_state

router = APIRouter()

RUNNING_TEXT = "WebSocket Server is running.\n"


@router.get("/", response_class=PlainTextResponse)
async def server_running():
    """Plain acknowledgment for non-upgrade requests."""
    return RUNNING_TEXT


@router.websocket("/")
@router.websocket("/ws")
async def websocket_cues(websocket: WebSocket):
    state = get_optional_app_state(websocket)
    if state is None:
        await websocket.close(code=1011)
        return

    await state.sessions.run(websocket)
