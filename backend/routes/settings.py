"""Health check and room defaults."""

from fastapi import APIRouter, Request

from roleplay_room.models import RoomConfig

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(request: Request):
    """Default room settings and the configured generation backend."""
    return {
        "backend": request.app.state.backend_kind,
        "room": RoomConfig().model_dump(mode="json"),
    }
