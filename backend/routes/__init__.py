"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, rooms (streaming runs). A run streams
public events only, one JSON object per line; private thoughts stay inside
the room.
"""

from fastapi import APIRouter

from .rooms import router as rooms_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(rooms_router)
