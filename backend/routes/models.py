"""Pydantic request models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from roleplay_room.models import Persona


class RunRoomBody(BaseModel):
    personas: list[Persona] = Field(min_length=1)
    room: dict[str, Any] | None = None
    max_rounds: int | None = Field(default=None, ge=0)
    seed: int | None = None
