"""Streaming room runs.

POST /rooms/run seats one agent per persona and streams every committed
public event as NDJSON:

    {"sender_id": "...", "sender_name": "...", "content": "...", "timestamp": "..."}

A fatal turn error ends the stream with {"error": "...", "raw": "..."} so the
offending backend payload is visible to the caller.
"""

import json
import logging
import random
from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from roleplay_room.agent import create_agents
from roleplay_room.config import ConfigError, build_scenario
from roleplay_room.llm import LLMError
from roleplay_room.models import ChatEvent
from roleplay_room.parsing import DecodeError
from roleplay_room.room import Chatroom

from .models import RunRoomBody

logger = logging.getLogger(__name__)

router = APIRouter()


def _event_line(room: Chatroom, event: ChatEvent) -> str:
    return json.dumps({
        "sender_id": event.sender_id,
        "sender_name": room.display_name(event.sender_id),
        "content": event.content,
        "timestamp": event.timestamp.isoformat(),
    }) + "\n"


async def _stream(room: Chatroom, max_rounds: int | None) -> AsyncIterator[str]:
    try:
        async for event in room.run(max_rounds=max_rounds):
            yield _event_line(room, event)
    except (DecodeError, LLMError) as e:
        logger.error("Room run failed: %s", e)
        yield json.dumps({"error": str(e), "raw": e.raw}) + "\n"


@router.post("/rooms/run")
async def run_room(body: RunRoomBody, request: Request):
    """Run a room of agents and stream its public events."""
    try:
        scenario = build_scenario({
            "room": body.room or {},
            "personas": [p.model_dump() for p in body.personas],
        })
    except ConfigError as e:
        raise HTTPException(422, str(e))

    rng = random.Random(body.seed) if body.seed is not None else None
    room = Chatroom(scenario.room, rng=rng)
    backend = request.app.state.llm_backend
    for agent in create_agents(
        scenario.personas, backend, scenario.room.private_thought_buffer_size
    ):
        room.add_participant(agent)

    return StreamingResponse(
        _stream(room, body.max_rounds), media_type="application/x-ndjson"
    )
