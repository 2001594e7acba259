"""Turn-taking contract shared by agents and humans.

A participant receives a read-only view of the room and an optional cancel
event, and returns a TurnResult: an optional private event plus exactly one
public event. It never writes to the timeline; the Chatroom commits what it
returns.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol, TypeVar

from roleplay_room.models import ChatEvent, RoomConfig, TurnResult

T = TypeVar("T")


class TurnCancelled(Exception):
    """Raised when the cancel event fires while a turn is waiting."""


class RoomView(Protocol):
    """What a participant may see of the room during its turn."""

    @property
    def config(self) -> RoomConfig: ...

    @property
    def participant_ids(self) -> list[str]: ...

    def public_window(self, size: int) -> list[ChatEvent]: ...

    def display_name(self, participant_id: str) -> str: ...


class Participant(Protocol):
    @property
    def participant_id(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    async def take_turn(
        self, room: RoomView, cancel: asyncio.Event | None = None
    ) -> TurnResult: ...


async def wait_or_cancel(aw: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await `aw`, abandoning it with TurnCancelled as soon as `cancel` is set."""
    if cancel is None:
        return await aw
    if cancel.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        raise TurnCancelled()

    work = asyncio.ensure_future(aw)
    stop = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
        if not work.done():
            work.cancel()
    if work.cancelled() or not work.done():
        raise TurnCancelled()
    return work.result()
