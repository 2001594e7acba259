"""Chatroom orchestrator - owns the timeline and schedules rounds.

Round flow (repeated up to max_rounds):
  1. Shuffle the agent roster with a fresh draw.
  2. For each agent: take a turn, commit private then public event,
     yield the public event, wait the minimum inter-turn delay.
  3. If a human is seated, they take one turn after all agents,
     committed and yielded the same way (no delay).

The cancel event is checked between rounds and between participants, and
raced against every wait inside a turn. A cancelled turn commits nothing.
Decode and backend failures are logged and propagate to the consumer; the
failing turn commits nothing either.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator

from roleplay_room.models import ChatEvent, RoomConfig
from roleplay_room.participant import Participant, TurnCancelled, wait_or_cancel
from roleplay_room.timeline import Timeline

logger = logging.getLogger(__name__)


class _RoomView:
    """Read-only window onto a Chatroom, handed to participants."""

    def __init__(self, room: Chatroom) -> None:
        self._room = room

    @property
    def config(self) -> RoomConfig:
        return self._room.config

    @property
    def participant_ids(self) -> list[str]:
        return self._room.participant_ids

    def public_window(self, size: int) -> list[ChatEvent]:
        return self._room.timeline.public_window(size)

    def display_name(self, participant_id: str) -> str:
        return self._room.display_name(participant_id)


class Chatroom:
    def __init__(self, config: RoomConfig | None = None, rng: random.Random | None = None) -> None:
        self.config = config or RoomConfig()
        self._rng = rng or random.Random()
        self._participants: list[Participant] = []
        self._human: Participant | None = None
        self._names: dict[str, str] = {}
        self._timeline = Timeline()
        self._view = _RoomView(self)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def _register(self, participant: Participant) -> None:
        pid = participant.participant_id
        if pid in self._names:
            raise ValueError(f"Participant {pid!r} is already in the room")
        self._names[pid] = participant.display_name
        logger.info("%s joined the chatroom.", participant.display_name)

    def add_participant(self, participant: Participant) -> None:
        self._register(participant)
        self._participants.append(participant)

    def set_human(self, participant: Participant) -> None:
        if self._human is not None:
            raise ValueError("The room already has a human participant")
        self._register(participant)
        self._human = participant

    @property
    def participant_ids(self) -> list[str]:
        ids = [p.participant_id for p in self._participants]
        if self._human is not None:
            ids.append(self._human.participant_id)
        return ids

    def display_name(self, participant_id: str) -> str:
        return self._names.get(participant_id, participant_id)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def view(self) -> _RoomView:
        return self._view

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _take_turn(
        self, participant: Participant, cancel: asyncio.Event | None
    ) -> ChatEvent:
        """Run one turn and commit it. Returns the public event."""
        try:
            private, public = await participant.take_turn(self._view, cancel)
        except TurnCancelled:
            raise
        except Exception:
            logger.error("Turn failed for participant %s", participant.participant_id)
            raise

        if private is not None:
            self._timeline.append(private)
        self._timeline.append(public)
        return public

    async def run(
        self, max_rounds: int | None = None, cancel: asyncio.Event | None = None
    ) -> AsyncIterator[ChatEvent]:
        """Yield public events as they are committed."""
        rounds = self.config.max_rounds if max_rounds is None else max_rounds
        delay = self.config.min_turn_delay.total_seconds()

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        try:
            for round_no in range(1, rounds + 1):
                if cancelled():
                    return
                order = list(self._participants)
                self._rng.shuffle(order)
                logger.info(
                    "Round %d: %s", round_no,
                    ", ".join(p.display_name for p in order),
                )

                for participant in order:
                    if cancelled():
                        return
                    yield await self._take_turn(participant, cancel)
                    if delay > 0:
                        await wait_or_cancel(asyncio.sleep(delay), cancel)

                if self._human is not None:
                    if cancelled():
                        return
                    yield await self._take_turn(self._human, cancel)
        except TurnCancelled:
            logger.info("Run cancelled; abandoning in-flight turn")
