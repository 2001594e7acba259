"""Interactive participant driven by a person at the console."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable

from roleplay_room.models import ChatEvent, TurnResult
from roleplay_room.participant import RoomView, TurnCancelled, wait_or_cancel

logger = logging.getLogger(__name__)


class HumanParticipant:
    """Shows the recent public transcript, then blocks for a line of input.

    Blank lines are re-prompted. `input_func` runs in a worker thread so the
    cancel event can still abort the wait; `output_func` receives the
    transcript lines. Both default to the console. End of input (Ctrl-D)
    ends the turn like a cancellation.
    """

    def __init__(
        self,
        display_name: str = "",
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        participant_id: str | None = None,
    ) -> None:
        self._id = participant_id or f"user-{uuid.uuid4().hex}"
        self._name = display_name.strip() or "You"
        self._input = input_func
        self._output = output_func

    @property
    def participant_id(self) -> str:
        return self._id

    @property
    def display_name(self) -> str:
        return self._name

    def _show_transcript(self, room: RoomView) -> None:
        self._output("")
        self._output(f"It's your turn, {self._name}!")
        for event in room.public_window(room.config.public_window_size):
            name = room.display_name(event.sender_id)
            self._output(f"[{event.timestamp:%H:%M}] {name}: {event.content}")
        self._output("")

    async def take_turn(
        self, room: RoomView, cancel: asyncio.Event | None = None
    ) -> TurnResult:
        self._show_transcript(room)
        while True:
            try:
                line = await wait_or_cancel(
                    asyncio.to_thread(self._input, f"{self._name}: "), cancel
                )
            except EOFError as e:
                logger.info("human=%s input closed, leaving the room", self._id)
                raise TurnCancelled() from e
            if line and line.strip():
                break
            logger.debug("human=%s empty input, asking again", self._id)

        public = ChatEvent.public(self._id, line.strip(), room.participant_ids)
        return TurnResult(None, public)
