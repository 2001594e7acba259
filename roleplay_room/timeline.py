"""Append-only event history for a single room.

The Chatroom is the only writer. Participants read through the room's
view, which exposes `public_window` and nothing that mutates.
"""

from __future__ import annotations

from roleplay_room.models import ChatEvent


class Timeline:
    def __init__(self) -> None:
        self._events: list[ChatEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> tuple[ChatEvent, ...]:
        return tuple(self._events)

    def append(self, event: ChatEvent) -> None:
        self._events.append(event)

    def public_window(self, size: int) -> list[ChatEvent]:
        """Return the last `size` public events, oldest first."""
        if size <= 0:
            return []
        public = [e for e in self._events if e.channel == "public"]
        return public[-size:]

    def visible_to(self, participant_id: str) -> list[ChatEvent]:
        """Every event the participant is allowed to see, in commit order."""
        return [e for e in self._events if e.is_visible_to(participant_id)]
