"""Backend-driven participants.

An Agent owns its AgentState: the persona, private notes (seeded with the
persona's secret), a bounded queue of recent private thoughts and a small
scratch store. Nothing outside the agent reads or writes that state.

Turn flow:
  1. Read the public window from the room view.
  2. Render the system prompt (persona card, secret, JSON shape).
  3. Render the user prompt (transcript, own notes and thoughts, task).
  4. Ask the backend for a StructuredTurn, racing the cancel event.
  5. Build a private event (thought) and a public event (say).
  6. Remember the thought, evicting the oldest beyond capacity.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Iterable

from roleplay_room.llm import GenerationBackend
from roleplay_room.models import ChatEvent, ChatMessage, Persona, TurnResult
from roleplay_room.participant import RoomView, wait_or_cancel
from roleplay_room.prompts import build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)


class AgentState:
    def __init__(self, persona: Persona, thought_capacity: int = 8) -> None:
        if thought_capacity < 1:
            raise ValueError("thought_capacity must be at least 1")
        self.persona = persona
        self.private_notes: list[str] = []
        self.recent_thoughts: deque[str] = deque(maxlen=thought_capacity)
        self.scratch: dict[str, str] = {}
        if persona.secret.strip():
            self.private_notes.append(f"SECRET: {persona.secret}")

    @property
    def agent_id(self) -> str:
        return self.persona.id

    @property
    def display_name(self) -> str:
        return self.persona.name

    def remember_thought(self, thought: str, capacity: int) -> None:
        """Push a thought, resizing the queue if the room capacity changed."""
        if self.recent_thoughts.maxlen != capacity:
            self.recent_thoughts = deque(self.recent_thoughts, maxlen=capacity)
        self.recent_thoughts.append(thought)


class Agent:
    def __init__(self, persona: Persona, backend: GenerationBackend, thought_capacity: int = 8) -> None:
        self.state = AgentState(persona, thought_capacity)
        self._backend = backend

    @property
    def participant_id(self) -> str:
        return self.state.agent_id

    @property
    def display_name(self) -> str:
        return self.state.display_name

    def build_messages(self, room: RoomView) -> list[ChatMessage]:
        window = room.public_window(room.config.public_window_size)
        return [
            ChatMessage(role="system", content=build_system_prompt(self.state)),
            ChatMessage(
                role="user",
                content=build_user_prompt(window, self.state, room.display_name),
            ),
        ]

    async def take_turn(
        self, room: RoomView, cancel: asyncio.Event | None = None
    ) -> TurnResult:
        messages = self.build_messages(room)
        logger.debug("agent=%s requesting turn", self.participant_id)
        result = await wait_or_cancel(
            self._backend.complete(messages, room.config.generation), cancel
        )

        private = ChatEvent.private(self.participant_id, result.thought)
        public = ChatEvent.public(self.participant_id, result.say, room.participant_ids)

        if result.thought.strip():
            self.state.remember_thought(
                result.thought, room.config.private_thought_buffer_size
            )
        if result.intent:
            self.state.scratch["intent"] = result.intent

        return TurnResult(private, public)


def create_agent(persona: Persona, backend: GenerationBackend, thought_capacity: int = 8) -> Agent:
    return Agent(persona, backend, thought_capacity)


def create_agents(
    personas: Iterable[Persona], backend: GenerationBackend, thought_capacity: int = 8
) -> list[Agent]:
    """One agent per persona, all sharing the same backend."""
    return [create_agent(p, backend, thought_capacity) for p in personas]
