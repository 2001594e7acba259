"""Core domain models.

Every component of the room operates on these types. Pydantic is used for
validation at every data boundary; events and settings are frozen so that
visibility and configuration cannot drift after construction.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

Channel = Literal["public", "private"]

Role = Literal["system", "user", "assistant"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Persona(BaseModel):
    """Identity card for an agent. Only `secret` is private."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = "Unnamed"
    description: str = ""  # public mannerisms, speech style
    backstory: str = ""
    secret: str = ""  # hidden motives; owning agent's prompt only


class ChatEvent(BaseModel):
    """A single committed entry in the room timeline."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    sender_id: str
    channel: Channel
    content: str
    visible_to: frozenset[str]

    @model_validator(mode="after")
    def _check_visibility(self) -> ChatEvent:
        if self.channel == "private" and self.visible_to != frozenset({self.sender_id}):
            raise ValueError("a private event is visible to its sender only")
        if self.channel == "public" and not self.visible_to:
            raise ValueError("a public event needs at least one viewer")
        return self

    @classmethod
    def public(cls, sender_id: str, content: str, participant_ids: Iterable[str]) -> ChatEvent:
        return cls(
            sender_id=sender_id,
            channel="public",
            content=content,
            visible_to=frozenset(participant_ids),
        )

    @classmethod
    def private(cls, sender_id: str, content: str) -> ChatEvent:
        return cls(
            sender_id=sender_id,
            channel="private",
            content=content,
            visible_to=frozenset({sender_id}),
        )

    def is_visible_to(self, participant_id: str) -> bool:
        return participant_id in self.visible_to


class GenerationOptions(BaseModel):
    """Options forwarded to the generation backend on every call."""

    model_config = ConfigDict(frozen=True)

    model: str = "gpt-5"
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_output_size: int = Field(default=2512, gt=0)


class RoomConfig(BaseModel):
    """Per-room settings. Immutable once the room is built."""

    model_config = ConfigDict(frozen=True)

    public_window_size: int = Field(default=20, ge=0)
    max_rounds: int = Field(default=30, ge=0)
    private_thought_buffer_size: int = Field(default=8, ge=1)
    min_turn_delay: timedelta = timedelta(milliseconds=50)
    generation: GenerationOptions = Field(default_factory=GenerationOptions)


class ChatMessage(BaseModel):
    """One role-tagged message of a backend prompt."""

    role: Role
    content: str


class StructuredTurn(BaseModel):
    """Decoded backend response: private thought, public line, optional intent."""

    thought: str = ""
    say: str
    intent: str | None = None


class TurnResult(NamedTuple):
    private: ChatEvent | None
    public: ChatEvent
