"""Turn-based roleplay chatroom for backend-driven agents and an optional human.

Each agent turn yields a private thought (visible to the agent alone) and a
public line (visible to everyone seated). The Chatroom owns the timeline and
streams public events as they are committed.
"""

from roleplay_room.agent import Agent, AgentState, create_agent, create_agents  # noqa: F401
from roleplay_room.human import HumanParticipant  # noqa: F401
from roleplay_room.llm import GenerationBackend, HttpBackend, LLMError, StubBackend  # noqa: F401
from roleplay_room.models import (  # noqa: F401
    ChatEvent,
    ChatMessage,
    GenerationOptions,
    Persona,
    RoomConfig,
    StructuredTurn,
    TurnResult,
)
from roleplay_room.parsing import DecodeError, parse_structured_turn  # noqa: F401
from roleplay_room.participant import Participant, RoomView, TurnCancelled  # noqa: F401
from roleplay_room.room import Chatroom  # noqa: F401
