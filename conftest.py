from datetime import timedelta

import pytest

from roleplay_room.models import Persona, RoomConfig


@pytest.fixture
def vale() -> Persona:
    return Persona(
        id="vale",
        name="Captain Vale",
        description="Gruff starship captain. Speaks in curt, decisive sentences.",
        backstory="Former smuggler turned reluctant hero.",
        secret="Owes a debt to the antagonist.",
    )


@pytest.fixture
def lumen() -> Persona:
    return Persona(
        id="lumen",
        name="Dr. Lumen",
        description="Optimistic scientist, long metaphors, curious and kind.",
        backstory="Left academia after a scandal.",
        secret="Carries a prototype device.",
    )


@pytest.fixture
def fast_config() -> RoomConfig:
    """Room settings with no inter-turn delay."""
    return RoomConfig(min_turn_delay=timedelta(0), private_thought_buffer_size=3)


@pytest.fixture(autouse=True)
def stub_backend_env(monkeypatch):
    """Keep a developer's .env from pointing tests at a real model server."""
    monkeypatch.setenv("LLM_BACKEND", "stub")
