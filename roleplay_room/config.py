"""Room configuration from the environment and scenario files.

Environment (a .env file in the working directory is loaded first):

    LLM_BACKEND          "stub" (default) or "http"
    LLM_PROVIDER_URL     base URL of the model server (http backend)
    LLM_API_KEY          bearer token, optional
    LLM_PROVIDER_FORMAT  "openai" (default) or "koboldcpp"
    LLM_TIMEOUT          HTTP timeout in seconds (default 120)

Scenario file (JSON):

    {
      "room":     {"max_rounds": 5, "generation": {"model": "gpt-5"}},
      "personas": [{"name": "Captain Vale", "description": "...",
                    "backstory": "...", "secret": "..."}],
      "human":    "Ada"            # optional display name
    }

Room settings not present in the file keep their defaults.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from roleplay_room.llm import GenerationBackend, HttpBackend, StubBackend
from roleplay_room.models import Persona, RoomConfig


class ConfigError(ValueError):
    """Raised when environment or scenario configuration is invalid."""


class Scenario(BaseModel):
    room: RoomConfig = Field(default_factory=RoomConfig)
    personas: list[Persona] = Field(default_factory=list)
    human: str | None = None


DEFAULT_PERSONAS: list[dict[str, str]] = [
    {
        "name": "Captain Vale",
        "description": "Gruff starship captain. Speaks in curt, decisive sentences.",
        "backstory": "Former smuggler turned reluctant hero.",
        "secret": "Owes a debt to the antagonist and may sabotage the mission.",
    },
    {
        "name": "Dr. Lumen",
        "description": "Optimistic scientist, long metaphors, curious and kind.",
        "backstory": "Left academia after a scandal to seek redemption.",
        "secret": "Carries a prototype device that could destroy the station.",
    },
]


def load_env(path: Path | None = None) -> None:
    """Load a .env file, by default from the working directory.

    Variables already set in the environment win over the file.
    """
    load_dotenv(path or Path.cwd() / ".env")


def backend_from_env() -> GenerationBackend:
    """Build the generation backend selected by LLM_* environment variables."""
    kind = os.getenv("LLM_BACKEND", "stub").strip().lower()
    if kind == "stub":
        return StubBackend()
    if kind != "http":
        raise ConfigError(f"Unknown LLM_BACKEND {kind!r} (expected 'stub' or 'http')")

    url = os.getenv("LLM_PROVIDER_URL", "")
    if not url:
        raise ConfigError("LLM_PROVIDER_URL is required when LLM_BACKEND=http")
    provider_format = os.getenv("LLM_PROVIDER_FORMAT", "openai")
    if provider_format not in ("openai", "koboldcpp"):
        raise ConfigError(f"Unknown LLM_PROVIDER_FORMAT {provider_format!r}")
    try:
        timeout = float(os.getenv("LLM_TIMEOUT", "120"))
    except ValueError as e:
        raise ConfigError("LLM_TIMEOUT must be a number of seconds") from e

    return HttpBackend(
        provider_url=url,
        api_key=os.getenv("LLM_API_KEY", ""),
        provider_format=provider_format,
        timeout=timeout,
    )


def build_scenario(data: dict[str, Any]) -> Scenario:
    """Validate scenario data, merging partial room settings over defaults."""
    merged = dict(data)
    room = RoomConfig().model_dump()
    stored = data.get("room") or {}
    if not isinstance(stored, dict):
        raise ConfigError("'room' must be an object")
    stored_generation = stored.get("generation") or {}
    if not isinstance(stored_generation, dict):
        raise ConfigError("'room.generation' must be an object")
    generation = dict(room["generation"])
    generation.update(stored_generation)
    room.update(stored)
    room["generation"] = generation
    merged["room"] = room
    merged.setdefault("personas", DEFAULT_PERSONAS)
    try:
        scenario = Scenario.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid scenario: {e}") from e

    ids = [p.id for p in scenario.personas]
    duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
    if duplicates:
        raise ConfigError(f"Persona ids must be unique, repeated: {', '.join(duplicates)}")
    return scenario


def load_scenario(path: Path | None = None) -> Scenario:
    """Read a scenario file; with no path, the built-in two-persona scene."""
    if path is None:
        return build_scenario({})
    if not path.is_file():
        raise ConfigError(f"Scenario file not found: {path}")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Scenario file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Scenario file {path} must contain a JSON object")
    return build_scenario(data)
