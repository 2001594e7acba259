"""Structured turn parsing.

Backends are asked for a JSON object of the form

    {"thought": "<private>", "say": "<public>", "intent": "<optional>"}

Field names match case-insensitively. Decoding runs in two passes:

  strict      - the whole response is that object.
  permissive  - code fences and surrounding prose are stripped and the
                outermost {...} document is decoded. `thought` defaults
                to "". A missing `say` makes the whole response the public
                line, unless the document could hold private reasoning
                (a `thought`-like key, or a nested object or list),
                which fails.

A response with no document markers at all is taken as plain speech.
Anything else raises DecodeError with the raw payload attached.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from roleplay_room.models import StructuredTurn

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
# Key fragments that mark private reasoning, matched against letters only
_PRIVATE_KEY_MARKERS = ("thought", "think", "reason")


class DecodeError(ValueError):
    """Raised when a backend response cannot be decoded into a StructuredTurn."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(f"{message}; raw response: {raw!r}")
        self.raw = raw


def parse_structured_turn(raw: str) -> StructuredTurn:
    if not raw or not raw.strip():
        raise DecodeError("Empty response from backend", raw)

    turn = _parse_strict(raw)
    if turn is not None:
        return turn

    logger.warning("Strict decode failed, trying permissive scrape: %r", raw)
    return _parse_permissive(raw)


def _lower_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {str(k).lower(): v for k, v in data.items()}


def _parse_strict(raw: str) -> StructuredTurn | None:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    fields = _lower_keys(data)
    thought = fields.get("thought", "")
    say = fields.get("say")
    intent = fields.get("intent")
    if not isinstance(say, str) or not isinstance(thought, str):
        return None
    if intent is not None and not isinstance(intent, str):
        return None
    return StructuredTurn(thought=thought, say=say, intent=intent)


def _extract_document(raw: str) -> str | None:
    """Return the outermost {...} span of a response, or None if it has none."""
    fenced = _FENCE_RE.search(raw)
    text = fenced.group(1) if fenced else raw
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _may_hold_reasoning(data: dict[str, Any]) -> bool:
    """True if a say-less document must not be published verbatim.

    Nested objects and lists may wrap a thought; near-miss keys such as
    "Thoughts" or "reasoning" name one.
    """
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            return True
        name = re.sub(r"[^a-z]", "", str(key).lower())
        if any(marker in name for marker in _PRIVATE_KEY_MARKERS):
            return True
    return False


def _parse_permissive(raw: str) -> StructuredTurn:
    if "{" not in raw and "}" not in raw:
        return StructuredTurn(thought="", say=raw.strip())

    document = _extract_document(raw)
    if document is None:
        raise DecodeError("No structured document in backend response", raw)
    try:
        data = json.loads(document)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Backend returned invalid JSON: {e}", raw) from e

    fields = _lower_keys(data)
    thought = fields.get("thought")
    say = fields.get("say")
    intent = fields.get("intent")

    if isinstance(say, (dict, list)):
        raise DecodeError("The say field is not text", raw)
    if say is None:
        if thought is not None or _may_hold_reasoning(data):
            raise DecodeError("Response has no say field and may contain private reasoning", raw)
        say = raw.strip()

    return StructuredTurn(
        thought="" if thought is None else str(thought),
        say=str(say),
        intent=None if intent is None else str(intent),
    )
