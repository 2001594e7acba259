"""Handlebars prompt rendering for agent turns.

Two templates make up every agent prompt:

  system - roleplay framing, the persona's public card, its secret under a
           do-not-reveal header, and the mandatory JSON response shape.
  user   - the recent public transcript, the agent's own private notes and
           recent thoughts, and the two-part task.

Only the owning agent's state is ever passed in. Transcript lines come from
the public window, so nothing private from other participants can reach
the context.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import pybars

from roleplay_room.models import ChatEvent

if TYPE_CHECKING:
    from roleplay_room.agent import AgentState

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


SYSTEM_TEMPLATE = """\
You are a roleplaying agent inside a multi-character chatroom.
Stay in character. Write dialogue in first person, concise and lively.
NEVER reveal private thoughts. Only output JSON per the schema.

# Persona (public)
Name: {{{persona.name}}}
{{{persona.description}}}
{{#if persona.backstory}}

# Backstory (public)
{{{persona.backstory}}}
{{/if}}
{{#if persona.secret}}

# Secret (private, never reveal this to anyone)
{{{persona.secret}}}
{{/if}}

Respond in STRICT JSON: {"thought": string, "say": string, "intent": string}
"""

USER_TEMPLATE = """\
## Public Transcript (recent)
{{#if transcript}}{{{transcript}}}{{else}}(nobody has spoken yet){{/if}}

## Your private notes (do not reveal)
{{#each notes}}- {{{this}}}
{{/each}}
{{#if thoughts}}
## Your recent thoughts (private)
{{#each thoughts}}- {{{this}}}
{{/each}}
{{/if}}
## Task
1) Think privately about goals and next move.
2) Say one short message in character to advance the scene.

Return JSON only.
"""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return "".join(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def format_transcript(
    events: Iterable[ChatEvent], display_name: Callable[[str], str]
) -> str:
    """One `[HH:MM] Name: content` line per public event."""
    lines = []
    for event in events:
        if event.channel != "public":
            continue
        lines.append(
            f"[{event.timestamp:%H:%M}] {display_name(event.sender_id)}: {event.content}"
        )
    return "\n".join(lines)


def build_system_prompt(state: AgentState) -> str:
    persona = state.persona
    return render_prompt(SYSTEM_TEMPLATE, {
        "persona": {
            "name": persona.name,
            "description": persona.description,
            "backstory": persona.backstory.strip(),
            "secret": persona.secret.strip(),
        },
    })


def build_user_prompt(
    window: Iterable[ChatEvent],
    state: AgentState,
    display_name: Callable[[str], str],
) -> str:
    return render_prompt(USER_TEMPLATE, {
        "transcript": format_transcript(window, display_name),
        "notes": list(state.private_notes) or ["(none)"],
        "thoughts": list(state.recent_thoughts),
    })
