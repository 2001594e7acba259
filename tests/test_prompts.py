"""Tests for roleplay_room.prompts - Handlebars rendering and agent prompts."""

from datetime import datetime, timezone

import pytest

from roleplay_room.agent import AgentState
from roleplay_room.models import ChatEvent, Persona
from roleplay_room.prompts import (
    PromptError,
    build_system_prompt,
    build_user_prompt,
    format_transcript,
    render_prompt,
)

NAMES = {"vale": "Captain Vale", "lumen": "Dr. Lumen"}


def _name(pid: str) -> str:
    return NAMES.get(pid, pid)


def _public(sender: str, content: str, minute: int) -> ChatEvent:
    return ChatEvent(
        timestamp=datetime(2024, 5, 1, 21, minute, tzinfo=timezone.utc),
        sender_id=sender,
        channel="public",
        content=content,
        visible_to=frozenset(NAMES),
    )


# ── render_prompt ────────────────────────────────────────────


def test_render_simple_variables() -> None:
    assert render_prompt("Hello {{name}}!", {"name": "Vale"}) == "Hello Vale!"


def test_render_triple_stash_does_not_escape() -> None:
    assert render_prompt("{{{text}}}", {"text": "<b>&"}) == "<b>&"


def test_render_each_block() -> None:
    out = render_prompt("{{#each items}}[{{this}}]{{/each}}", {"items": ["a", "b"]})
    assert out == "[a][b]"


def test_render_bad_template_raises_prompt_error() -> None:
    with pytest.raises(PromptError):
        render_prompt("{{#if open}}never closed", {})


# ── format_transcript ────────────────────────────────────────


def test_transcript_uses_display_names_and_clock() -> None:
    events = [_public("vale", "Report.", 5), _public("lumen", "All green!", 6)]
    assert format_transcript(events, _name) == (
        "[21:05] Captain Vale: Report.\n[21:06] Dr. Lumen: All green!"
    )


def test_transcript_skips_private_events() -> None:
    events = [ChatEvent.private("vale", "hidden plan"), _public("vale", "Report.", 5)]
    text = format_transcript(events, _name)
    assert "hidden plan" not in text
    assert "Report." in text


def test_unknown_sender_falls_back_to_lookup() -> None:
    assert "ghost: boo" in format_transcript([_public("ghost", "boo", 1)], _name)


# ── build_system_prompt ──────────────────────────────────────


def test_system_prompt_contains_persona_card_and_secret(vale: Persona) -> None:
    prompt = build_system_prompt(AgentState(vale))
    assert "multi-character chatroom" in prompt
    assert vale.description in prompt
    assert "# Backstory (public)" in prompt
    assert vale.backstory in prompt
    assert "never reveal" in prompt
    assert vale.secret in prompt
    assert '{"thought": string, "say": string, "intent": string}' in prompt


def test_system_prompt_omits_empty_sections() -> None:
    prompt = build_system_prompt(AgentState(Persona(name="Plain", description="Just plain.")))
    assert "Backstory" not in prompt
    assert "# Secret" not in prompt


def test_system_prompt_does_not_escape_quotes() -> None:
    persona = Persona(name="Q", description='Says "aye" & "nay".')
    assert 'Says "aye" & "nay".' in build_system_prompt(AgentState(persona))


# ── build_user_prompt ────────────────────────────────────────


def test_user_prompt_has_transcript_notes_and_task(vale: Persona) -> None:
    state = AgentState(vale)
    window = [_public("lumen", "Captain, a word.", 7)]
    prompt = build_user_prompt(window, state, _name)
    assert "## Public Transcript (recent)" in prompt
    assert "[21:07] Dr. Lumen: Captain, a word." in prompt
    assert "## Your private notes (do not reveal)" in prompt
    assert f"- SECRET: {vale.secret}" in prompt
    assert "1) Think privately" in prompt
    assert "2) Say one short message in character" in prompt
    assert "Return JSON only." in prompt


def test_user_prompt_empty_transcript_placeholder(vale: Persona) -> None:
    prompt = build_user_prompt([], AgentState(vale), _name)
    assert "(nobody has spoken yet)" in prompt


def test_user_prompt_includes_own_recent_thoughts(vale: Persona) -> None:
    state = AgentState(vale)
    state.remember_thought("Lumen suspects me.", capacity=8)
    prompt = build_user_prompt([], state, _name)
    assert "## Your recent thoughts (private)" in prompt
    assert "- Lumen suspects me." in prompt


def test_user_prompt_without_notes() -> None:
    prompt = build_user_prompt([], AgentState(Persona(name="Open Book")), _name)
    assert "- (none)" in prompt
    assert "recent thoughts" not in prompt


def test_user_prompt_has_no_question_mark(vale: Persona) -> None:
    # StubBackend keys its reply off "?" in the last message
    assert "?" not in build_user_prompt([], AgentState(vale), _name)
