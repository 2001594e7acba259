"""Tests for roleplay_room.parsing - strict decode, permissive scrape, failures."""

import pytest

from roleplay_room.parsing import DecodeError, parse_structured_turn


# ── Strict decode ────────────────────────────────────────────


def test_full_object() -> None:
    t = parse_structured_turn('{"thought":"t","say":"s"}')
    assert (t.thought, t.say, t.intent) == ("t", "s", None)


def test_intent_is_kept() -> None:
    t = parse_structured_turn('{"thought":"t","say":"s","intent":"deflect"}')
    assert t.intent == "deflect"


def test_say_only_defaults_thought() -> None:
    t = parse_structured_turn('{"say":"s only"}')
    assert (t.thought, t.say) == ("", "s only")


def test_field_names_are_case_insensitive() -> None:
    t = parse_structured_turn('{"Thought": "hidden", "SAY": "Hello there", "Intent": null}')
    assert t.thought == "hidden"
    assert t.say == "Hello there"
    assert t.intent is None


# ── Permissive scrape ────────────────────────────────────────


def test_plain_text_becomes_speech() -> None:
    t = parse_structured_turn("hello")
    assert (t.thought, t.say) == ("", "hello")


def test_plain_text_is_stripped() -> None:
    t = parse_structured_turn("  Ahoy, crew.\n")
    assert t.say == "Ahoy, crew."


def test_code_fenced_json() -> None:
    raw = 'Sure!\n```json\n{"thought": "plan", "say": "Fine."}\n```'
    t = parse_structured_turn(raw)
    assert (t.thought, t.say) == ("plan", "Fine.")


def test_json_surrounded_by_prose() -> None:
    raw = 'Here you go: {"thought": "t", "say": "s"} hope that helps'
    t = parse_structured_turn(raw)
    assert (t.thought, t.say) == ("t", "s")


def test_document_without_say_or_thought_uses_whole_response() -> None:
    raw = '{"mood": "grim"}'
    t = parse_structured_turn(raw)
    assert t.thought == ""
    assert t.say == raw


def test_non_string_values_are_coerced() -> None:
    t = parse_structured_turn('{"thought": 3, "say": 42}')
    assert (t.thought, t.say) == ("3", "42")


# ── Failures ─────────────────────────────────────────────────


def test_garbage_fails_with_raw_attached() -> None:
    raw = '{"thought": "I will betray them", "say'
    with pytest.raises(DecodeError) as exc:
        parse_structured_turn(raw)
    assert exc.value.raw == raw
    assert raw in str(exc.value)


def test_unbalanced_braces_fail() -> None:
    with pytest.raises(DecodeError):
        parse_structured_turn("} nothing here {")


def test_thought_without_say_fails_instead_of_leaking() -> None:
    raw = 'ok: {"thought": "my secret plan"}'
    with pytest.raises(DecodeError) as exc:
        parse_structured_turn(raw)
    assert exc.value.raw == raw


def test_nested_turn_without_top_level_say_fails() -> None:
    raw = '{"turn": {"thought": "I will betray the captain", "say": "Hello"}}'
    with pytest.raises(DecodeError) as exc:
        parse_structured_turn(raw)
    assert exc.value.raw == raw


def test_near_miss_keys_fail_instead_of_leaking() -> None:
    for raw in (
        '{"Thoughts": "I will betray the captain", "Say:": "Hello"}',
        '{"reasoning": "stall for time", "line": "Hello"}',
        '{"inner_thinking": "stall for time"}',
    ):
        with pytest.raises(DecodeError):
            parse_structured_turn(raw)


def test_structured_say_value_fails() -> None:
    with pytest.raises(DecodeError):
        parse_structured_turn('{"say": {"thought": "secret", "text": "hi"}}')


def test_several_documents_fail() -> None:
    with pytest.raises(DecodeError):
        parse_structured_turn('{"say": "x"} {"say": "y"}')


def test_empty_response_fails() -> None:
    with pytest.raises(DecodeError):
        parse_structured_turn("   ")


def test_decode_error_is_value_error() -> None:
    assert issubclass(DecodeError, ValueError)
