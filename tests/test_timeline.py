"""Tests for roleplay_room.timeline."""

from roleplay_room.models import ChatEvent
from roleplay_room.timeline import Timeline

IDS = ["vale", "lumen"]


def _fill(timeline: Timeline, n: int) -> list[ChatEvent]:
    public = []
    for i in range(n):
        sender = IDS[i % 2]
        timeline.append(ChatEvent.private(sender, f"thought {i}"))
        pub = ChatEvent.public(sender, f"line {i}", IDS)
        timeline.append(pub)
        public.append(pub)
    return public


def test_window_smaller_than_history_returns_latest_oldest_first() -> None:
    t = Timeline()
    public = _fill(t, 5)
    window = t.public_window(3)
    assert [e.content for e in window] == ["line 2", "line 3", "line 4"]
    assert window == public[-3:]


def test_window_larger_than_history_returns_everything() -> None:
    t = Timeline()
    public = _fill(t, 2)
    assert t.public_window(20) == public


def test_window_excludes_private_events() -> None:
    t = Timeline()
    _fill(t, 3)
    assert all(e.channel == "public" for e in t.public_window(10))


def test_zero_window_is_empty() -> None:
    t = Timeline()
    _fill(t, 2)
    assert t.public_window(0) == []


def test_empty_timeline() -> None:
    assert Timeline().public_window(5) == []


def test_append_keeps_emission_order() -> None:
    t = Timeline()
    _fill(t, 2)
    assert [e.content for e in t.events] == ["thought 0", "line 0", "thought 1", "line 1"]
    assert len(t) == 4


def test_events_snapshot_is_read_only() -> None:
    t = Timeline()
    _fill(t, 1)
    snapshot = t.events
    assert isinstance(snapshot, tuple)
    _fill(t, 1)
    assert len(snapshot) == 2


def test_visible_to_filters_other_private_events() -> None:
    t = Timeline()
    _fill(t, 2)
    seen = t.visible_to("vale")
    assert [e.content for e in seen] == ["thought 0", "line 0", "line 1"]
