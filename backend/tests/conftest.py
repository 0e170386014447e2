from __future__ import annotations

import json
from typing import Any, Callable

import pytest

from readthrough.session.catalog import ScriptCatalog, parse_script
from readthrough.session.models import TimingConfig
from readthrough.session.playback import PlaybackScheduler
from readthrough.session.presence import PresenceTracker
from readthrough.session.service import SessionRegistry


class FakeSocketIO:
    """Records emits and runs background tasks inline.

    ``sleep`` never waits; it records the requested delay and calls
    ``on_sleep(n)`` (n = 1 for the first sleep) so tests can interleave
    actions between ticks.
    """

    def __init__(self) -> None:
        self.emitted: list[tuple[str, Any, str | None]] = []
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[int], None] | None = None

    def emit(self, event: str, data: Any = None, to: str | None = None, **kwargs: Any) -> None:
        self.emitted.append((event, data, to))

    def start_background_task(self, target, *args, **kwargs):
        return target(*args, **kwargs)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))

    def names(self) -> list[str]:
        return [e for e, _, _ in self.emitted]

    def payloads(self, event: str) -> list[Any]:
        return [d for e, d, _ in self.emitted if e == event]


def make_script(
    script_id: str = "duo",
    characters: list[str] | None = None,
    lines: list[tuple[str, str]] | None = None,
    **timing: Any,
):
    raw = {
        "id": script_id,
        "name": script_id.title(),
        "characters": characters if characters is not None else ["A", "B"],
        "lines": [{"character": c, "text": t} for c, t in (lines if lines is not None else [("A", "Hi, there!")])],
    }
    raw.update(timing)
    return parse_script(raw, group_type="test")


@pytest.fixture
def fake_socketio() -> FakeSocketIO:
    return FakeSocketIO()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(TimingConfig(karaoke_step=2, base_delay=90, punctuation_delay=300))


@pytest.fixture
def presence() -> PresenceTracker:
    return PresenceTracker()


@pytest.fixture
def scheduler(fake_socketio, registry) -> PlaybackScheduler:
    return PlaybackScheduler(fake_socketio, registry)


@pytest.fixture
def catalog() -> ScriptCatalog:
    return ScriptCatalog(
        [
            make_script(),
            make_script("trio", characters=["X", "Y", "Z"], lines=[("X", "One."), ("Y", "Two!")]),
        ]
    )


@pytest.fixture
def cast_room(registry):
    """Room 'stage' owned by alice with the given script fully cast."""

    def _make(script, name: str = "stage"):
        room = registry.create_room("alice", name)
        registry.join_room(name, "sid-alice", "alice")
        registry.select_script(name, "alice", script)
        with registry.lock:
            for i, character in enumerate(script.characters):
                room.character_assignments[character] = f"user{i}"
        return room

    return _make


@pytest.fixture
def scripts_dir(tmp_path):
    directory = tmp_path / "scripts"
    directory.mkdir()
    (directory / "plays.json").write_text(
        json.dumps(
            {
                "type": "drama",
                "scripts": [
                    {
                        "id": "duo",
                        "name": "Duo",
                        "characters": ["A", "B"],
                        # Long delays keep background ticks out of the way in socket tests.
                        "baseDelay": 60000,
                        "punctuationDelay": 60000,
                        "lines": [
                            {"character": "A", "text": "Hello there, friend."},
                            {"character": "B", "text": "Hi."},
                        ],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    return directory
