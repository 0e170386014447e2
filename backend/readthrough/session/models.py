from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


PlaybackPhase = Literal["idle", "running", "finished"]


@dataclass(frozen=True)
class TimingConfig:
    karaoke_step: int = 2
    base_delay: float = 90
    punctuation_delay: float = 300

    def to_payload(self) -> dict:
        return {
            "karaokeStep": self.karaoke_step,
            "baseDelay": self.base_delay,
            "punctuationDelay": self.punctuation_delay,
        }


@dataclass(frozen=True)
class ScriptLine:
    character: str
    text: str


@dataclass(frozen=True)
class Script:
    id: str
    name: str
    type: str = ""
    characters: tuple[str, ...] = ()
    lines: tuple[ScriptLine, ...] = ()
    # Valid per-script timing overrides, keyed by their catalog names
    timing_overrides: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_payload(self) -> dict:
        payload = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "characters": list(self.characters),
            "lines": [{"character": ln.character, "text": ln.text} for ln in self.lines],
        }
        payload.update(self.timing_overrides)
        return payload


@dataclass
class PlaybackTimer:
    """Handle for the one scheduled tick chain a room may own."""

    token: int
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class PlaybackState:
    active: bool = False
    phase: PlaybackPhase = "idle"
    current_line_index: int = 0
    current_char_index: int = 0
    timing: TimingConfig = field(default_factory=TimingConfig)


@dataclass
class Room:
    name: str
    admin: str
    # connection sid -> display name
    members: dict[str, str] = field(default_factory=dict)
    # connection sid -> identity its claims are recorded under
    member_identities: dict[str, str] = field(default_factory=dict)
    script: Script | None = None
    # character -> claiming identity
    character_assignments: dict[str, str] = field(default_factory=dict)
    playback: PlaybackState = field(default_factory=PlaybackState)
    timer: PlaybackTimer | None = None
