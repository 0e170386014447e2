"""Server-driven karaoke playback.

Each room owns at most one tick chain. A chain runs as a background task that
alternates between advancing the room's cursor and sleeping for the delay the
tick computed. The room keeps a ``PlaybackTimer`` handle for the chain;
stopping, ending, reselecting or deleting the room cancels that handle, and a
chain that wakes up with a cancelled or replaced handle exits without
emitting anything.
"""
from __future__ import annotations

import itertools
import logging
import re

from ..realtime import events
from . import casting
from .errors import InvalidState, PreconditionFailed
from .models import PlaybackTimer, Room, TimingConfig
from .service import SessionRegistry, progress_payload, reset_playback, scene_payload

logger = logging.getLogger(__name__)

PUNCTUATION_RE = re.compile(r"[.,!?]")


def next_step(text: str, char_index: int, timing: TimingConfig) -> tuple[int, float]:
    """How far the next tick reveals and how long to wait after it.

    Scans up to ``karaoke_step`` characters from ``char_index``. The step stops
    on (and includes) the first punctuation mark and then waits
    ``punctuation_delay``; otherwise it takes the whole window, or what is
    left of the line, and waits ``base_delay``.
    """
    remaining = max(0, len(text) - char_index)
    window = min(timing.karaoke_step, remaining)
    for i in range(window):
        if PUNCTUATION_RE.match(text[char_index + i]):
            return i + 1, timing.punctuation_delay
    return window, timing.base_delay


class PlaybackScheduler:
    def __init__(self, socketio, registry: SessionRegistry) -> None:
        self._socketio = socketio
        self._registry = registry
        self._tokens = itertools.count(1)

    def _controlled_room(self, room_name: str, requester_sid: str | None) -> Room:
        room = self._registry.require_room(room_name)
        if requester_sid is not None:
            self._registry.require_member(room, requester_sid)
        return room

    def start_scene(self, room_name: str, requester_sid: str | None = None) -> Room:
        with self._registry.lock:
            room = self._controlled_room(room_name, requester_sid)
            if room.script is None:
                raise PreconditionFailed("Select a script first")
            if room.playback.active:
                raise InvalidState("The scene is already running")
            missing = casting.missing_characters(room)
            if missing:
                raise PreconditionFailed("All characters must be assigned (missing: %s)" % ", ".join(missing))
            if not room.script.lines:
                raise InvalidState("The selected script has no lines")

            reset_playback(room)
            room.playback.active = True
            room.playback.phase = "running"
            timer = PlaybackTimer(token=next(self._tokens))
            room.timer = timer

            self._socketio.emit(events.SCENE_STARTED, scene_payload(room), to=room_name)
            logger.info("Scene started in room %s (script %s)", room_name, room.script.id)

        self._socketio.start_background_task(self._run, room_name, timer)
        return room

    def stop_scene(self, room_name: str, requester_sid: str | None = None) -> bool:
        """Stop and rewind. Returns False if nothing was running."""
        with self._registry.lock:
            room = self._controlled_room(room_name, requester_sid)
            if not reset_playback(room):
                return False
            self._socketio.emit(events.SCENE_STOPPED, {"room": room_name}, to=room_name)
            logger.info("Scene stopped in room %s", room_name)
            return True

    def end_scene(self, room_name: str, requester_sid: str | None = None) -> bool:
        """Stop, rewind and clear the cast."""
        with self._registry.lock:
            room = self._controlled_room(room_name, requester_sid)
            was_active = reset_playback(room)
            casting.reset_assignments(room)
            self._socketio.emit(events.CHARACTER_ASSIGNMENTS, {}, to=room_name)
            self._socketio.emit(events.SCENE_STOPPED, {"room": room_name}, to=room_name)
            logger.info("Scene ended in room %s", room_name)
            return was_active

    def _run(self, room_name: str, timer: PlaybackTimer) -> None:
        delay = self._tick(room_name, timer)
        while delay is not None:
            self._socketio.sleep(delay / 1000.0)
            delay = self._tick(room_name, timer)

    def _tick(self, room_name: str, timer: PlaybackTimer) -> float | None:
        """Advance one step. Returns the delay before the next tick, or None to stop."""
        with self._registry.lock:
            room = self._registry.get_room(room_name)
            if timer.cancelled or room is None or room.timer is not timer or not room.playback.active:
                logger.debug("Dropping stale tick for room %s", room_name)
                return None

            pb = room.playback
            lines = room.script.lines if room.script else ()
            if pb.current_line_index >= len(lines):
                self._finish(room)
                return None

            text = lines[pb.current_line_index].text
            step, delay = next_step(text, pb.current_char_index, pb.timing)
            pb.current_char_index += step

            self._socketio.emit(events.LINE_PROGRESS, progress_payload(room), to=room_name)

            if pb.current_char_index >= len(text):
                pb.current_line_index += 1
                pb.current_char_index = 0
                if pb.current_line_index >= len(lines):
                    self._finish(room)
                    return None

            return delay

    def _finish(self, room: Room) -> None:
        room.timer = None
        room.playback.active = False
        room.playback.phase = "finished"
        self._socketio.emit(events.SCENE_FINISHED, {"room": room.name}, to=room.name)
        logger.info("Scene finished in room %s", room.name)
