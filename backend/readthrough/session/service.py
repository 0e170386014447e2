from __future__ import annotations

import logging
from threading import RLock

from ..config import Config
from . import casting
from .errors import Conflict, NotFound, Unauthorized
from .models import Room, Script, TimingConfig

logger = logging.getLogger(__name__)


def default_timing() -> TimingConfig:
    return TimingConfig(
        karaoke_step=Config.KARAOKE_STEP,
        base_delay=Config.BASE_DELAY_MS,
        punctuation_delay=Config.PUNCTUATION_DELAY_MS,
    )


def resolve_timing(script: Script | None, defaults: TimingConfig) -> TimingConfig:
    """Defaults with the script's overrides applied; the catalog only keeps valid ones."""
    if script is None:
        return defaults

    overrides = script.timing_overrides
    return TimingConfig(
        karaoke_step=overrides.get("karaokeStep", defaults.karaoke_step),
        base_delay=overrides.get("baseDelay", defaults.base_delay),
        punctuation_delay=overrides.get("punctuationDelay", defaults.punctuation_delay),
    )


def cancel_timer(room: Room) -> bool:
    """Cancel the room's pending tick chain. Returns True if one was pending."""
    timer = room.timer
    room.timer = None
    if timer is None:
        return False
    timer.cancel()
    return True


def reset_playback(room: Room) -> bool:
    """Stop playback and rewind the cursor. Returns True if a scene was running."""
    was_active = room.playback.active
    cancel_timer(room)
    room.playback.active = False
    room.playback.phase = "idle"
    room.playback.current_line_index = 0
    room.playback.current_char_index = 0
    return was_active


class SessionRegistry:
    """All active rooms of this process, keyed by room name.

    Every mutation of a room, including playback ticks, happens while holding
    ``lock``.
    """

    def __init__(self, timing: TimingConfig | None = None) -> None:
        self.lock = RLock()
        self.default_timing = timing or default_timing()
        self._rooms: dict[str, Room] = {}

    def create_room(self, admin: str | None, name: str) -> Room:
        with self.lock:
            if not admin:
                raise Unauthorized("Log in before creating a room")
            if name in self._rooms:
                raise Conflict(f"Room '{name}' already exists")
            for r in self._rooms.values():
                if r.admin == admin:
                    raise Conflict(f"You already administer room '{r.name}'")

            room = Room(name=name, admin=admin)
            room.playback.timing = self.default_timing
            self._rooms[name] = room
            logger.info("Room created: %s (admin %s)", name, admin)
            return room

    def get_room(self, name: str) -> Room | None:
        with self.lock:
            return self._rooms.get(name)

    def require_room(self, name: str) -> Room:
        room = self.get_room(name)
        if room is None:
            raise NotFound(f"Room '{name}' does not exist")
        return room

    def delete_room(self, name: str, requester: str | None) -> Room | None:
        """Remove a room. Returns None when it is already gone."""
        with self.lock:
            room = self._rooms.get(name)
            if room is None:
                return None
            if not requester or room.admin != requester:
                raise Unauthorized("Only the room admin can delete this room")

            reset_playback(room)
            del self._rooms[name]
            logger.info("Room deleted: %s", name)
            return room

    def list_rooms(self) -> list[Room]:
        with self.lock:
            return list(self._rooms.values())

    def room_listing(self) -> list[dict]:
        with self.lock:
            return [{"name": r.name, "admin": r.admin} for r in self._rooms.values()]

    def join_room(self, name: str, sid: str, display_name: str, identity: str | None = None) -> Room:
        """Add a connection to a room; its claims are recorded under ``identity``."""
        with self.lock:
            room = self.require_room(name)
            room.members[sid] = display_name
            room.member_identities[sid] = identity or display_name
            return room

    def leave_room(self, name: str, sid: str) -> tuple[Room | None, list[str]]:
        with self.lock:
            room = self._rooms.get(name)
            if room is None or sid not in room.members:
                return room, []
            return room, self._remove_member(room, sid)

    def disconnect(self, sid: str) -> list[tuple[Room, list[str]]]:
        """Drop ``sid`` from every room it belongs to."""
        with self.lock:
            affected = []
            for room in self._rooms.values():
                if sid in room.members:
                    affected.append((room, self._remove_member(room, sid)))
            return affected

    def _remove_member(self, room: Room, sid: str) -> list[str]:
        display_name = room.members.pop(sid)
        identity = room.member_identities.pop(sid, display_name)
        # Another connection of the same identity keeps its claims alive.
        if identity in room.member_identities.values():
            return []
        return casting.release_claims(room, identity)

    def require_member(self, room: Room, sid: str | None) -> str:
        """The identity ``sid`` holds in ``room``; non-members are refused."""
        with self.lock:
            identity = room.member_identities.get(sid) if sid else None
            if identity is None:
                raise Unauthorized(f"Join room '{room.name}' first")
            return identity

    def change_claim(self, name: str, sid: str, character: str, claim) -> tuple[Room, bool]:
        """Apply ``claim`` (assign or unassign) for the member behind ``sid``."""
        with self.lock:
            room = self.require_room(name)
            identity = self.require_member(room, sid)
            return room, claim(room, character, identity)

    def select_script(self, name: str, requester: str | None, script: Script | None) -> tuple[Room, bool]:
        """Set or clear the room's script. Returns (room, scene_was_running)."""
        with self.lock:
            room = self.require_room(name)
            if not requester or room.admin != requester:
                raise Unauthorized("Only the room admin can select the script")

            was_active = reset_playback(room)
            room.script = script
            casting.reset_assignments(room)
            room.playback.timing = resolve_timing(script, self.default_timing)
            logger.info("Room %s selected script %s", name, script.id if script else None)
            return room, was_active

    def reset_assignments(self, name: str, requester: str | None) -> Room:
        with self.lock:
            room = self.require_room(name)
            if not requester or room.admin != requester:
                raise Unauthorized("Only the room admin can reset assignments")
            casting.reset_assignments(room)
            return room


def members_payload(room: Room) -> dict:
    return {"users": list(room.members.values()), "admin": room.admin}


def script_selected_payload(room: Room) -> dict:
    payload = {
        "scriptId": room.script.id if room.script else None,
        "scriptData": room.script.to_payload() if room.script else None,
        "admin": room.admin,
    }
    payload.update(room.playback.timing.to_payload())
    return payload


def progress_payload(room: Room) -> dict:
    return {
        "currentLineIndex": room.playback.current_line_index,
        "currentCharIndex": room.playback.current_char_index,
    }


def scene_payload(room: Room) -> dict:
    payload = {
        "scriptData": room.script.to_payload() if room.script else None,
        "characterAssignments": dict(room.character_assignments),
    }
    payload.update(progress_payload(room))
    return payload


def sync_snapshot(registry: SessionRegistry, room: Room) -> dict:
    """Everything a late joiner needs, read in one go."""
    with registry.lock:
        return {
            "scriptSelected": script_selected_payload(room) if room.script else None,
            "characterAssignments": dict(room.character_assignments),
            "sceneStarted": scene_payload(room) if room.playback.active else None,
        }


def public_state(registry: SessionRegistry, room: Room) -> dict:
    with registry.lock:
        return {
            "name": room.name,
            "admin": room.admin,
            "users": list(room.members.values()),
            "scriptId": room.script.id if room.script else None,
            "characterAssignments": dict(room.character_assignments),
            "playback": {
                "active": room.playback.active,
                "phase": room.playback.phase,
                **progress_payload(room),
            },
        }
