"""Character claims for a room.

Callers hold the registry lock. Claims are first-come-first-served: a
character stays with its claimant until that same identity releases it, the
room's assignments are reset, or the script changes.
"""
from __future__ import annotations

from .models import Room


def assign_character(room: Room, character: str, identity: str) -> bool:
    if not identity or room.script is None:
        return False
    if character not in room.script.characters:
        return False
    if character in room.character_assignments:
        return False
    room.character_assignments[character] = identity
    return True


def unassign_character(room: Room, character: str, identity: str) -> bool:
    if not identity:
        return False
    if room.character_assignments.get(character) != identity:
        return False
    del room.character_assignments[character]
    return True


def reset_assignments(room: Room) -> None:
    room.character_assignments = {}


def release_claims(room: Room, identity: str) -> list[str]:
    """Drop every claim held by ``identity``; returns the released characters."""
    released = [c for c, who in room.character_assignments.items() if who == identity]
    for character in released:
        del room.character_assignments[character]
    return released


def missing_characters(room: Room) -> list[str]:
    if room.script is None:
        return []
    return [c for c in room.script.characters if not room.character_assignments.get(c)]


def cast_complete(room: Room) -> bool:
    return room.script is not None and not missing_characters(room)
