from readthrough.session import casting
from readthrough.session.models import Room

from conftest import make_script


def _room(script=None):
    room = Room(name="r", admin="alice")
    room.script = script if script is not None else make_script()
    return room


def test_first_claim_wins():
    room = _room()

    assert casting.assign_character(room, "A", "bob") is True
    assert casting.assign_character(room, "A", "carol") is False
    assert room.character_assignments == {"A": "bob"}


def test_claim_requires_script_character():
    room = _room()

    assert casting.assign_character(room, "Narrator", "bob") is False
    assert casting.assign_character(Room(name="empty", admin="alice"), "A", "bob") is False
    assert room.character_assignments == {}


def test_only_claimant_can_release():
    room = _room()
    casting.assign_character(room, "A", "bob")

    assert casting.unassign_character(room, "A", "carol") is False
    assert room.character_assignments == {"A": "bob"}
    assert casting.unassign_character(room, "B", "bob") is False
    assert casting.unassign_character(room, "A", "bob") is True
    assert room.character_assignments == {}


def test_released_character_can_be_claimed_again():
    room = _room()
    casting.assign_character(room, "A", "bob")
    casting.unassign_character(room, "A", "bob")

    assert casting.assign_character(room, "A", "carol") is True


def test_release_claims_and_cast_coverage():
    room = _room()
    casting.assign_character(room, "A", "bob")
    assert casting.missing_characters(room) == ["B"]
    assert casting.cast_complete(room) is False

    casting.assign_character(room, "B", "bob")
    assert casting.cast_complete(room) is True

    assert sorted(casting.release_claims(room, "bob")) == ["A", "B"]
    assert room.character_assignments == {}


def test_reset_assignments_clears_everything():
    room = _room()
    casting.assign_character(room, "A", "bob")
    casting.assign_character(room, "B", "carol")

    casting.reset_assignments(room)

    assert room.character_assignments == {}
