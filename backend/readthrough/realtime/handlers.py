from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO, close_room, emit, join_room, leave_room

from ..session import casting, service
from ..session.catalog import ScriptCatalog
from ..session.errors import NotFound, SessionError
from ..session.playback import PlaybackScheduler
from ..session.presence import PresenceTracker
from ..session.service import SessionRegistry
from ..utils.ip import get_client_ip
from . import events

logger = logging.getLogger(__name__)


def _validate_name(name: str, max_len: int = 64) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > max_len:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _text(payload: dict, *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def register_socketio_handlers(
    socketio: SocketIO,
    registry: SessionRegistry,
    presence: PresenceTracker,
    catalog: ScriptCatalog,
) -> PlaybackScheduler:
    scheduler = PlaybackScheduler(socketio, registry)

    def _fail(err: SessionError) -> dict:
        logger.debug("Request from %s failed: %s", request.sid, err.message)
        emit(events.ERROR_MESSAGE, err.to_payload())
        return {"ok": False, "error": err.code}

    def _invalid_payload() -> dict:
        emit(events.ERROR_MESSAGE, {"error": "invalid_payload", "message": "Invalid request"})
        return {"ok": False, "error": "invalid_payload"}

    def _broadcast_rooms() -> None:
        socketio.emit(events.ROOMS, registry.room_listing())

    def _broadcast_active_users() -> None:
        socketio.emit(events.ACTIVE_USERS, presence.active_users())

    def _broadcast_members(room) -> None:
        with registry.lock:
            payload = service.members_payload(room)
        socketio.emit(events.ROOM_STATE, payload, to=room.name)

    def _broadcast_assignments(room) -> None:
        with registry.lock:
            payload = dict(room.character_assignments)
        socketio.emit(events.CHARACTER_ASSIGNMENTS, payload, to=room.name)

    @socketio.on("connect")
    def on_connect(auth=None):
        logger.info("Socket connected: %s from %s", request.sid, get_client_ip(request))

    @socketio.on(events.LOGIN)
    def on_login(data):
        payload = data or {}
        identity = _text(payload, "identity", "username")
        if not _validate_name(identity, max_len=32):
            return _invalid_payload()

        if presence.login(request.sid, identity):
            _broadcast_active_users()
        logger.info("Login: %s (%s)", identity, request.sid)

        emit(events.ROOMS, registry.room_listing())
        emit(events.SCRIPT_LIST_FULL, catalog.to_payload())
        emit(events.ACTIVE_USERS, presence.active_users())
        return {"ok": True}

    @socketio.on(events.CREATE_ROOM)
    def on_create_room(data):
        payload = data or {}
        room_name = _text(payload, "roomName", "room")
        if not _validate_name(room_name):
            return _invalid_payload()

        try:
            registry.create_room(presence.identity_for(request.sid), room_name)
        except SessionError as err:
            return _fail(err)

        _broadcast_rooms()
        return {"ok": True}

    @socketio.on(events.DELETE_ROOM)
    def on_delete_room(data):
        payload = data or {}
        room_name = _text(payload, "roomName", "room")
        if not room_name:
            return _invalid_payload()

        try:
            room = registry.delete_room(room_name, presence.identity_for(request.sid))
        except SessionError as err:
            return _fail(err)

        if room is None:
            return {"ok": False}

        socketio.emit(events.ROOM_DELETED, {"room": room_name}, to=room_name)
        close_room(room_name)
        _broadcast_rooms()
        return {"ok": True}

    @socketio.on(events.JOIN_ROOM)
    def on_join_room(data):
        payload = data or {}
        room_name = _text(payload, "room", "roomName")
        if not room_name:
            return _invalid_payload()

        name = _text(payload, "identity", "username") or presence.identity_for(request.sid) or "Unknown"
        if not _validate_name(name, max_len=32):
            return _invalid_payload()

        try:
            room = registry.join_room(
                room_name, request.sid, name, identity=presence.identity_for(request.sid)
            )
        except SessionError as err:
            return _fail(err)

        join_room(room_name)
        snapshot = service.sync_snapshot(registry, room)

        _broadcast_members(room)
        emit(events.SCRIPT_LIST_FULL, catalog.to_payload())
        if snapshot["scriptSelected"]:
            emit(events.SCRIPT_SELECTED, snapshot["scriptSelected"])
        emit(events.CHARACTER_ASSIGNMENTS, snapshot["characterAssignments"])
        if snapshot["sceneStarted"]:
            emit(events.SCENE_STARTED, snapshot["sceneStarted"])

        logger.info("%s joined room %s", name, room_name)
        return {"ok": True}

    @socketio.on(events.LEAVE_ROOM)
    def on_leave_room(data):
        payload = data or {}
        room_name = _text(payload, "room", "roomName")
        if not room_name:
            return _invalid_payload()

        room, released = registry.leave_room(room_name, request.sid)
        leave_room(room_name)
        if room is None:
            return {"ok": False}

        _broadcast_members(room)
        if released:
            _broadcast_assignments(room)
        return {"ok": True}

    @socketio.on(events.SELECT_SCRIPT)
    def on_select_script(data):
        payload = data or {}
        room_name = _text(payload, "room")
        if not room_name:
            return _invalid_payload()

        script_id = _text(payload, "scriptId", "scriptName")
        script = None
        if script_id:
            script = catalog.find(script_id)
            if script is None:
                return _fail(NotFound(f"Script '{script_id}' does not exist"))

        try:
            room, was_active = registry.select_script(room_name, presence.identity_for(request.sid), script)
        except SessionError as err:
            return _fail(err)

        with registry.lock:
            selected = service.script_selected_payload(room)
        if was_active:
            socketio.emit(events.SCENE_STOPPED, {"room": room_name}, to=room_name)
        socketio.emit(events.SCRIPT_SELECTED, selected, to=room_name)
        _broadcast_assignments(room)
        return {"ok": True}

    def _change_claim(data, claim) -> dict:
        payload = data or {}
        room_name = _text(payload, "room")
        character = _text(payload, "character")
        if not room_name or not character:
            return _invalid_payload()

        try:
            room, changed = registry.change_claim(room_name, request.sid, character, claim)
        except SessionError as err:
            return _fail(err)
        if not changed:
            return {"ok": False}

        _broadcast_assignments(room)
        return {"ok": True}

    @socketio.on(events.ASSIGN_CHARACTER)
    def on_assign_character(data):
        return _change_claim(data, casting.assign_character)

    @socketio.on(events.UNASSIGN_CHARACTER)
    def on_unassign_character(data):
        return _change_claim(data, casting.unassign_character)

    @socketio.on(events.UNSELECT_CHARACTER)
    def on_unselect_character(data):
        return _change_claim(data, casting.unassign_character)

    @socketio.on(events.RESET_ASSIGNMENTS)
    def on_reset_assignments(data):
        payload = data or {}
        room_name = _text(payload, "room")
        if not room_name:
            return _invalid_payload()

        try:
            room = registry.reset_assignments(room_name, presence.identity_for(request.sid))
        except SessionError as err:
            return _fail(err)

        _broadcast_assignments(room)
        return {"ok": True}

    @socketio.on(events.START_SCENE)
    def on_start_scene(data):
        payload = data or {}
        room_name = _text(payload, "room")
        if not room_name:
            return _invalid_payload()

        try:
            scheduler.start_scene(room_name, request.sid)
        except SessionError as err:
            return _fail(err)
        return {"ok": True}

    @socketio.on(events.STOP_SCENE)
    def on_stop_scene(data):
        payload = data or {}
        room_name = _text(payload, "room")
        if not room_name:
            return _invalid_payload()

        try:
            stopped = scheduler.stop_scene(room_name, request.sid)
        except SessionError as err:
            return _fail(err)
        return {"ok": stopped}

    @socketio.on(events.END_SCENE)
    def on_end_scene(data):
        payload = data or {}
        room_name = _text(payload, "room")
        if not room_name:
            return _invalid_payload()

        try:
            scheduler.end_scene(room_name, request.sid)
        except SessionError as err:
            return _fail(err)
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        identity = presence.logout(request.sid)
        if identity is not None:
            _broadcast_active_users()

        for room, released in registry.disconnect(request.sid):
            _broadcast_members(room)
            if released:
                _broadcast_assignments(room)

        logger.info("Socket disconnected: %s (%s)", request.sid, identity)

    return scheduler
