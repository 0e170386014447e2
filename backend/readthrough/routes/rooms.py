from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..session import service

bp = Blueprint("rooms", __name__)


@bp.get("/rooms")
def list_rooms():
    registry = current_app.extensions["readthrough"]["registry"]
    return jsonify({"rooms": registry.room_listing()})


@bp.get("/rooms/<name>")
def get_room(name: str):
    registry = current_app.extensions["readthrough"]["registry"]
    room = registry.get_room(name)
    if not room:
        return jsonify({"error": "not_found"}), 404
    return jsonify(service.public_state(registry, room))
