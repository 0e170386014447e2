from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    ext = current_app.extensions["readthrough"]
    return jsonify(
        {
            "status": "ok",
            "rooms": len(ext["registry"].list_rooms()),
            "scripts": len(ext["catalog"]),
        }
    )
