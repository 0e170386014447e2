from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

bp = Blueprint("auth", __name__)

logger = logging.getLogger(__name__)


def _credentials() -> tuple[str, str]:
    data = request.get_json(silent=True) or {}
    identity = data.get("identity") or data.get("username") or ""
    secret = data.get("secret") or data.get("password") or ""
    if not isinstance(identity, str) or not isinstance(secret, str):
        return "", ""
    return identity.strip(), secret


@bp.post("/signup")
def signup():
    identity, secret = _credentials()
    if not identity or not secret:
        return jsonify({"error": "invalid_payload"}), 400

    store = current_app.extensions["readthrough"]["credentials"]
    if not store.create(identity, secret):
        return jsonify({"error": "conflict"}), 409
    return jsonify({"ok": True, "identity": identity}), 201


@bp.post("/login")
def login():
    identity, secret = _credentials()
    if not identity or not secret:
        return jsonify({"error": "invalid_payload"}), 400

    store = current_app.extensions["readthrough"]["credentials"]
    if not store.verify(identity, secret):
        logger.info("Failed login for %s", identity)
        return jsonify({"error": "unauthorized"}), 401
    return jsonify({"ok": True, "identity": identity})
