from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("scripts", __name__)


@bp.get("/scripts")
def list_scripts():
    catalog = current_app.extensions["readthrough"]["catalog"]
    return jsonify({"scripts": catalog.to_payload()})


@bp.get("/scripts/<script_id>")
def get_script(script_id: str):
    catalog = current_app.extensions["readthrough"]["catalog"]
    script = catalog.find(script_id)
    if script is None:
        return jsonify({"error": "not_found"}), 404
    return jsonify(script.to_payload())
