from __future__ import annotations

from pathlib import Path

from flask import Blueprint, current_app, send_from_directory

bp = Blueprint("media", __name__)


@bp.get("/<any(audio, images, video):kind>/<path:path>")
def media(kind: str, path: str):
    directory = Path(current_app.config["ASSETS_DIR"]) / kind
    mimetype = "video/mp4" if path.endswith(".mp4") else None
    return send_from_directory(directory, path, mimetype=mimetype)
