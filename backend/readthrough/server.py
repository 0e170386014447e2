from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth.store import CredentialStore
from .config import Config
from .realtime.handlers import register_socketio_handlers
from .routes.auth import bp as auth_bp
from .routes.health import bp as health_bp
from .routes.media import bp as media_bp
from .routes.rooms import bp as rooms_bp
from .routes.scripts import bp as scripts_bp
from .session.catalog import load_catalog
from .session.models import TimingConfig
from .session.presence import PresenceTracker
from .session.service import SessionRegistry


def _async_mode(app: Flask) -> str:
    configured = app.config.get("SOCKETIO_ASYNC_MODE") or os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if configured:
        return configured
    # eventlet is only installed where it still works.
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def _serve_frontend(app: Flask, dist_dir: Path) -> None:
    @app.get("/")
    def index():
        return send_from_directory(dist_dir, "index.html")

    @app.get("/<path:path>")
    def static_proxy(path: str):
        if (dist_dir / path).is_file():
            return send_from_directory(dist_dir, path)
        return send_from_directory(dist_dir, "index.html")


def create_app(overrides: dict[str, Any] | None = None) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_async_mode(app),
    )

    registry = SessionRegistry(
        TimingConfig(
            karaoke_step=app.config["KARAOKE_STEP"],
            base_delay=app.config["BASE_DELAY_MS"],
            punctuation_delay=app.config["PUNCTUATION_DELAY_MS"],
        )
    )
    presence = PresenceTracker()
    catalog = load_catalog(app.config["SCRIPTS_DIR"])
    credentials = CredentialStore(app.config["USERS_FILE"])

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(scripts_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(media_bp)

    scheduler = register_socketio_handlers(socketio, registry, presence, catalog)

    app.extensions["readthrough"] = {
        "registry": registry,
        "presence": presence,
        "catalog": catalog,
        "credentials": credentials,
        "scheduler": scheduler,
    }

    if dist_dir.exists():
        _serve_frontend(app, dist_dir)

    return app, socketio
