import os
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[2]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Storage
    SCRIPTS_DIR = os.environ.get("SCRIPTS_DIR", str(_ROOT / "scripts"))
    USERS_FILE = os.environ.get("USERS_FILE", str(_ROOT / "data" / "users.json"))
    ASSETS_DIR = os.environ.get("ASSETS_DIR", str(_ROOT / "assets"))

    # Playback (milliseconds); scripts may override per script
    KARAOKE_STEP = int(os.environ.get("KARAOKE_STEP", "2"))
    BASE_DELAY_MS = int(os.environ.get("BASE_DELAY_MS", "90"))
    PUNCTUATION_DELAY_MS = int(os.environ.get("PUNCTUATION_DELAY_MS", "300"))
