from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock

from werkzeug.security import check_password_hash, generate_password_hash

logger = logging.getLogger(__name__)


class CredentialStore:
    """Identity -> password hash, kept in a JSON file.

    Independent of rooms and presence; it only answers whether a secret
    matches an identity.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = Lock()

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError:
            logger.warning("Credential file %s is not valid JSON, treating it as empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def _write(self, users: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".users-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(users, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def create(self, identity: str, secret: str) -> bool:
        if not identity or not secret:
            return False
        with self._lock:
            users = self._read()
            if identity in users:
                return False
            users[identity] = generate_password_hash(secret)
            self._write(users)
        logger.info("Created account %s", identity)
        return True

    def verify(self, identity: str, secret: str) -> bool:
        if not identity or not secret:
            return False
        with self._lock:
            hashed = self._read().get(identity)
        if hashed is None:
            return False
        return check_password_hash(hashed, secret)
