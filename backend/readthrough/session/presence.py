from __future__ import annotations

from threading import RLock


class PresenceTracker:
    """Logged-in identities, tracked per connection."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._by_sid: dict[str, str] = {}
        # identity -> first login order
        self._order: dict[str, None] = {}

    def login(self, sid: str, identity: str) -> bool:
        """Returns True when the active user list changed."""
        with self._lock:
            previous = self._by_sid.get(sid)
            self._by_sid[sid] = identity
            changed = identity not in self._order
            self._order.setdefault(identity, None)
            if previous is not None and previous != identity:
                changed = self._forget_if_unused(previous) or changed
            return changed

    def logout(self, sid: str) -> str | None:
        with self._lock:
            identity = self._by_sid.pop(sid, None)
            if identity is not None:
                self._forget_if_unused(identity)
            return identity

    def identity_for(self, sid: str) -> str | None:
        with self._lock:
            return self._by_sid.get(sid)

    def active_users(self) -> list[str]:
        with self._lock:
            return list(self._order.keys())

    def _forget_if_unused(self, identity: str) -> bool:
        if identity in self._by_sid.values():
            return False
        self._order.pop(identity, None)
        return True
