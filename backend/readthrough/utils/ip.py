from __future__ import annotations

from flask import Request, current_app


def _first_forwarded(value: str) -> str | None:
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts[0] if parts else None


def get_client_ip(request: Request) -> str | None:
    """Best-effort client address, for logging only."""
    if current_app.config.get("TRUST_PROXY_HEADERS", False):
        for header in ("CF-Connecting-IP", "X-Real-IP"):
            value = request.headers.get(header)
            if value:
                return value.strip()

        xff = request.headers.get("X-Forwarded-For")
        if xff:
            forwarded = _first_forwarded(xff)
            if forwarded:
                return forwarded

    return request.remote_addr or None
