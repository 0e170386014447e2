from __future__ import annotations


class SessionError(Exception):
    """Failure reported to the requesting connection only."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class Unauthorized(SessionError):
    code = "unauthorized"


class NotFound(SessionError):
    code = "not_found"


class Conflict(SessionError):
    code = "conflict"


class PreconditionFailed(SessionError):
    code = "precondition_failed"


class InvalidState(SessionError):
    code = "invalid_state"
