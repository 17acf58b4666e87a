"""Error types shared by services and routers.

Every error carries a stable machine-readable ``kind`` and the HTTP status it
maps to at the API boundary (see ``commission_guard.main``).
"""

from typing import Any, Dict, Optional


class CommissionGuardError(Exception):
    """Base exception for the Commission Guard backend."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_payload(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(CommissionGuardError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = 400


class AuthenticationError(CommissionGuardError):
    """No usable identity on the request."""

    kind = "authentication_error"
    status_code = 401


class AuthorizationError(CommissionGuardError):
    """Caller lacks the role, or does not own the entity."""

    kind = "authorization_error"
    status_code = 403


class NotFound(CommissionGuardError):
    kind = "not_found"
    status_code = 404


class InvalidStateTransition(CommissionGuardError):
    """Breach status transition not permitted from the current state."""

    kind = "invalid_state_transition"
    status_code = 409

    def __init__(self, message: str, current_status: Optional[str] = None, **context: Any):
        super().__init__(message, **context)
        self.current_status = current_status

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["currentStatus"] = self.current_status
        return payload


class ProviderUnavailable(CommissionGuardError):
    """A single public-records provider failed. Recovered inside the scanner."""

    kind = "provider_unavailable"
    status_code = 502

    def __init__(self, provider: str, message: str, **context: Any):
        super().__init__(f"{provider}: {message}", **context)
        self.provider = provider


class PersistenceError(CommissionGuardError):
    kind = "persistence_error"
    status_code = 500

    def to_payload(self) -> Dict[str, Any]:
        # never expose storage detail to the caller
        return {"kind": self.kind, "message": "Internal Server Error"}


class InternalError(CommissionGuardError):
    """Unexpected failure caught at the request boundary."""

    kind = "internal_error"
    status_code = 500

    def to_payload(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": "Internal Server Error"}
