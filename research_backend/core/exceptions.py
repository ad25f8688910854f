"""Error taxonomy shared by services and routes.

Services raise these; the handlers registered in ``research_backend.main``
turn them into ``{"ok": false, "message": ...}`` responses with the
matching status code.
"""

from typing import Any, Dict, Optional


class ResearchBackendError(Exception):
    """Base class for every expected, client-facing failure."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "message": self.message}


class ValidationError(ResearchBackendError):
    """Missing or malformed input."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class AuthenticationError(ResearchBackendError):
    status_code = 401
    code = "AUTH_FAILED"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationError(ResearchBackendError):
    status_code = 403
    code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Forbidden: insufficient role"):
        super().__init__(message)


class NotFoundError(ResearchBackendError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: Any = None):
        message = f"{resource_type} not found"
        super().__init__(message, details={"resource_type": resource_type, "resource_id": resource_id})


class ConflictError(ResearchBackendError):
    status_code = 409
    code = "CONFLICT"


class DuplicateAssignmentError(ConflictError):
    code = "DUPLICATE_ASSIGNMENT"

    def __init__(self, paper_id: int, reviewer_id: int):
        super().__init__(
            "Paper is already assigned to this reviewer",
            details={"paper_id": paper_id, "reviewer_id": reviewer_id},
        )


class InvalidTransitionError(ConflictError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move paper from '{current}' to '{requested}'",
            details={"current": current, "requested": requested},
        )
