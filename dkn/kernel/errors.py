"""
Domain errors raised by the kernel and engines.

The HTTP layer maps each class to a status code in dkn.main; services never
build HTTP responses themselves.
"""

from typing import Iterable, Optional


class DKNError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(DKNError):
    """No resolved principal. Checked before any permission test."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class PermissionDenied(DKNError):
    """Principal resolved but lacks the required permission(s)."""

    status_code = 403

    def __init__(self, required: Iterable[str], current_role: Optional[str]):
        self.required = list(required)
        self.current_role = current_role
        super().__init__(
            f"Your role ({current_role}) does not have permission for this action"
        )


class ValidationError(DKNError):
    """Missing or malformed input, rejected before touching the store."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFound(DKNError):
    """
    Missing resource, or an ownership-scoped operation on a resource the
    principal does not own. Both cases use the same message.
    """

    status_code = 404

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found")


class Conflict(DKNError):
    """The resource is not in a state that allows the operation."""

    status_code = 409


class FlagAlreadyResolved(Conflict):
    def __init__(self):
        super().__init__("Flag is already resolved")


class StoreFailure(DKNError):
    """Opaque store error. Details are logged, never returned to callers."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
