"""
Domain errors for form configuration operations.

Every error is raised before anything is persisted; the stored configuration
is left exactly as it was before the failing call.
"""
from typing import Any, List, Optional


class FormConfigError(Exception):
    """Base class for all form configuration errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class SchemaValidationError(FormConfigError, ValueError):
    """A schema invariant was violated (duplicate keys, bad options, cycles...)."""

    status_code = 422

    def __init__(self, message: str, violations: Optional[List[Any]] = None):
        super().__init__(message)
        self.violations = list(violations or [])

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "violations": [
                v.model_dump() if hasattr(v, "model_dump") else v for v in self.violations
            ],
        }


class ProtectedItemError(FormConfigError, PermissionError):
    """Deletion of a built-in section or field was attempted."""

    status_code = 403


class InvalidOperationError(FormConfigError):
    """The operation is not allowed in the configuration's current state."""

    status_code = 409


class NotAvailableError(FormConfigError):
    """The operation needs history that does not exist (e.g. no rollback snapshot)."""

    status_code = 409


class NotFoundError(FormConfigError, LookupError):
    """No configuration, template, section or field matches the request."""

    status_code = 404
