"""Domain errors shared by the storage gateway, services and HTTP layer.

Every failure is scoped to the single in-flight operation; none of these is
process-fatal. The HTTP layer maps them to status codes in ``app.main``.
"""

from __future__ import annotations


class PortalError(Exception):
    code = "PORTAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError, ValueError):
    """Caller-supplied data violates an input contract."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(PortalError, LookupError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidStateError(PortalError):
    """Operation not allowed in the attempt's current state."""

    code = "INVALID_STATE"
    status_code = 409


class StorageError(PortalError):
    """Transport or persistence failure. Never retried by the storage layer."""

    code = "STORAGE_ERROR"
    status_code = 502
    public_message = "Failed to load or save data. Please try again."
