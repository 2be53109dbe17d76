"""Error taxonomy shared by the services and the HTTP layer."""

from typing import Optional


class ClaimsError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class ValidationError(ClaimsError):
    status_code = 400
    default_message = "Invalid request"


class Conflict(ClaimsError):
    # Conflicts are reported as client errors, never retried
    status_code = 400
    default_message = "Request conflicts with the current state"


class InvalidTransition(Conflict):
    default_message = "Status transition not allowed"


class StaleItem(Conflict):
    default_message = "Item was modified concurrently, please retry"


class Forbidden(ClaimsError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(ClaimsError):
    status_code = 404
    default_message = "Not found"


class StorageFailure(ClaimsError):
    status_code = 500
    default_message = "Storage unavailable"
