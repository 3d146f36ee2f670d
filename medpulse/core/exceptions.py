"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception (role gate denial)."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class InvalidTransitionException(ConflictException):
    """Appointment is not in a state that allows the requested transition."""

    def __init__(self, current_status: str, action: str):
        """Initialize with the offending status and attempted action."""
        super().__init__(
            f"Cannot {action} an appointment that is {current_status}",
            details={"status": current_status, "action": action},
        )


class ConflictWarningException(ConflictException):
    """Scheduling conflict warning was not acknowledged by the acting user."""

    def __init__(self, warning: Any):
        """Initialize from a ConflictWarning."""
        super().__init__(warning.message, details=warning.model_dump(mode="json"))
        self.warning = warning


class ConfirmationRequiredException(AppException):
    """A destructive action was not confirmed by the acting user."""

    def __init__(self, message: str = "Confirmation required"):
        """Initialize with 428 status code."""
        super().__init__(message, status_code=428)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)
