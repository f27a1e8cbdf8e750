"""
Portal exception hierarchy.

Services raise these; route handlers in main.py map them to JSON responses
once, so every endpoint reports errors the same way:

    {"success": false, "message": "...", "field": "..."}

Usage:
    from adp_portal.exceptions import ValidationError

    raise ValidationError("Cost is required", field="cost")
"""


class PortalError(Exception):
    """Base class for every error raised by the workflow core."""

    status_code = 400

    def __init__(self, message: str, field: str = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        data = {"success": False, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class ValidationError(PortalError):
    """A submitted value failed a business rule (missing field, bad format)."""

    status_code = 422


class BudgetExceededError(ValidationError):
    """A work's cost is above the remaining budget.

    The message carries the exact remaining amount; it is shown to the user.
    """

    def __init__(self, message: str, remaining) -> None:
        self.remaining = remaining
        super().__init__(message, field="cost")


class CRShortfallError(ValidationError):
    """Forward attempted before the CR's declared number of works was submitted."""

    def __init__(self, required: int, submitted: int) -> None:
        self.required = required
        self.submitted = submitted
        self.shortfall = required - submitted
        super().__init__(
            f"You need to submit {self.shortfall} more work(s) before forwarding. "
            f"Required: {required}, Submitted: {submitted}",
            field="numberOfWorks",
        )


class AttachmentError(PortalError):
    """An attachment could not be converted; the whole forward is aborted."""

    status_code = 422

    def __init__(self, field: str, reason: str = "") -> None:
        self.reason = reason
        message = f"Could not read attachment '{field}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, field=field)


class StorageError(PortalError):
    """A storage backend failed to read or write."""

    status_code = 503


class AuthError(PortalError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class PermissionDenied(AuthError):
    """Authenticated, but the session's role may not use this endpoint."""

    status_code = 403
