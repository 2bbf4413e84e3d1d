"""Error types shared across the timesheet engine.

Every error raised by the services derives from :class:`TimesheetError` and
carries a machine-readable ``code`` plus the HTTP status the API layer maps it
to. Messages are user-facing.
"""

from __future__ import annotations

from typing import Any


class TimesheetError(Exception):
    """Base class for user-facing timesheet errors."""

    status_code: int = 400
    code: str = "TIMESHEET_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or {}
        super().__init__(message)


class InvalidFormatError(TimesheetError):
    """Malformed week label, date string or filter value."""

    status_code = 400
    code = "INVALID_FORMAT"


class ValidationFailedError(TimesheetError):
    """Well-formed input that breaks a business rule."""

    status_code = 422
    code = "VALIDATION_FAILED"


class AuthenticationError(TimesheetError):
    """No authenticated principal could be established."""

    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(TimesheetError):
    """Role-based access violation."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotFoundError(TimesheetError):
    """Referenced entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any = None, message: str | None = None):
        self.entity = entity
        self.identifier = identifier
        if message is None:
            message = f"{entity} not found"
        context = {"entity": entity}
        if identifier is not None:
            context["id"] = str(identifier)
        super().__init__(message, context=context)


class DuplicateInvoiceError(TimesheetError):
    """An invoice already exists for the contractor and week."""

    status_code = 409
    code = "DUPLICATE_INVOICE"

    def __init__(self, contractor_id: Any, week_start: Any):
        self.contractor_id = contractor_id
        self.week_start = week_start
        super().__init__(
            "Invoice already exists for this week",
            context={"contractor_id": str(contractor_id), "week_start": str(week_start)},
        )


class NotificationFailureError(TimesheetError):
    """The director notification could not be delivered; submission was reverted."""

    status_code = 503
    code = "NOTIFICATION_FAILURE"
    retryable = True

    def __init__(self, reason: str | None = None):
        self.reason = reason
        message = "Failed to send invoice email. Please try submitting again."
        super().__init__(message, context={"reason": reason} if reason else None)
