"""Worker invoice state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from timesheet_engine.errors import TimesheetError


class InvoiceStatus(str, Enum):
    """Invoice status values."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PAID = "PAID"


class InvalidTransitionError(TimesheetError):
    """Raised when an invalid state transition is attempted."""

    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = str(getattr(from_status, "value", from_status))
        self.to_status = str(getattr(to_status, "value", to_status))
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg, context={"from_status": self.from_status, "to_status": self.to_status}
        )


class InvoiceStateMachine:
    """State machine for worker invoice status transitions.

    Allowed transitions:
    - DRAFT → SUBMITTED (worker submits the week)
    - SUBMITTED → PAID (admin)
    - PAID → SUBMITTED (admin undo)

    DRAFT is implicit: it means no invoice row exists yet. Nothing returns
    to DRAFT once submitted.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.DRAFT: [InvoiceStatus.SUBMITTED],
        InvoiceStatus.SUBMITTED: [InvoiceStatus.PAID],
        InvoiceStatus.PAID: [InvoiceStatus.SUBMITTED],
    }

    # Statuses where the frozen snapshot may be edited by an admin
    SNAPSHOT_EDITABLE = {
        InvoiceStatus.SUBMITTED,
        InvoiceStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status == InvoiceStatus.DRAFT:
            raise InvalidTransitionError(
                from_status, to_status, "a submitted invoice cannot return to draft"
            )
        if from_status == to_status:
            raise InvalidTransitionError(
                from_status, to_status, f"invoice is already {to_status.lower()}"
            )
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_undo(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition reverses a payment (paid → submitted)."""
        return from_status == InvoiceStatus.PAID and to_status == InvoiceStatus.SUBMITTED

    @classmethod
    def is_snapshot_editable(cls, status: str) -> bool:
        """Check if hours/rate/amount may be edited directly."""
        return status in cls.SNAPSHOT_EDITABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
