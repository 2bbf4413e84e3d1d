"""Protocols and payload types for notification and document adapters.

Invoice submission talks to two external collaborators: a notifier that
delivers the director email and a renderer that turns invoice data into a
PDF. Both are injected so the service never depends on a concrete transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class InvoiceEntryLine:
    """One worked day on an invoice."""

    work_date: date
    builder_name: str
    company_code: str
    location_label: str
    tonnage_hours: Decimal
    day_labour_hours: Decimal

    @property
    def total_hours(self) -> Decimal:
        return self.tonnage_hours + self.day_labour_hours


@dataclass(frozen=True)
class InvoiceData:
    """Everything needed to render and announce a submitted invoice."""

    invoice_id: UUID
    contractor_name: str
    contractor_email: str | None
    week_start: date
    week_end: date
    week_label: str
    hourly_rate: Decimal
    total_hours: Decimal
    total_amount: Decimal
    submitted_at: datetime
    currency: str = "AUD"
    entries: tuple[InvoiceEntryLine, ...] = ()


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class EmailMessageSpec:
    """A rendered email ready to be handed to a notifier."""

    to: tuple[str, ...]
    subject: str
    text: str
    html: str | None = None
    sender: str | None = None
    attachments: tuple[EmailAttachment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SendResult:
    """Result of a delivery attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class Notifier(Protocol):
    """Delivers email messages."""

    name: str

    def send(self, message: EmailMessageSpec) -> SendResult:
        """Send ``message`` once. Transport errors are reported, not raised."""
        ...


class InvoiceRenderer(Protocol):
    """Renders invoice documents."""

    def render(self, data: InvoiceData) -> bytes:
        """Return the PDF bytes for ``data``."""
        ...
