"""Notification, document rendering and file storage adapters."""

from timesheet_engine.providers.base import (
    EmailAttachment,
    EmailMessageSpec,
    InvoiceData,
    InvoiceEntryLine,
    InvoiceRenderer,
    Notifier,
    SendResult,
)
from timesheet_engine.providers.console import LoggingNotifier
from timesheet_engine.providers.pdf import ReportLabInvoiceRenderer
from timesheet_engine.providers.smtp import SmtpNotifier
from timesheet_engine.providers.storage import PdfStorage

__all__ = [
    "EmailAttachment",
    "EmailMessageSpec",
    "InvoiceData",
    "InvoiceEntryLine",
    "InvoiceRenderer",
    "Notifier",
    "SendResult",
    "LoggingNotifier",
    "ReportLabInvoiceRenderer",
    "SmtpNotifier",
    "PdfStorage",
]
