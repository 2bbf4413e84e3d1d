"""Director notification email content."""

from __future__ import annotations

from html import escape

from timesheet_engine.calculators.totals import format_decimal
from timesheet_engine.providers.base import InvoiceData

PDF_MISSING_NOTE = "Note: PDF attachment could not be generated"


def invoice_email_subject(contractor_name: str, week_label: str) -> str:
    return f"New Worker Invoice Submitted - {contractor_name} - {week_label}"


def _submitted(data: InvoiceData) -> str:
    return f"{data.submitted_at:%b %d, %Y}"


def invoice_email_text(data: InvoiceData, pdf_attached: bool = True) -> str:
    """Plain text body listing the invoice summary and worked days."""
    currency = data.currency
    lines = [
        "New Worker Invoice Submitted",
        "",
        f"Invoice ID: {data.invoice_id}",
        f"Worker: {data.contractor_name}",
        f"Week: {data.week_label}",
        f"Hourly Rate: ${format_decimal(data.hourly_rate)} {currency}",
        f"Total Hours: {format_decimal(data.total_hours)}",
        f"Total Amount: ${format_decimal(data.total_amount)} {currency}",
        f"Submitted: {_submitted(data)}",
        "",
        "Work Details:",
    ]
    for entry in data.entries:
        lines.append(
            f"{entry.work_date:%b %d, %Y} - {entry.builder_name} "
            f"({entry.company_code}) - {entry.location_label}"
        )
        lines.append(
            f"   Tonnage: {format_decimal(entry.tonnage_hours)}h, "
            f"Day Labour: {format_decimal(entry.day_labour_hours)}h, "
            f"Total: {format_decimal(entry.total_hours)}h"
        )
    lines.append("")
    if not pdf_attached:
        lines.append(PDF_MISSING_NOTE)
        lines.append("")
    lines.append("Please review and process this invoice.")
    return "\n".join(lines)


def invoice_email_html(data: InvoiceData, pdf_attached: bool = True) -> str:
    """HTML body with a summary table and one row per worked day."""
    currency = escape(data.currency)
    summary = [
        ("Invoice ID", str(data.invoice_id)),
        ("Worker", data.contractor_name),
        ("Week", data.week_label),
        ("Hourly Rate", f"${format_decimal(data.hourly_rate)} {currency}"),
        ("Total Hours", format_decimal(data.total_hours)),
        ("Total Amount", f"${format_decimal(data.total_amount)} {currency}"),
        ("Submitted", _submitted(data)),
    ]
    summary_rows = "".join(
        f"<tr><td><strong>{escape(label)}:</strong></td><td>{escape(value)}</td></tr>"
        for label, value in summary
    )
    entry_rows = "".join(
        "<tr>"
        f"<td>{entry.work_date:%b %d, %Y}</td>"
        f"<td>{escape(entry.builder_name)} ({escape(entry.company_code)})</td>"
        f"<td>{escape(entry.location_label)}</td>"
        f"<td>{format_decimal(entry.tonnage_hours)}</td>"
        f"<td>{format_decimal(entry.day_labour_hours)}</td>"
        f"<td>{format_decimal(entry.total_hours)}</td>"
        "</tr>"
        for entry in data.entries
    )
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        "<h2>New Worker Invoice Submitted</h2>"
        f"<table>{summary_rows}</table>"
        "<h3>Work Details</h3>"
        "<table><tr><th>Date</th><th>Builder</th><th>Location</th>"
        "<th>Tonnage</th><th>Day Labour</th><th>Total</th></tr>"
        f"{entry_rows}</table>"
        "<p>Please review and process this invoice.</p>"
        "</div>"
    )
    if not pdf_attached:
        html += f"<p><em>{PDF_MISSING_NOTE}</em></p>"
    return html
