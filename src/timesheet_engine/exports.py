"""CSV exports.

Hour and money columns are written with exactly two decimal places so the
numbers re-parse to the values shown on screen.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from timesheet_engine.calculators.totals import format_decimal
from timesheet_engine.calculators.week_resolver import week_range_label

if TYPE_CHECKING:
    from timesheet_engine.services.history_service import (
        DocketHistoryItem,
        PaymentHistoryItem,
    )
    from timesheet_engine.services.invoice_service import InvoiceListItem
    from timesheet_engine.services.weekly_service import WeeklyReport

WEEKLY_HEADERS = [
    "Contractor Name",
    "Nickname",
    "Email",
    "Builder",
    "Company Code",
    "Location",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Tonnage Hours",
    "Day Labour Hours",
    "Total Hours",
    "Hourly Rate",
    "Total Amount",
    "Status",
]

INVOICE_HEADERS = [
    "Nickname",
    "Full Name",
    "Week",
    "Total Hours",
    "Hourly Rate",
    "Total Amount",
    "Status",
    "Submitted At",
]

DOCKET_HISTORY_HEADERS = [
    "Date",
    "Builder",
    "Company Code",
    "Location",
    "Supervisor",
    "Contractor",
    "Schedule No",
    "Description",
    "Tonnage Hours",
    "Day Labour Hours",
    "Total Hours",
    "Created At",
]

PAYMENT_HISTORY_HEADERS = [
    "Contractor",
    "Full Name",
    "Week",
    "Total Hours",
    "Hourly Rate",
    "Total Amount",
    "Status",
    "Submitted At",
    "Paid At",
]


def _date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    return f"{value:%b %d, %Y}"


def _timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat(timespec="seconds")


def _write(
    headers: list[str], rows: Iterable[list[str]], preamble: list[str] | None = None
) -> str:
    output = io.StringIO()
    for line in preamble or []:
        output.write(f"# {line}\n")
    if preamble:
        output.write("\n")
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def weekly_rows_to_csv(report: WeeklyReport, generated_at: datetime | None = None) -> str:
    """Weekly grid, one line per (contractor, builder, location)."""
    generated_at = generated_at or datetime.now(timezone.utc)
    window = report.window
    preamble = [
        "Weekly Timesheet Export",
        f"Week: {window.start_date.isoformat()} to {window.last_day.isoformat()}",
        f"Generated: {generated_at.isoformat(timespec='seconds')}",
        f"Total Contractors: {report.contractor_count}",
    ]
    rows = []
    for weekly in report.rows:
        row = weekly.row
        rows.append(
            [
                row.contractor_name,
                row.nickname or "",
                row.email or "",
                row.builder_name or "",
                row.company_code or "",
                row.location_label or "",
                *(format_decimal(h) for h in row.daily_hours),
                format_decimal(row.tonnage_total),
                format_decimal(row.day_labour_total),
                format_decimal(weekly.totals.hours),
                format_decimal(weekly.rate),
                format_decimal(weekly.totals.amount),
                weekly.status,
            ]
        )
    return _write(WEEKLY_HEADERS, rows, preamble)


def invoices_to_csv(items: Iterable[InvoiceListItem]) -> str:
    rows = [
        [
            item.nickname,
            item.full_name or "",
            item.week_label,
            format_decimal(item.invoice.total_hours),
            format_decimal(item.invoice.hourly_rate),
            format_decimal(item.invoice.total_amount),
            item.invoice.status,
            _date(item.invoice.submitted_at),
        ]
        for item in items
    ]
    return _write(INVOICE_HEADERS, rows)


def dockets_history_to_csv(items: Iterable[DocketHistoryItem]) -> str:
    rows = [
        [
            item.docket.work_date.isoformat(),
            item.builder.name,
            item.builder.company_code,
            item.location.label,
            item.supervisor_name,
            item.contractor.nickname,
            item.docket.schedule_no or "",
            item.docket.description or "",
            format_decimal(item.entry.tonnage_hours),
            format_decimal(item.entry.day_labour_hours),
            format_decimal(item.total_hours),
            _timestamp(item.docket.created_at),
        ]
        for item in items
    ]
    return _write(DOCKET_HISTORY_HEADERS, rows)


def payments_history_to_csv(items: Iterable[PaymentHistoryItem]) -> str:
    rows = [
        [
            item.contractor.nickname,
            item.contractor.full_name or "",
            week_range_label(item.invoice.week_start, item.invoice.week_end),
            format_decimal(item.invoice.total_hours),
            format_decimal(item.invoice.hourly_rate),
            format_decimal(item.invoice.total_amount),
            item.invoice.status,
            _date(item.invoice.submitted_at),
            _date(item.invoice.paid_at),
        ]
        for item in items
    ]
    return _write(PAYMENT_HISTORY_HEADERS, rows)
