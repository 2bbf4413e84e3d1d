"""Invoice PDF rendering with reportlab."""

from __future__ import annotations

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from timesheet_engine.calculators.totals import format_decimal
from timesheet_engine.providers.base import InvoiceData

COMPANY_NAME = "DoBi Steel Fixing Pty Ltd"
COMPANY_SUBTITLE = "Professional Steel Fixing Services"

HEADER_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0066cc")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("ALIGN", (3, 0), (-1, -1), "RIGHT"),
    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
]


class ReportLabInvoiceRenderer:
    """Renders a one page worker invoice."""

    def __init__(self, pagesize=A4):
        self.pagesize = pagesize

    def render(self, data: InvoiceData) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            topMargin=15 * mm,
            bottomMargin=15 * mm,
            title=f"Invoice {data.invoice_id}",
        )
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "InvoiceTitle", parent=styles["Title"], fontSize=18, spaceAfter=6
        )
        story = [
            Paragraph(COMPANY_NAME, title_style),
            Paragraph(COMPANY_SUBTITLE, styles["Normal"]),
            Spacer(1, 12),
            Paragraph("INVOICE", styles["Heading1"]),
            Paragraph(f"Invoice #: {data.invoice_id}", styles["Normal"]),
            Paragraph(f"Date: {data.submitted_at:%b %d, %Y}", styles["Normal"]),
            Spacer(1, 12),
            Paragraph("Contractor Details", styles["Heading2"]),
        ]

        details = [["Name:", data.contractor_name]]
        if data.contractor_email:
            details.append(["Email:", data.contractor_email])
        details.append(["Period:", data.week_label])
        details.append(["Hourly Rate:", f"${format_decimal(data.hourly_rate)}/hr"])
        story.append(Table(details, colWidths=[35 * mm, 120 * mm], hAlign="LEFT"))
        story.append(Spacer(1, 12))

        story.append(Paragraph("Work Summary", styles["Heading2"]))
        rows = [["Date", "Builder", "Location", "Tonnage (hrs)", "Day Labour (hrs)", "Total (hrs)"]]
        for entry in data.entries:
            rows.append(
                [
                    f"{entry.work_date:%b %d, %Y}",
                    f"{entry.builder_name} ({entry.company_code})",
                    entry.location_label,
                    format_decimal(entry.tonnage_hours),
                    format_decimal(entry.day_labour_hours),
                    format_decimal(entry.total_hours),
                ]
            )
        work_table = Table(rows, repeatRows=1, hAlign="LEFT")
        work_table.setStyle(TableStyle(HEADER_STYLE))
        story.append(work_table)
        story.append(Spacer(1, 12))

        summary = Table(
            [
                ["Total Hours:", f"{format_decimal(data.total_hours)} hrs"],
                ["Hourly Rate:", f"${format_decimal(data.hourly_rate)}"],
                ["TOTAL AMOUNT:", f"${format_decimal(data.total_amount)} {data.currency}"],
            ],
            colWidths=[40 * mm, 40 * mm],
            hAlign="RIGHT",
        )
        summary.setStyle(
            TableStyle(
                [
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
                ]
            )
        )
        story.append(summary)
        story.append(Spacer(1, 18))
        story.append(
            Paragraph("Please retain this document for your records.", styles["Italic"])
        )

        doc.build(story)
        return buffer.getvalue()
