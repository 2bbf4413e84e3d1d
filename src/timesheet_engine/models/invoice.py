"""Worker invoice model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_engine.models.base import Base, TimestampMixin, utcnow


class WorkerInvoice(Base, TimestampMixin):
    """A contractor's weekly invoice with its frozen totals."""

    __tablename__ = "worker_invoice"

    invoice_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("contractor.contractor_id"), nullable=False
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)
    total_hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="SUBMITTED")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    pdf_url: Mapped[str | None] = mapped_column(String)
    audit_notes: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "contractor_id", "week_start", name="worker_invoice_contractor_week_unique"
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'PAID')",
            name="worker_invoice_status_check",
        ),
        CheckConstraint("total_hours >= 0", name="worker_invoice_hours_check"),
        CheckConstraint("hourly_rate >= 0", name="worker_invoice_rate_check"),
        CheckConstraint("week_end >= week_start", name="worker_invoice_dates_check"),
    )
