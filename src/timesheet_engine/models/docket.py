"""Daily dockets and their contractor time entries."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_engine.models.base import Base, TimestampMixin


class Docket(Base, TimestampMixin):
    """A single day's work report at one builder location."""

    __tablename__ = "docket"

    docket_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    builder_id: Mapped[UUID] = mapped_column(
        ForeignKey("builder.builder_id"), nullable=False
    )
    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("builder_location.location_id"), nullable=False
    )
    supervisor_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id"), nullable=False
    )
    schedule_no: Mapped[str | None] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("docket_work_date_idx", "work_date"),
        Index("docket_supervisor_idx", "supervisor_id"),
    )


class DocketEntry(Base, TimestampMixin):
    """Hours worked by one contractor on a docket."""

    __tablename__ = "docket_entry"

    entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    docket_id: Mapped[UUID] = mapped_column(
        ForeignKey("docket.docket_id", ondelete="CASCADE"),
        nullable=False,
    )
    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("contractor.contractor_id"), nullable=False
    )
    tonnage_hours: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    day_labour_hours: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint("tonnage_hours >= 0", name="docket_entry_tonnage_check"),
        CheckConstraint("day_labour_hours >= 0", name="docket_entry_day_labour_check"),
        Index("docket_entry_contractor_idx", "contractor_id"),
    )
