"""Application users and contractor profiles."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_engine.models.base import Base, TimestampMixin


class AppUser(Base, TimestampMixin):
    """An authenticated user of the back office."""

    __tablename__ = "app_user"

    user_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String)
    role: Mapped[str] = mapped_column(String, nullable=False, default="WORKER")

    __table_args__ = (
        CheckConstraint(
            "role IN ('ADMIN', 'SUPERVISOR', 'WORKER')",
            name="app_user_role_check",
        ),
    )


class Contractor(Base, TimestampMixin):
    """A contractor who works on dockets and invoices weekly."""

    __tablename__ = "contractor"

    contractor_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="SET NULL"),
        unique=True,
    )
    nickname: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String)
    last_name: Mapped[str | None] = mapped_column(String)
    full_name: Mapped[str | None] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "hourly_rate IS NULL OR hourly_rate >= 0",
            name="contractor_hourly_rate_check",
        ),
    )

    @property
    def display_name(self) -> str:
        """Name shown on invoices and in the weekly grid."""
        if self.full_name:
            return self.full_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.nickname
