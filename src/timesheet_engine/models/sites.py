"""Builders and their work locations."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_engine.models.base import Base, TimestampMixin


class Builder(Base, TimestampMixin):
    """A builder (client company) that dockets are raised against."""

    __tablename__ = "builder"

    builder_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    company_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class BuilderLocation(Base, TimestampMixin):
    """A worksite belonging to a builder."""

    __tablename__ = "builder_location"

    location_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    builder_id: Mapped[UUID] = mapped_column(
        ForeignKey("builder.builder_id", ondelete="CASCADE"),
        nullable=False,
    )
    label: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("builder_id", "label", name="builder_location_label_unique"),
    )
