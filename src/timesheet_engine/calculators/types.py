"""Type definitions for the weekly aggregation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

ZERO = Decimal("0")
HOUR_INCREMENT = Decimal("0.5")
DAYS_MON_SAT = 6


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats and strings into Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_hours(value: Any, field_name: str = "hours") -> Decimal:
    """Return ``value`` as Decimal, rejecting negatives and non half-hour steps."""
    hours = to_decimal(value)
    if hours < 0:
        raise ValueError(f"{field_name} must be non-negative, got {hours}")
    if hours % HOUR_INCREMENT != 0:
        raise ValueError(f"{field_name} must be a multiple of 0.5, got {hours}")
    return hours


@dataclass(frozen=True)
class TimeEntryRecord:
    """One contractor's hours on one docket, joined with display metadata."""

    contractor_id: UUID
    builder_id: UUID
    location_id: UUID
    work_date: date
    tonnage_hours: Decimal = ZERO
    day_labour_hours: Decimal = ZERO

    # Display metadata copied onto aggregation rows
    nickname: str | None = None
    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    hourly_rate: Decimal | None = None
    builder_name: str | None = None
    company_code: str | None = None
    location_label: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tonnage_hours", validate_hours(self.tonnage_hours, "tonnage_hours")
        )
        object.__setattr__(
            self,
            "day_labour_hours",
            validate_hours(self.day_labour_hours, "day_labour_hours"),
        )
        if self.hourly_rate is not None:
            object.__setattr__(self, "hourly_rate", to_decimal(self.hourly_rate))

    @property
    def total_hours(self) -> Decimal:
        return self.tonnage_hours + self.day_labour_hours

    @property
    def key(self) -> tuple[UUID, UUID, UUID]:
        return (self.contractor_id, self.builder_id, self.location_id)


@dataclass
class AggregationRow:
    """Weekly hours for one (contractor, builder, location) combination."""

    contractor_id: UUID
    builder_id: UUID
    location_id: UUID
    daily_hours: list[Decimal] = field(default_factory=lambda: [ZERO] * DAYS_MON_SAT)
    tonnage_total: Decimal = ZERO
    day_labour_total: Decimal = ZERO
    # Hours worked on Sunday; never bucketed into daily_hours
    sunday_hours: Decimal = ZERO
    hourly_rate: Decimal | None = None

    nickname: str | None = None
    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    builder_name: str | None = None
    company_code: str | None = None
    location_label: str | None = None

    @property
    def total_hours(self) -> Decimal:
        """Billable Monday to Saturday hours."""
        return self.tonnage_total + self.day_labour_total

    @property
    def contractor_name(self) -> str:
        if self.full_name:
            return self.full_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.nickname or str(self.contractor_id)

    @property
    def sort_name(self) -> str:
        return (self.nickname or self.contractor_name).casefold()


@dataclass(frozen=True)
class Totals:
    """Hours and money for a row or a week."""

    hours: Decimal = ZERO
    amount: Decimal = ZERO


@dataclass(frozen=True)
class FrozenSnapshot:
    """Invoice values fixed at submission time."""

    hours: Decimal
    rate: Decimal
    amount: Decimal
    status: str = "SUBMITTED"

    @property
    def totals(self) -> Totals:
        return Totals(hours=self.hours, amount=self.amount)
