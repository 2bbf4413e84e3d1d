"""Explicit per-week invoice state.

A week is either a draft (no invoice yet, totals come from live entries) or
has a submitted/paid invoice whose frozen snapshot is authoritative. Only
``DraftWeek`` ever multiplies live hours by a rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Union
from uuid import UUID

from timesheet_engine.calculators.types import ZERO, FrozenSnapshot, Totals, to_decimal

if TYPE_CHECKING:
    from timesheet_engine.models import WorkerInvoice


@dataclass(frozen=True)
class DraftWeek:
    """No invoice exists yet."""

    live_hours: Decimal
    rate: Decimal

    status = "DRAFT"
    invoice_id = None
    submitted_at = None
    paid_at = None

    @property
    def totals(self) -> Totals:
        return Totals(hours=self.live_hours, amount=self.live_hours * self.rate)

    @property
    def can_submit(self) -> bool:
        return self.live_hours > ZERO


@dataclass(frozen=True)
class SubmittedWeek:
    """Invoice submitted and awaiting payment."""

    invoice_id: UUID
    snapshot: FrozenSnapshot
    submitted_at: datetime | None = None

    status = "SUBMITTED"
    paid_at = None
    can_submit = False

    @property
    def totals(self) -> Totals:
        return self.snapshot.totals


@dataclass(frozen=True)
class PaidWeek:
    """Invoice paid."""

    invoice_id: UUID
    snapshot: FrozenSnapshot
    submitted_at: datetime | None = None
    paid_at: datetime | None = None

    status = "PAID"
    can_submit = False

    @property
    def totals(self) -> Totals:
        return self.snapshot.totals


WeekState = Union[DraftWeek, SubmittedWeek, PaidWeek]


def snapshot_of(invoice: WorkerInvoice) -> FrozenSnapshot:
    return FrozenSnapshot(
        hours=to_decimal(invoice.total_hours),
        rate=to_decimal(invoice.hourly_rate),
        amount=to_decimal(invoice.total_amount),
        status=invoice.status,
    )


def week_state_for(
    invoice: WorkerInvoice | None,
    live_hours: Any,
    rate: Any,
) -> WeekState:
    """Pick the state variant for a contractor week."""
    if invoice is None or invoice.status == "DRAFT":
        return DraftWeek(live_hours=to_decimal(live_hours), rate=to_decimal(rate))
    if invoice.status == "PAID":
        return PaidWeek(
            invoice_id=invoice.invoice_id,
            snapshot=snapshot_of(invoice),
            submitted_at=invoice.submitted_at,
            paid_at=invoice.paid_at,
        )
    return SubmittedWeek(
        invoice_id=invoice.invoice_id,
        snapshot=snapshot_of(invoice),
        submitted_at=invoice.submitted_at,
    )
