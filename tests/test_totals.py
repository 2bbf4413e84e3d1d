"""Tests for totals, money formatting and the per-week invoice state."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from timesheet_engine.calculators.totals import (
    allocate_snapshot,
    compute_totals,
    format_currency,
    format_decimal,
    quantize_money,
    sum_totals,
)
from timesheet_engine.calculators.types import AggregationRow, FrozenSnapshot, Totals
from timesheet_engine.calculators.week_state import (
    DraftWeek,
    PaidWeek,
    SubmittedWeek,
    snapshot_of,
    week_state_for,
)
from timesheet_engine.models import WorkerInvoice


def make_row(tonnage="10", day_labour="5", sunday="0") -> AggregationRow:
    return AggregationRow(
        contractor_id=uuid4(),
        builder_id=uuid4(),
        location_id=uuid4(),
        tonnage_total=Decimal(tonnage),
        day_labour_total=Decimal(day_labour),
        sunday_hours=Decimal(sunday),
    )


def make_invoice(status="SUBMITTED", hours="20.00", rate="50.00", amount="1000.00"):
    return WorkerInvoice(
        invoice_id=uuid4(),
        contractor_id=uuid4(),
        week_start=date(2025, 9, 1),
        week_end=date(2025, 9, 7),
        total_hours=Decimal(hours),
        hourly_rate=Decimal(rate),
        total_amount=Decimal(amount),
        status=status,
        submitted_at=datetime(2025, 9, 8, 9, 0, tzinfo=timezone.utc),
        paid_at=datetime(2025, 9, 12, tzinfo=timezone.utc) if status == "PAID" else None,
    )


class TestComputeTotals:
    def test_live_totals(self):
        totals = compute_totals(make_row(), Decimal("50"))
        assert totals == Totals(hours=Decimal("15"), amount=Decimal("750"))

    def test_rate_accepts_strings(self):
        assert compute_totals(make_row("2", "0"), "37.5").amount == Decimal("75.0")

    def test_missing_rate_is_zero(self):
        assert compute_totals(make_row(), None).amount == Decimal("0")

    def test_sunday_excluded_by_default(self):
        row = make_row("4", "0", sunday="2")
        assert compute_totals(row, 10).hours == Decimal("4")
        assert compute_totals(row, 10, include_sunday=True).hours == Decimal("6")

    def test_frozen_snapshot_wins(self):
        frozen = FrozenSnapshot(hours=Decimal("3"), rate=Decimal("1"), amount=Decimal("99"))
        totals = compute_totals(make_row(), Decimal("50"), frozen=frozen)
        assert totals == Totals(hours=Decimal("3"), amount=Decimal("99"))

    def test_draft_snapshot_ignored(self):
        frozen = FrozenSnapshot(
            hours=Decimal("3"), rate=Decimal("1"), amount=Decimal("99"), status="DRAFT"
        )
        assert compute_totals(make_row(), 2, frozen=frozen).hours == Decimal("15")

    def test_sum_totals(self):
        total = sum_totals([Totals(Decimal("1"), Decimal("2")), Totals(Decimal("3"), Decimal("4"))])
        assert total == Totals(hours=Decimal("4"), amount=Decimal("6"))
        assert sum_totals([]) == Totals()


class TestAllocateSnapshot:
    def test_parts_add_up_exactly(self):
        snapshot = FrozenSnapshot(
            hours=Decimal("3.00"), rate=Decimal("1"), amount=Decimal("100.00")
        )
        parts = allocate_snapshot(snapshot, [Decimal("1")] * 3)

        assert [p.amount for p in parts] == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert [p.hours for p in parts] == [Decimal("1.00")] * 3
        assert sum_totals(parts) == Totals(hours=Decimal("3.00"), amount=Decimal("100.00"))

    def test_proportional_to_hours(self):
        snapshot = FrozenSnapshot(
            hours=Decimal("28.50"), rate=Decimal("50"), amount=Decimal("1125.00")
        )
        parts = allocate_snapshot(snapshot, [Decimal("23.5"), Decimal("5")])

        assert parts[0] == Totals(hours=Decimal("23.50"), amount=Decimal("927.64"))
        assert parts[1] == Totals(hours=Decimal("5.00"), amount=Decimal("197.36"))

    def test_zero_weights_put_everything_on_first_row(self):
        snapshot = FrozenSnapshot(hours=Decimal("8"), rate=Decimal("50"), amount=Decimal("400"))
        parts = allocate_snapshot(snapshot, [Decimal("0"), Decimal("0")])

        assert parts[0] == Totals(hours=Decimal("8"), amount=Decimal("400"))
        assert parts[1] == Totals()

    def test_no_rows(self):
        snapshot = FrozenSnapshot(hours=Decimal("8"), rate=Decimal("50"), amount=Decimal("400"))
        assert allocate_snapshot(snapshot, []) == []


class TestMoneyFormatting:
    def test_half_up_rounding(self):
        assert quantize_money("2.345") == Decimal("2.35")
        assert quantize_money("2.344") == Decimal("2.34")

    def test_two_decimal_places(self):
        assert format_decimal(500) == "500.00"
        assert format_decimal("7.5") == "7.50"
        assert format_decimal(None) == "0.00"

    def test_currency_display(self):
        assert format_currency("1234.5") == "$1,234.50"
        assert format_currency("10", "NZD") == "$10.00 NZD"


class TestWeekState:
    def test_no_invoice_is_draft(self):
        state = week_state_for(None, "20.5", "50")
        assert isinstance(state, DraftWeek)
        assert state.status == "DRAFT"
        assert state.totals == Totals(hours=Decimal("20.5"), amount=Decimal("1025.0"))
        assert state.can_submit
        assert state.invoice_id is None

    def test_draft_without_hours_cannot_submit(self):
        assert not week_state_for(None, 0, "50").can_submit

    def test_submitted_uses_snapshot_not_live_hours(self):
        invoice = make_invoice()
        state = week_state_for(invoice, "99", "1")

        assert isinstance(state, SubmittedWeek)
        assert state.invoice_id == invoice.invoice_id
        assert state.totals == Totals(hours=Decimal("20.00"), amount=Decimal("1000.00"))
        assert not state.can_submit
        assert state.paid_at is None

    def test_paid_week(self):
        invoice = make_invoice(status="PAID")
        state = week_state_for(invoice, 0, 0)

        assert isinstance(state, PaidWeek)
        assert state.status == "PAID"
        assert state.paid_at == invoice.paid_at
        assert state.snapshot.rate == Decimal("50.00")

    def test_admin_edit_reflected_in_snapshot(self):
        invoice = make_invoice()
        invoice.total_amount = Decimal("900.00")
        assert snapshot_of(invoice).amount == Decimal("900.00")
        assert week_state_for(invoice, 20, 50).totals.amount == Decimal("900.00")
