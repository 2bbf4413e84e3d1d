"""Property-based tests for week resolution, aggregation and exports.

Hypothesis generates week labels, dates and sets of docket entries and checks
that the invariants hold for every one of them, not just hand-picked cases.
"""

from __future__ import annotations

from datetime import date, time, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings, strategies as st

from timesheet_engine.calculators.aggregator import aggregate
from timesheet_engine.calculators.totals import (
    allocate_snapshot,
    compute_totals,
    quantize_money,
    sum_totals,
)
from timesheet_engine.calculators.types import FrozenSnapshot, TimeEntryRecord
from timesheet_engine.calculators.week_resolver import (
    INVALID_DATE_MESSAGE,
    INVALID_WEEK_MESSAGE,
    format_iso_week,
    resolve_week,
    start_of_iso_week,
)
from timesheet_engine.calculators.week_state import week_state_for
from timesheet_engine.errors import InvalidFormatError
from timesheet_engine.exports import weekly_rows_to_csv
from timesheet_engine.services.weekly_service import WeeklyReport, WeeklyRow

from tests.conftest import MONDAY, parse_csv

# Last start date whose seven day window is still representable
LAST_WINDOW_START = date(9999, 12, 24)

DAY_COLUMNS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

CONTRACTORS = [
    (uuid4(), "Bazza", Decimal("50.00")),
    (uuid4(), "Al", Decimal("40.00")),
    (uuid4(), "Mick", Decimal("37.25")),
]
BUILDERS = [(uuid4(), "Acme Builders"), (uuid4(), "Zenith Homes")]
LOCATIONS = [(uuid4(), "Tower A"), (uuid4(), "Lot 7")]

half_hours = st.integers(min_value=0, max_value=24).map(lambda n: Decimal(n) / 2)


@st.composite
def time_entries(draw) -> TimeEntryRecord:
    contractor_id, nickname, rate = draw(st.sampled_from(CONTRACTORS))
    builder_id, builder_name = draw(st.sampled_from(BUILDERS))
    location_id, location_label = draw(st.sampled_from(LOCATIONS))
    return TimeEntryRecord(
        contractor_id=contractor_id,
        builder_id=builder_id,
        location_id=location_id,
        work_date=MONDAY + timedelta(days=draw(st.integers(min_value=0, max_value=6))),
        tonnage_hours=draw(half_hours),
        day_labour_hours=draw(half_hours),
        nickname=nickname,
        hourly_rate=rate,
        builder_name=builder_name,
        location_label=location_label,
    )


entry_lists = st.lists(time_entries(), max_size=40)


def total(values) -> Decimal:
    return sum(values, Decimal(0))


# =============================================================================
# Week resolution
# =============================================================================


class TestWeekResolverProperties:
    @given(
        year=st.integers(min_value=1, max_value=9998),
        week=st.integers(min_value=1, max_value=53),
    )
    @settings(max_examples=200)
    def test_label_resolves_to_monday_midnight_utc(self, year, week):
        window = resolve_week(f"{year:04d}-W{week:02d}")

        assert window.start.weekday() == 0
        assert window.start.time() == time.min
        assert window.start.tzinfo == timezone.utc
        assert window.end - window.start == timedelta(days=7)

    @given(week=st.integers(min_value=1, max_value=53))
    def test_final_year_resolves_or_reports_invalid_format(self, week):
        try:
            window = resolve_week(f"9999-W{week:02d}")
        except InvalidFormatError as exc:
            assert exc.message == INVALID_WEEK_MESSAGE
            assert week >= 52
        else:
            assert window.end - window.start == timedelta(days=7)

    @given(day=st.dates(max_value=LAST_WINDOW_START))
    @settings(max_examples=200)
    def test_iso_label_round_trip(self, day):
        assert resolve_week(format_iso_week(day)).start_date == start_of_iso_week(day)

    @given(day=st.dates(max_value=LAST_WINDOW_START))
    def test_explicit_start_is_used_as_is(self, day):
        window = resolve_week(explicit_start=day.isoformat())

        assert window.start_date == day
        assert window.last_day == day + timedelta(days=6)

    @given(day=st.dates(min_value=LAST_WINDOW_START + timedelta(days=1)))
    def test_explicit_start_past_last_window(self, day):
        with pytest.raises(InvalidFormatError) as exc_info:
            resolve_week(explicit_start=day.isoformat())
        assert exc_info.value.message == INVALID_DATE_MESSAGE


# =============================================================================
# Aggregation
# =============================================================================


class TestAggregatorProperties:
    @given(records=entry_lists)
    @settings(max_examples=100)
    def test_daily_buckets_match_type_totals(self, records):
        for row in aggregate(records):
            assert total(row.daily_hours) == row.tonnage_total + row.day_labour_total

    @given(records=entry_lists)
    def test_sunday_kept_aside_and_no_hours_lost(self, records):
        rows = aggregate(records)
        sunday = total(r.total_hours for r in records if r.work_date.weekday() == 6)

        assert total(r.sunday_hours for r in rows) == sunday
        assert total(r.total_hours for r in rows) == total(r.total_hours for r in records) - sunday

    @given(records=entry_lists, data=st.data())
    def test_idempotent_and_order_independent(self, records, data):
        first = aggregate(records)

        assert aggregate(records) == first
        assert aggregate(data.draw(st.permutations(records))) == first

    @given(records=entry_lists)
    def test_one_row_per_key(self, records):
        keys = [(r.contractor_id, r.builder_id, r.location_id) for r in aggregate(records)]

        assert len(keys) == len(set(keys))
        assert set(keys) == {r.key for r in records}


# =============================================================================
# Frozen snapshot allocation
# =============================================================================


class TestSnapshotAllocationProperties:
    @given(
        hours=half_hours,
        amount=st.decimals(
            min_value=Decimal("0"),
            max_value=Decimal("100000"),
            places=2,
            allow_nan=False,
            allow_infinity=False,
        ),
        weights=st.lists(half_hours, min_size=1, max_size=6),
    )
    @settings(max_examples=200)
    def test_parts_sum_to_snapshot_and_stay_non_negative(self, hours, amount, weights):
        snapshot = FrozenSnapshot(hours=hours, rate=Decimal("50"), amount=amount)
        parts = allocate_snapshot(snapshot, weights)

        assert len(parts) == len(weights)
        assert sum_totals(parts) == snapshot.totals
        assert all(p.hours >= 0 and p.amount >= 0 for p in parts)


# =============================================================================
# CSV export
# =============================================================================


def draft_report(records: list[TimeEntryRecord]) -> WeeklyReport:
    rows = [
        WeeklyRow(
            row=row,
            rate=row.hourly_rate,
            totals=compute_totals(row, row.hourly_rate),
            state=week_state_for(None, row.total_hours, row.hourly_rate),
        )
        for row in aggregate(records)
    ]
    return WeeklyReport(
        window=resolve_week("2025-W36"),
        rows=rows,
        totals=sum_totals(r.totals for r in rows),
    )


class TestWeeklyCsvProperties:
    @given(records=entry_lists)
    @settings(max_examples=100)
    def test_numbers_parse_back_to_cents(self, records):
        report = draft_report(records)
        parsed = parse_csv(weekly_rows_to_csv(report))

        assert len(parsed) == len(report.rows)
        for line, weekly in zip(parsed, report.rows):
            assert [Decimal(line[day]) for day in DAY_COLUMNS] == weekly.row.daily_hours
            assert Decimal(line["Total Hours"]) == weekly.totals.hours
            assert Decimal(line["Hourly Rate"]) == weekly.rate
            assert Decimal(line["Total Amount"]) == quantize_money(weekly.totals.amount)

        assert total(Decimal(line["Total Hours"]) for line in parsed) == report.totals.hours
        drift = total(Decimal(line["Total Amount"]) for line in parsed) - report.totals.amount
        assert abs(drift) <= Decimal("0.005") * len(parsed)
