"""Tests for weekly aggregation."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from timesheet_engine.calculators.aggregator import aggregate, filter_rows, matches_search_query
from timesheet_engine.calculators.types import TimeEntryRecord, validate_hours

MONDAY = date(2025, 9, 1)
CONTRACTOR = uuid4()
OTHER = uuid4()
BUILDER = uuid4()
LOCATION = uuid4()
OTHER_LOCATION = uuid4()


def make_entry(
    day_offset: int = 0,
    tonnage: str = "0",
    day_labour: str = "0",
    contractor_id=CONTRACTOR,
    location_id=LOCATION,
    nickname: str = "Bazza",
    **metadata,
) -> TimeEntryRecord:
    return TimeEntryRecord(
        contractor_id=contractor_id,
        builder_id=BUILDER,
        location_id=location_id,
        work_date=MONDAY + timedelta(days=day_offset),
        tonnage_hours=Decimal(tonnage),
        day_labour_hours=Decimal(day_labour),
        nickname=nickname,
        builder_name="Acme Builders",
        location_label="Tower A",
        **metadata,
    )


class TestAggregate:
    def test_empty_input(self):
        assert aggregate([]) == []

    def test_buckets_by_day(self):
        rows = aggregate(
            [
                make_entry(0, tonnage="4", day_labour="3.5"),
                make_entry(2, day_labour="8"),
                make_entry(5, tonnage="1"),
            ]
        )

        assert len(rows) == 1
        row = rows[0]
        assert row.daily_hours == [
            Decimal("7.5"), Decimal("0"), Decimal("8"), Decimal("0"), Decimal("0"), Decimal("1"),
        ]
        assert row.tonnage_total == Decimal("5")
        assert row.day_labour_total == Decimal("11.5")
        assert row.total_hours == Decimal("16.5")

    def test_same_day_entries_accumulate(self):
        rows = aggregate([make_entry(1, tonnage="2"), make_entry(1, tonnage="3")])
        assert rows[0].daily_hours[1] == Decimal("5")

    def test_sunday_hours_kept_aside(self):
        rows = aggregate([make_entry(0, tonnage="4"), make_entry(6, day_labour="2")])

        row = rows[0]
        assert row.sunday_hours == Decimal("2")
        assert sum(row.daily_hours) == Decimal("4")
        assert row.tonnage_total + row.day_labour_total == Decimal("4")

    def test_sunday_only_entries_still_produce_a_row(self):
        rows = aggregate([make_entry(6, tonnage="3")])
        assert len(rows) == 1
        assert rows[0].total_hours == Decimal("0")
        assert rows[0].sunday_hours == Decimal("3")

    def test_groups_by_location(self):
        rows = aggregate(
            [make_entry(0, tonnage="4"), make_entry(0, tonnage="2", location_id=OTHER_LOCATION)]
        )
        assert len(rows) == 2
        assert {r.location_id for r in rows} == {LOCATION, OTHER_LOCATION}

    def test_sorted_by_nickname(self):
        rows = aggregate(
            [
                make_entry(0, tonnage="1", contractor_id=OTHER, nickname="zed"),
                make_entry(0, tonnage="1", nickname="Alf"),
            ]
        )
        assert [r.nickname for r in rows] == ["Alf", "zed"]

    def test_out_of_range_day_index_rejected(self):
        with pytest.raises(ValueError):
            aggregate([make_entry(0, tonnage="1")], resolve_day_index=lambda _: 6)

    def test_metadata_copied(self):
        row = aggregate([make_entry(0, tonnage="1", full_name="Barry Smith", email="b@x.io")])[0]
        assert row.contractor_name == "Barry Smith"
        assert row.email == "b@x.io"
        assert row.builder_name == "Acme Builders"


class TestHoursValidation:
    def test_rejects_negative_hours(self):
        with pytest.raises(ValueError):
            make_entry(0, tonnage="-1")

    def test_rejects_non_half_hour_steps(self):
        with pytest.raises(ValueError):
            make_entry(0, day_labour="1.25")

    def test_accepts_half_hours(self):
        assert validate_hours("7.5") == Decimal("7.5")
        assert validate_hours(0) == Decimal("0")


class TestSearch:
    def test_blank_query_matches_everything(self):
        row = aggregate([make_entry(0, tonnage="1")])[0]
        assert matches_search_query(row, None)
        assert matches_search_query(row, "   ")

    def test_case_insensitive_on_names_and_email(self):
        row = aggregate(
            [make_entry(0, tonnage="1", first_name="Barry", last_name="Smith", email="b@x.io")]
        )[0]
        assert matches_search_query(row, "bAzZ")
        assert matches_search_query(row, "smith")
        assert matches_search_query(row, "X.IO")
        assert not matches_search_query(row, "acme")

    def test_filter_rows(self):
        rows = aggregate(
            [
                make_entry(0, tonnage="1"),
                make_entry(0, tonnage="1", contractor_id=OTHER, nickname="Al"),
            ]
        )
        assert [r.nickname for r in filter_rows(rows, "al")] == ["Al"]
