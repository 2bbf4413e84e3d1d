"""Weekly entry aggregation.

Entries are grouped by (contractor, builder, location) and their hours are
bucketed into Monday..Saturday slots. Sunday is not a paid bucket: Sunday
hours are kept aside on ``AggregationRow.sunday_hours`` and do not count
towards the row's tonnage or day labour totals.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from timesheet_engine.calculators.types import AggregationRow, TimeEntryRecord
from timesheet_engine.calculators.week_resolver import SUNDAY, day_index_mon_sat

DayIndexResolver = Callable[[date], int]

SEARCHABLE_FIELDS = ("nickname", "full_name", "first_name", "last_name", "email")


def _new_row(entry: TimeEntryRecord) -> AggregationRow:
    return AggregationRow(
        contractor_id=entry.contractor_id,
        builder_id=entry.builder_id,
        location_id=entry.location_id,
        hourly_rate=entry.hourly_rate,
        nickname=entry.nickname,
        full_name=entry.full_name,
        first_name=entry.first_name,
        last_name=entry.last_name,
        email=entry.email,
        builder_name=entry.builder_name,
        company_code=entry.company_code,
        location_label=entry.location_label,
    )


def _row_sort_key(row: AggregationRow) -> tuple[str, str, str, str, str, str]:
    return (
        row.sort_name,
        (row.builder_name or "").casefold(),
        (row.location_label or "").casefold(),
        str(row.contractor_id),
        str(row.builder_id),
        str(row.location_id),
    )


def aggregate(
    entries: Iterable[TimeEntryRecord],
    resolve_day_index: DayIndexResolver = day_index_mon_sat,
) -> list[AggregationRow]:
    """Group entries into weekly rows sorted by contractor name."""
    rows: dict[tuple, AggregationRow] = {}

    for entry in entries:
        row = rows.get(entry.key)
        if row is None:
            row = rows[entry.key] = _new_row(entry)

        day_index = resolve_day_index(entry.work_date)
        if day_index == SUNDAY:
            row.sunday_hours += entry.total_hours
            continue
        if not 0 <= day_index < len(row.daily_hours):
            raise ValueError(f"Day index {day_index} out of range for {entry.work_date}")

        row.daily_hours[day_index] += entry.total_hours
        row.tonnage_total += entry.tonnage_hours
        row.day_labour_total += entry.day_labour_hours

    return sorted(rows.values(), key=_row_sort_key)


def matches_search_query(row: AggregationRow, query: str | None) -> bool:
    """Case-insensitive substring match on the contractor's names and email."""
    if not query or not query.strip():
        return True
    needle = query.strip().casefold()
    for field_name in SEARCHABLE_FIELDS:
        value = getattr(row, field_name)
        if value and needle in value.casefold():
            return True
    return False


def filter_rows(rows: Iterable[AggregationRow], query: str | None) -> list[AggregationRow]:
    """Keep rows matching ``query``."""
    return [row for row in rows if matches_search_query(row, query)]
