"""Loading docket entries as aggregation records."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.calculators.types import TimeEntryRecord
from timesheet_engine.calculators.week_resolver import WeekWindow
from timesheet_engine.models import Builder, BuilderLocation, Contractor, Docket, DocketEntry


def entry_query(*criteria: ColumnElement[bool]) -> Select:
    """Entries joined with their docket, contractor, builder and location."""
    return (
        select(DocketEntry, Docket, Contractor, Builder, BuilderLocation)
        .join(Docket, DocketEntry.docket_id == Docket.docket_id)
        .join(Contractor, DocketEntry.contractor_id == Contractor.contractor_id)
        .join(Builder, Docket.builder_id == Builder.builder_id)
        .join(BuilderLocation, Docket.location_id == BuilderLocation.location_id)
        .where(*criteria)
    )


def window_criteria(window: WeekWindow) -> tuple[ColumnElement[bool], ...]:
    return (Docket.work_date >= window.start_date, Docket.work_date < window.end_date)


def to_record(
    entry: DocketEntry,
    docket: Docket,
    contractor: Contractor,
    builder: Builder,
    location: BuilderLocation,
) -> TimeEntryRecord:
    return TimeEntryRecord(
        contractor_id=entry.contractor_id,
        builder_id=docket.builder_id,
        location_id=docket.location_id,
        work_date=docket.work_date,
        tonnage_hours=entry.tonnage_hours,
        day_labour_hours=entry.day_labour_hours,
        nickname=contractor.nickname,
        full_name=contractor.full_name,
        first_name=contractor.first_name,
        last_name=contractor.last_name,
        email=contractor.email,
        hourly_rate=contractor.hourly_rate,
        builder_name=builder.name,
        company_code=builder.company_code,
        location_label=location.label,
    )


async def fetch_entry_rows(
    session: AsyncSession, *criteria: ColumnElement[bool]
) -> Sequence[Any]:
    """Joined rows ordered by work date."""
    query = entry_query(*criteria).order_by(Docket.work_date, Docket.created_at)
    result = await session.execute(query)
    return result.all()


async def load_time_entries(
    session: AsyncSession, window: WeekWindow, *criteria: ColumnElement[bool]
) -> list[TimeEntryRecord]:
    """Time entries inside ``window`` matching ``criteria``."""
    rows = await fetch_entry_rows(session, *window_criteria(window), *criteria)
    return [to_record(*row) for row in rows]
