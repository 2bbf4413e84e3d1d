"""Worker-facing views of their own weeks."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.calculators.aggregator import aggregate
from timesheet_engine.calculators.totals import compute_totals, sum_totals
from timesheet_engine.calculators.types import AggregationRow, TimeEntryRecord, to_decimal
from timesheet_engine.calculators.week_resolver import (
    WeekWindow,
    current_week,
    resolve_week,
    start_of_iso_week,
    window_from,
)
from timesheet_engine.calculators.week_state import WeekState, week_state_for
from timesheet_engine.config import Settings, get_settings
from timesheet_engine.errors import ForbiddenError, NotFoundError
from timesheet_engine.models import Contractor, DocketEntry, WorkerInvoice
from timesheet_engine.services.authorization import (
    Permission,
    Principal,
    require_permission,
)
from timesheet_engine.services.contractors import find_contractor_for_user
from timesheet_engine.services.entries import fetch_entry_rows, to_record, window_criteria
from timesheet_engine.services.pagination import Page, check_page

DEFAULT_WEEKS_PAGE_SIZE = 12
MAX_WEEKS_PAGE_SIZE = 52


@dataclass
class WeekSummary:
    """One week in the worker's list."""

    window: WeekWindow
    state: WeekState
    entry_count: int
    days_worked: int


@dataclass
class WeekEntry:
    """A worked day on a docket."""

    docket_id: UUID
    schedule_no: str | None
    record: TimeEntryRecord


@dataclass
class WeekDetail:
    window: WeekWindow
    contractor: Contractor
    entries: list[WeekEntry]
    rows: list[AggregationRow]
    state: WeekState


class WorkerService:
    """Lists and details a worker's weeks using the tagged week state."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    def _live_hours(self, records: list[TimeEntryRecord], rate: Decimal) -> Decimal:
        include_sunday = self.settings.bill_sunday_hours
        return sum_totals(
            compute_totals(row, rate, include_sunday=include_sunday)
            for row in aggregate(records)
        ).hours

    async def _invoices(self, contractor_id: UUID) -> dict[date, WorkerInvoice]:
        result = await self.session.execute(
            select(WorkerInvoice).where(WorkerInvoice.contractor_id == contractor_id)
        )
        return {inv.week_start: inv for inv in result.scalars().all()}

    async def list_weeks(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = DEFAULT_WEEKS_PAGE_SIZE,
    ) -> Page[WeekSummary]:
        """Weeks with entries or an invoice, newest first."""
        require_permission(
            principal,
            Permission.TIMESHEETS_VIEW_OWN,
            message="Access denied - Worker access only",
        )
        check_page(page, limit, MAX_WEEKS_PAGE_SIZE)
        contractor = await find_contractor_for_user(self.session, principal)
        rate = to_decimal(contractor.hourly_rate)

        rows = await fetch_entry_rows(
            self.session, DocketEntry.contractor_id == contractor.contractor_id
        )
        by_week: dict[date, list[TimeEntryRecord]] = defaultdict(list)
        for row in rows:
            record = to_record(*row)
            by_week[start_of_iso_week(record.work_date)].append(record)

        invoices = await self._invoices(contractor.contractor_id)
        week_starts = sorted(set(by_week) | set(invoices), reverse=True)
        total = len(week_starts)
        selected = week_starts[(page - 1) * limit : page * limit]

        items = []
        for week_start in selected:
            records = by_week.get(week_start, [])
            items.append(
                WeekSummary(
                    window=window_from(week_start),
                    state=week_state_for(
                        invoices.get(week_start), self._live_hours(records, rate), rate
                    ),
                    entry_count=len(records),
                    days_worked=len({r.work_date for r in records}),
                )
            )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_week_details(
        self, principal: Principal, week: str, today: date | None = None
    ) -> WeekDetail:
        """Entries and totals for one of the worker's weeks.

        Only the current and past weeks can be viewed.
        """
        require_permission(
            principal,
            Permission.TIMESHEETS_VIEW_OWN,
            message="Access denied - Worker access only",
        )
        window = resolve_week(week)
        if window.start_date > current_week(today).start_date:
            raise ForbiddenError("Can only view current or past weeks")

        contractor = await find_contractor_for_user(self.session, principal)
        rate = to_decimal(contractor.hourly_rate)
        rows = await fetch_entry_rows(
            self.session,
            *window_criteria(window),
            DocketEntry.contractor_id == contractor.contractor_id,
        )
        invoice = await self.session.scalar(
            select(WorkerInvoice)
            .where(WorkerInvoice.contractor_id == contractor.contractor_id)
            .where(WorkerInvoice.week_start == window.start_date)
        )
        if not rows and invoice is None:
            raise NotFoundError(
                "Timesheet", week, message="No timesheet data found for this week"
            )

        entries = []
        for entry, docket, *rest in rows:
            entries.append(
                WeekEntry(
                    docket_id=docket.docket_id,
                    schedule_no=docket.schedule_no,
                    record=to_record(entry, docket, *rest),
                )
            )
        records = [e.record for e in entries]
        return WeekDetail(
            window=window,
            contractor=contractor,
            entries=entries,
            rows=aggregate(records),
            state=week_state_for(invoice, self._live_hours(records, rate), rate),
        )
