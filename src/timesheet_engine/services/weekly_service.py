"""Weekly timesheet report for admins and supervisors."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.calculators.aggregator import aggregate, filter_rows
from timesheet_engine.calculators.totals import allocate_snapshot, compute_totals, sum_totals
from timesheet_engine.calculators.types import AggregationRow, Totals, to_decimal
from timesheet_engine.calculators.week_resolver import WeekWindow, resolve_week
from timesheet_engine.calculators.week_state import DraftWeek, WeekState, week_state_for
from timesheet_engine.errors import InvalidFormatError, NotFoundError
from timesheet_engine.exports import weekly_rows_to_csv
from timesheet_engine.models import Builder, BuilderLocation, Docket, WorkerInvoice
from timesheet_engine.services.authorization import (
    Permission,
    Principal,
    docket_filter,
    require_permission,
)
from timesheet_engine.services.entries import load_time_entries

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 100


def _row_key(row: AggregationRow) -> tuple[UUID, UUID, UUID]:
    return (row.contractor_id, row.builder_id, row.location_id)


@dataclass
class WeeklyRow:
    """An aggregation row with its displayed rate, totals and invoice state.

    Draft rows are priced live. Once the contractor's week is invoiced, the
    rate and totals come from the frozen snapshot, split across that
    contractor's rows.
    """

    row: AggregationRow
    rate: Decimal
    totals: Totals
    state: WeekState

    @property
    def status(self) -> str:
        return self.state.status


@dataclass
class WeeklyReport:
    window: WeekWindow
    rows: list[WeeklyRow]
    totals: Totals

    @property
    def contractor_count(self) -> int:
        return len({r.row.contractor_id for r in self.rows})


class WeeklyService:
    """Builds the Monday to Saturday grid for a week."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_weekly(
        self,
        principal: Principal,
        week: str | None = None,
        week_start: str | date | None = None,
        builder_id: UUID | None = None,
        location_id: UUID | None = None,
        q: str | None = None,
    ) -> WeeklyReport:
        """Aggregate the week's entries visible to ``principal``.

        Supervisors only see dockets they supervise. Draft rows are totalled
        from live entries; submitted and paid contractors show their frozen
        invoice, so later rate or entry changes do not move the figures.
        """
        require_permission(
            principal,
            Permission.WEEKLY_VIEW,
            message="Access denied - Admin or Supervisor access only",
        )
        if q is not None and len(q) > MAX_QUERY_LENGTH:
            raise InvalidFormatError(
                f"Search query must be at most {MAX_QUERY_LENGTH} characters"
            )
        window = resolve_week(week, week_start)

        criteria = [docket_filter(principal)]
        if builder_id is not None:
            criteria.append(Docket.builder_id == builder_id)
        if location_id is not None:
            criteria.append(Docket.location_id == location_id)

        records = await load_time_entries(self.session, window, *criteria)
        rows = filter_rows(aggregate(records), q)

        invoices = await self._invoices_for(window, {r.contractor_id for r in rows})
        by_contractor: dict[UUID, list[AggregationRow]] = defaultdict(list)
        for row in rows:
            by_contractor[row.contractor_id].append(row)

        states: dict[UUID, WeekState] = {}
        frozen: dict[tuple[UUID, UUID, UUID], Totals] = {}
        for contractor_id, contractor_rows in by_contractor.items():
            state = week_state_for(
                invoices.get(contractor_id),
                sum(r.total_hours for r in contractor_rows),
                to_decimal(contractor_rows[0].hourly_rate),
            )
            states[contractor_id] = state
            if not isinstance(state, DraftWeek):
                parts = allocate_snapshot(
                    state.snapshot, [r.total_hours + r.sunday_hours for r in contractor_rows]
                )
                frozen.update(zip((_row_key(r) for r in contractor_rows), parts))

        weekly_rows = []
        for row in rows:
            state = states[row.contractor_id]
            if isinstance(state, DraftWeek):
                rate, totals = state.rate, compute_totals(row, state.rate)
            else:
                rate, totals = state.snapshot.rate, frozen[_row_key(row)]
            weekly_rows.append(WeeklyRow(row=row, rate=rate, totals=totals, state=state))

        report = WeeklyReport(
            window=window,
            rows=weekly_rows,
            totals=sum_totals(r.totals for r in weekly_rows),
        )
        logger.debug(
            "Weekly report %s for %s: %d rows",
            window.iso_label,
            principal.user_id,
            len(weekly_rows),
        )
        return report

    async def export_weekly_csv(
        self,
        principal: Principal,
        week: str | None = None,
        week_start: str | date | None = None,
        builder_id: UUID | None = None,
        location_id: UUID | None = None,
        q: str | None = None,
        generated_at: datetime | None = None,
    ) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for the weekly report."""
        report = await self.get_weekly(
            principal, week, week_start, builder_id, location_id, q
        )
        content = weekly_rows_to_csv(report, generated_at=generated_at)
        filename = f"weekly-timesheet-{report.window.start_date.isoformat()}.csv"
        return filename, content

    async def list_builders(self, principal: Principal) -> list[Builder]:
        """Builders for the filter controls."""
        require_permission(principal, Permission.BUILDERS_VIEW)
        result = await self.session.execute(select(Builder).order_by(Builder.name))
        return list(result.scalars().all())

    async def list_locations(
        self, principal: Principal, builder_id: UUID
    ) -> list[BuilderLocation]:
        require_permission(principal, Permission.BUILDERS_VIEW)
        builder = await self.session.get(Builder, builder_id)
        if builder is None:
            raise NotFoundError("Builder", builder_id)
        result = await self.session.execute(
            select(BuilderLocation)
            .where(BuilderLocation.builder_id == builder_id)
            .order_by(BuilderLocation.label)
        )
        return list(result.scalars().all())

    async def _invoices_for(
        self, window: WeekWindow, contractor_ids: set[UUID]
    ) -> dict[UUID, WorkerInvoice]:
        if not contractor_ids:
            return {}
        result = await self.session.execute(
            select(WorkerInvoice)
            .where(WorkerInvoice.week_start == window.start_date)
            .where(WorkerInvoice.contractor_id.in_(contractor_ids))
        )
        return {inv.contractor_id: inv for inv in result.scalars().all()}
