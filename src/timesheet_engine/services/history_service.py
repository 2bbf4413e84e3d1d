"""Admin history of dockets and invoice payments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ColumnElement, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from timesheet_engine.calculators.types import ZERO, to_decimal
from timesheet_engine.calculators.week_resolver import parse_date
from timesheet_engine.errors import InvalidFormatError
from timesheet_engine.exports import dockets_history_to_csv, payments_history_to_csv
from timesheet_engine.models import (
    AppUser,
    Builder,
    BuilderLocation,
    Contractor,
    Docket,
    DocketEntry,
    WorkerInvoice,
)
from timesheet_engine.services.authorization import (
    Permission,
    Principal,
    require_permission,
)
from timesheet_engine.services.pagination import Page, check_page, count_rows, page_slice
from timesheet_engine.services.state_machine import InvoiceStatus

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
MAX_EXPORT_ROWS = 10_000

FORBIDDEN_MESSAGE = "Access denied - Admin access only"
INVALID_DATE_RANGE = "Invalid date range provided"

Supervisor = aliased(AppUser, name="supervisor")


@dataclass(frozen=True)
class DocketHistoryFilters:
    date_from: date | str | None = None
    date_to: date | str | None = None
    builder_id: UUID | None = None
    location_id: UUID | None = None
    supervisor_id: UUID | None = None
    contractor_id: UUID | None = None
    q: str | None = None


@dataclass(frozen=True)
class PaymentHistoryFilters:
    date_from: date | str | None = None
    date_to: date | str | None = None
    contractor_id: UUID | None = None
    status: str | None = None
    q: str | None = None


@dataclass
class DocketHistoryItem:
    entry: DocketEntry
    docket: Docket
    contractor: Contractor
    builder: Builder
    location: BuilderLocation
    supervisor: AppUser

    @property
    def total_hours(self) -> Decimal:
        return to_decimal(self.entry.tonnage_hours) + to_decimal(self.entry.day_labour_hours)

    @property
    def supervisor_name(self) -> str:
        return self.supervisor.name or self.supervisor.email


@dataclass
class PaymentHistoryItem:
    invoice: WorkerInvoice
    contractor: Contractor


@dataclass(frozen=True)
class DocketHistoryTotals:
    entries: int = 0
    tonnage_hours: Decimal = ZERO
    day_labour_hours: Decimal = ZERO

    @property
    def total_hours(self) -> Decimal:
        return self.tonnage_hours + self.day_labour_hours


@dataclass(frozen=True)
class PaymentHistoryTotals:
    total_invoices: int = 0
    total_hours: Decimal = ZERO
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    pending_amount: Decimal = ZERO


def _date_range(date_from, date_to) -> tuple[date | None, date | None]:
    start = parse_date(date_from, INVALID_DATE_RANGE) if date_from else None
    end = parse_date(date_to, INVALID_DATE_RANGE) if date_to else None
    if start and end and start > end:
        raise InvalidFormatError(
            INVALID_DATE_RANGE,
            context={"date_from": start.isoformat(), "date_to": end.isoformat()},
        )
    return start, end


class HistoryService:
    """Filterable, paginated history views with CSV export."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Dockets
    # ------------------------------------------------------------------

    def _docket_criteria(self, filters: DocketHistoryFilters) -> list[ColumnElement[bool]]:
        start, end = _date_range(filters.date_from, filters.date_to)
        criteria: list[ColumnElement[bool]] = []
        if start:
            criteria.append(Docket.work_date >= start)
        if end:
            criteria.append(Docket.work_date <= end)
        if filters.builder_id:
            criteria.append(Docket.builder_id == filters.builder_id)
        if filters.location_id:
            criteria.append(Docket.location_id == filters.location_id)
        if filters.supervisor_id:
            criteria.append(Docket.supervisor_id == filters.supervisor_id)
        if filters.contractor_id:
            criteria.append(DocketEntry.contractor_id == filters.contractor_id)
        if filters.q and filters.q.strip():
            pattern = f"%{filters.q.strip()}%"
            criteria.append(
                or_(
                    Contractor.nickname.ilike(pattern),
                    Contractor.full_name.ilike(pattern),
                    Builder.name.ilike(pattern),
                    BuilderLocation.label.ilike(pattern),
                    Docket.schedule_no.ilike(pattern),
                )
            )
        return criteria

    def _docket_query(self, criteria: list[ColumnElement[bool]]):
        return (
            select(DocketEntry, Docket, Contractor, Builder, BuilderLocation, Supervisor)
            .join(Docket, DocketEntry.docket_id == Docket.docket_id)
            .join(Contractor, DocketEntry.contractor_id == Contractor.contractor_id)
            .join(Builder, Docket.builder_id == Builder.builder_id)
            .join(BuilderLocation, Docket.location_id == BuilderLocation.location_id)
            .join(Supervisor, Docket.supervisor_id == Supervisor.user_id)
            .where(*criteria)
            .order_by(Docket.work_date.desc(), Docket.created_at.desc(), Contractor.nickname)
        )

    async def dockets_history(
        self,
        principal: Principal,
        filters: DocketHistoryFilters | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[Page[DocketHistoryItem], DocketHistoryTotals]:
        """Docket entries matching ``filters`` with hour totals for the full match."""
        require_permission(principal, Permission.HISTORY_VIEW, message=FORBIDDEN_MESSAGE)
        check_page(page, limit, MAX_PAGE_SIZE)
        criteria = self._docket_criteria(filters or DocketHistoryFilters())
        query = self._docket_query(criteria)

        total = await count_rows(self.session, query)
        result = await self.session.execute(page_slice(query, page, limit))
        items = [DocketHistoryItem(*row) for row in result.all()]

        sums = (
            await self.session.execute(
                select(
                    func.count(DocketEntry.entry_id),
                    func.coalesce(func.sum(DocketEntry.tonnage_hours), 0),
                    func.coalesce(func.sum(DocketEntry.day_labour_hours), 0),
                )
                .select_from(DocketEntry)
                .join(Docket, DocketEntry.docket_id == Docket.docket_id)
                .join(Contractor, DocketEntry.contractor_id == Contractor.contractor_id)
                .join(Builder, Docket.builder_id == Builder.builder_id)
                .join(BuilderLocation, Docket.location_id == BuilderLocation.location_id)
                .where(*criteria)
            )
        ).one()
        totals = DocketHistoryTotals(
            entries=sums[0],
            tonnage_hours=to_decimal(sums[1]),
            day_labour_hours=to_decimal(sums[2]),
        )
        return Page(items=items, total=total, page=page, limit=limit), totals

    async def export_dockets_csv(
        self, principal: Principal, filters: DocketHistoryFilters | None = None
    ) -> tuple[str, str]:
        require_permission(principal, Permission.HISTORY_VIEW, message=FORBIDDEN_MESSAGE)
        filters = filters or DocketHistoryFilters()
        query = self._docket_query(self._docket_criteria(filters)).limit(MAX_EXPORT_ROWS)
        result = await self.session.execute(query)
        items = [DocketHistoryItem(*row) for row in result.all()]
        return "dockets-history.csv", dockets_history_to_csv(items)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def _payment_criteria(self, filters: PaymentHistoryFilters) -> list[ColumnElement[bool]]:
        start, end = _date_range(filters.date_from, filters.date_to)
        criteria: list[ColumnElement[bool]] = []
        if start:
            criteria.append(WorkerInvoice.week_start >= start)
        if end:
            criteria.append(WorkerInvoice.week_start <= end)
        if filters.contractor_id:
            criteria.append(WorkerInvoice.contractor_id == filters.contractor_id)
        if filters.status:
            try:
                status = InvoiceStatus(filters.status.upper())
            except ValueError:
                raise InvalidFormatError(
                    "Invalid filters provided", context={"status": filters.status}
                ) from None
            criteria.append(WorkerInvoice.status == status.value)
        if filters.q and filters.q.strip():
            pattern = f"%{filters.q.strip()}%"
            criteria.append(
                or_(
                    Contractor.nickname.ilike(pattern),
                    Contractor.full_name.ilike(pattern),
                    Contractor.email.ilike(pattern),
                )
            )
        return criteria

    def _payment_query(self, criteria: list[ColumnElement[bool]]):
        return (
            select(WorkerInvoice, Contractor)
            .join(Contractor, WorkerInvoice.contractor_id == Contractor.contractor_id)
            .where(*criteria)
            .order_by(WorkerInvoice.week_start.desc(), Contractor.nickname)
        )

    async def payments_history(
        self,
        principal: Principal,
        filters: PaymentHistoryFilters | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[Page[PaymentHistoryItem], PaymentHistoryTotals]:
        """Invoices matching ``filters`` with paid and pending sums."""
        require_permission(principal, Permission.HISTORY_VIEW, message=FORBIDDEN_MESSAGE)
        check_page(page, limit, MAX_PAGE_SIZE)
        criteria = self._payment_criteria(filters or PaymentHistoryFilters())
        query = self._payment_query(criteria)

        total = await count_rows(self.session, query)
        result = await self.session.execute(page_slice(query, page, limit))
        items = [PaymentHistoryItem(*row) for row in result.all()]

        amount = WorkerInvoice.total_amount
        sums = (
            await self.session.execute(
                select(
                    func.count(WorkerInvoice.invoice_id),
                    func.coalesce(func.sum(WorkerInvoice.total_hours), 0),
                    func.coalesce(func.sum(amount), 0),
                    func.coalesce(
                        func.sum(case((WorkerInvoice.status == "PAID", amount), else_=0)), 0
                    ),
                    func.coalesce(
                        func.sum(case((WorkerInvoice.status == "SUBMITTED", amount), else_=0)),
                        0,
                    ),
                )
                .select_from(WorkerInvoice)
                .join(Contractor, WorkerInvoice.contractor_id == Contractor.contractor_id)
                .where(*criteria)
            )
        ).one()
        totals = PaymentHistoryTotals(
            total_invoices=sums[0],
            total_hours=to_decimal(sums[1]),
            total_amount=to_decimal(sums[2]),
            paid_amount=to_decimal(sums[3]),
            pending_amount=to_decimal(sums[4]),
        )
        return Page(items=items, total=total, page=page, limit=limit), totals

    async def export_payments_csv(
        self, principal: Principal, filters: PaymentHistoryFilters | None = None
    ) -> tuple[str, str]:
        require_permission(principal, Permission.HISTORY_VIEW, message=FORBIDDEN_MESSAGE)
        filters = filters or PaymentHistoryFilters()
        query = self._payment_query(self._payment_criteria(filters)).limit(MAX_EXPORT_ROWS)
        result = await self.session.execute(query)
        items = [PaymentHistoryItem(*row) for row in result.all()]
        return "payments-history.csv", payments_history_to_csv(items)
