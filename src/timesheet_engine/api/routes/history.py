"""Admin history endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from timesheet_engine.api.dependencies import CurrentPrincipal, DbSession
from timesheet_engine.api.schemas import (
    DocketHistoryItemResponse,
    DocketHistoryResponse,
    DocketHistoryTotalsResponse,
    ErrorResponse,
    PaymentHistoryItemResponse,
    PaymentHistoryResponse,
    PaymentHistoryTotalsResponse,
)
from timesheet_engine.calculators.week_resolver import week_range_label
from timesheet_engine.services.history_service import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    DocketHistoryFilters,
    HistoryService,
    PaymentHistoryFilters,
)

router = APIRouter(prefix="/history", tags=["history"])

PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)]


def docket_filters(
    date_from: date | None = None,
    date_to: date | None = None,
    builder_id: UUID | None = None,
    location_id: UUID | None = None,
    supervisor_id: UUID | None = None,
    contractor_id: UUID | None = None,
    q: Annotated[str | None, Query(max_length=100)] = None,
) -> DocketHistoryFilters:
    return DocketHistoryFilters(
        date_from=date_from,
        date_to=date_to,
        builder_id=builder_id,
        location_id=location_id,
        supervisor_id=supervisor_id,
        contractor_id=contractor_id,
        q=q,
    )


def payment_filters(
    date_from: date | None = None,
    date_to: date | None = None,
    contractor_id: UUID | None = None,
    status: str | None = None,
    q: Annotated[str | None, Query(max_length=100)] = None,
) -> PaymentHistoryFilters:
    return PaymentHistoryFilters(
        date_from=date_from,
        date_to=date_to,
        contractor_id=contractor_id,
        status=status,
        q=q,
    )


def _csv(filename: str, content: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/dockets",
    response_model=DocketHistoryResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def dockets_history(
    db: DbSession,
    principal: CurrentPrincipal,
    filters: Annotated[DocketHistoryFilters, Depends(docket_filters)],
    page: PageQuery = 1,
    limit: LimitQuery = DEFAULT_PAGE_SIZE,
) -> DocketHistoryResponse:
    """Docket entries with hour totals."""
    result, totals = await HistoryService(db).dockets_history(principal, filters, page, limit)
    return DocketHistoryResponse(
        items=[
            DocketHistoryItemResponse(
                entry_id=item.entry.entry_id,
                docket_id=item.docket.docket_id,
                work_date=item.docket.work_date,
                builder_name=item.builder.name,
                company_code=item.builder.company_code,
                location_label=item.location.label,
                supervisor_name=item.supervisor_name,
                contractor_id=item.contractor.contractor_id,
                contractor_nickname=item.contractor.nickname,
                schedule_no=item.docket.schedule_no,
                description=item.docket.description,
                tonnage_hours=item.entry.tonnage_hours,
                day_labour_hours=item.entry.day_labour_hours,
                total_hours=item.total_hours,
                created_at=item.docket.created_at,
            )
            for item in result.items
        ],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        totals=DocketHistoryTotalsResponse(
            entries=totals.entries,
            tonnage_hours=totals.tonnage_hours,
            day_labour_hours=totals.day_labour_hours,
            total_hours=totals.total_hours,
        ),
    )


@router.get("/dockets/export", response_class=Response)
async def export_dockets_history(
    db: DbSession,
    principal: CurrentPrincipal,
    filters: Annotated[DocketHistoryFilters, Depends(docket_filters)],
) -> Response:
    """Docket history as CSV."""
    return _csv(*await HistoryService(db).export_dockets_csv(principal, filters))


@router.get(
    "/payments",
    response_model=PaymentHistoryResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def payments_history(
    db: DbSession,
    principal: CurrentPrincipal,
    filters: Annotated[PaymentHistoryFilters, Depends(payment_filters)],
    page: PageQuery = 1,
    limit: LimitQuery = DEFAULT_PAGE_SIZE,
) -> PaymentHistoryResponse:
    """Invoices with paid and pending totals."""
    result, totals = await HistoryService(db).payments_history(principal, filters, page, limit)
    return PaymentHistoryResponse(
        items=[
            PaymentHistoryItemResponse(
                invoice_id=item.invoice.invoice_id,
                contractor_id=item.contractor.contractor_id,
                contractor_nickname=item.contractor.nickname,
                contractor_full_name=item.contractor.full_name,
                week_start=item.invoice.week_start,
                week_end=item.invoice.week_end,
                week_label=week_range_label(item.invoice.week_start, item.invoice.week_end),
                total_hours=item.invoice.total_hours,
                hourly_rate=item.invoice.hourly_rate,
                total_amount=item.invoice.total_amount,
                status=item.invoice.status,
                submitted_at=item.invoice.submitted_at,
                paid_at=item.invoice.paid_at,
            )
            for item in result.items
        ],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        totals=PaymentHistoryTotalsResponse(
            total_invoices=totals.total_invoices,
            total_hours=totals.total_hours,
            total_amount=totals.total_amount,
            paid_amount=totals.paid_amount,
            pending_amount=totals.pending_amount,
        ),
    )


@router.get("/payments/export", response_class=Response)
async def export_payments_history(
    db: DbSession,
    principal: CurrentPrincipal,
    filters: Annotated[PaymentHistoryFilters, Depends(payment_filters)],
) -> Response:
    """Payment history as CSV."""
    return _csv(*await HistoryService(db).export_payments_csv(principal, filters))
