"""Worker invoice endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from timesheet_engine.api.dependencies import (
    AppSettings,
    CurrentPrincipal,
    DbSession,
    NotifierDep,
    RendererDep,
    StorageDep,
)
from timesheet_engine.api.schemas import (
    ErrorResponse,
    InvoiceListItemResponse,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStatusRequest,
    InvoiceSubmitRequest,
    InvoiceUpdateRequest,
)
from timesheet_engine.services.invoice_service import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    InvoiceListItem,
    InvoiceService,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _list_item_response(item: InvoiceListItem) -> InvoiceListItemResponse:
    base = InvoiceResponse.model_validate(item.invoice)
    return InvoiceListItemResponse(
        **base.model_dump(),
        nickname=item.nickname,
        full_name=item.full_name,
        email=item.email,
        week_label=item.week_label,
    )


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def submit_invoice(
    db: DbSession,
    principal: CurrentPrincipal,
    settings: AppSettings,
    notifier: NotifierDep,
    renderer: RendererDep,
    storage: StorageDep,
    payload: InvoiceSubmitRequest,
) -> InvoiceResponse:
    """Submit the worker's invoice for a week and notify the director."""
    service = InvoiceService(db, notifier, renderer, storage, settings)
    invoice = await service.submit_week(principal, payload.week_start)
    return InvoiceResponse.model_validate(invoice)


@router.get(
    "",
    response_model=InvoiceListResponse,
    responses={403: {"model": ErrorResponse}},
)
async def list_invoices(
    db: DbSession,
    principal: CurrentPrincipal,
    week: Annotated[str | None, Query(description="ISO week, e.g. 2025-W36")] = None,
    q: Annotated[str | None, Query(max_length=100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> InvoiceListResponse:
    """Admin list of invoices, newest week first."""
    result = await InvoiceService(db).list_invoices(principal, week, q, page, limit)
    return InvoiceListResponse(
        items=[_list_item_response(item) for item in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 403: {"model": ErrorResponse}},
)
async def export_invoices(
    db: DbSession,
    principal: CurrentPrincipal,
    week: Annotated[str, Query(description="ISO week, e.g. 2025-W36")],
    q: Annotated[str | None, Query(max_length=100)] = None,
) -> Response:
    """Download a week's invoices as CSV."""
    filename, content = await InvoiceService(db).export_invoices_csv(principal, week, q)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice(
    db: DbSession,
    principal: CurrentPrincipal,
    invoice_id: Annotated[UUID, Path()],
) -> InvoiceResponse:
    """A single invoice (admins: any, workers: their own)."""
    invoice = await InvoiceService(db).get_invoice(principal, invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_invoice(
    db: DbSession,
    principal: CurrentPrincipal,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceUpdateRequest,
) -> InvoiceResponse:
    """Edit hours, rate or amount of a submitted invoice with an audit note."""
    invoice = await InvoiceService(db).update_invoice(
        principal,
        invoice_id,
        audit_note=payload.audit_note,
        total_hours=payload.total_hours,
        hourly_rate=payload.hourly_rate,
        total_amount=payload.total_amount,
    )
    await db.commit()
    return InvoiceResponse.model_validate(invoice)


@router.post(
    "/{invoice_id}/status",
    response_model=InvoiceResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_invoice_status(
    db: DbSession,
    principal: CurrentPrincipal,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceStatusRequest,
) -> InvoiceResponse:
    """Mark an invoice paid, or undo a payment."""
    invoice = await InvoiceService(db).update_status(
        principal, invoice_id, payload.status.upper(), payload.audit_note
    )
    await db.commit()
    return InvoiceResponse.model_validate(invoice)
