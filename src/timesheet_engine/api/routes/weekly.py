"""Weekly timesheet report endpoints (admins and supervisors)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response

from timesheet_engine.api.dependencies import CurrentPrincipal, DbSession
from timesheet_engine.api.schemas import (
    BuilderResponse,
    ErrorResponse,
    LocationResponse,
    TotalsResponse,
    WeeklyResponse,
    WeeklyRowResponse,
    WeekWindowResponse,
)
from timesheet_engine.services.weekly_service import WeeklyRow, WeeklyService

router = APIRouter(prefix="/weekly", tags=["weekly"])

WeekQuery = Annotated[str | None, Query(description="ISO week, e.g. 2025-W36")]
WeekStartQuery = Annotated[
    str | None, Query(alias="weekStart", description="Explicit start date YYYY-MM-DD")
]
SearchQuery = Annotated[str | None, Query(max_length=100)]


def _row_response(weekly: WeeklyRow) -> WeeklyRowResponse:
    row = weekly.row
    mon, tue, wed, thu, fri, sat = row.daily_hours
    invoice_amount = None if weekly.state.status == "DRAFT" else weekly.state.totals.amount
    return WeeklyRowResponse(
        contractor_id=row.contractor_id,
        contractor_name=row.contractor_name,
        nickname=row.nickname,
        email=row.email,
        builder_id=row.builder_id,
        builder_name=row.builder_name,
        company_code=row.company_code,
        location_id=row.location_id,
        location_label=row.location_label,
        mon=mon,
        tue=tue,
        wed=wed,
        thu=thu,
        fri=fri,
        sat=sat,
        sunday_hours=row.sunday_hours,
        tonnage_hours=row.tonnage_total,
        day_labour_hours=row.day_labour_total,
        total_hours=weekly.totals.hours,
        rate=weekly.rate,
        total_amount=weekly.totals.amount,
        status=weekly.status,
        invoice_amount=invoice_amount,
    )


@router.get(
    "",
    response_model=WeeklyResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def get_weekly(
    db: DbSession,
    principal: CurrentPrincipal,
    week: WeekQuery = None,
    week_start: WeekStartQuery = None,
    builder_id: UUID | None = None,
    location_id: UUID | None = None,
    q: SearchQuery = None,
) -> WeeklyResponse:
    """Monday to Saturday hours per contractor, builder and location."""
    report = await WeeklyService(db).get_weekly(
        principal, week, week_start, builder_id, location_id, q
    )
    return WeeklyResponse(
        **WeekWindowResponse.window_fields(report.window),
        rows=[_row_response(r) for r in report.rows],
        totals=TotalsResponse(
            total_hours=report.totals.hours, total_amount=report.totals.amount
        ),
        contractor_count=report.contractor_count,
    )


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 400: {"model": ErrorResponse}},
)
async def export_weekly(
    db: DbSession,
    principal: CurrentPrincipal,
    week: WeekQuery = None,
    week_start: WeekStartQuery = None,
    builder_id: UUID | None = None,
    location_id: UUID | None = None,
    q: SearchQuery = None,
) -> Response:
    """Download the weekly grid as CSV."""
    filename, content = await WeeklyService(db).export_weekly_csv(
        principal, week, week_start, builder_id, location_id, q
    )
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/builders", response_model=list[BuilderResponse])
async def list_builders(db: DbSession, principal: CurrentPrincipal) -> list[BuilderResponse]:
    """Builders available as weekly filters."""
    builders = await WeeklyService(db).list_builders(principal)
    return [BuilderResponse.model_validate(b) for b in builders]


@router.get(
    "/builders/{builder_id}/locations",
    response_model=list[LocationResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_locations(
    db: DbSession,
    principal: CurrentPrincipal,
    builder_id: Annotated[UUID, Path()],
) -> list[LocationResponse]:
    """Locations of a builder."""
    locations = await WeeklyService(db).list_locations(principal, builder_id)
    return [LocationResponse.model_validate(loc) for loc in locations]
