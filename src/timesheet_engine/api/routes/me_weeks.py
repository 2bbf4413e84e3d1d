"""Worker endpoints for their own weeks."""

from typing import Annotated

from fastapi import APIRouter, Path, Query

from timesheet_engine.api.dependencies import AppSettings, CurrentPrincipal, DbSession
from timesheet_engine.api.schemas import (
    ErrorResponse,
    WeekEntryResponse,
    WeekStateResponse,
    WeekWindowResponse,
    WorkerWeekDetailResponse,
    WorkerWeekListResponse,
    WorkerWeekResponse,
    WorksiteRowResponse,
)
from timesheet_engine.services.worker_service import (
    DEFAULT_WEEKS_PAGE_SIZE,
    MAX_WEEKS_PAGE_SIZE,
    WorkerService,
)

router = APIRouter(prefix="/me/weeks", tags=["worker"])


@router.get(
    "",
    response_model=WorkerWeekListResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_my_weeks(
    db: DbSession,
    principal: CurrentPrincipal,
    settings: AppSettings,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_WEEKS_PAGE_SIZE)] = DEFAULT_WEEKS_PAGE_SIZE,
) -> WorkerWeekListResponse:
    """The worker's weeks, newest first."""
    result = await WorkerService(db, settings).list_weeks(principal, page, limit)
    # A contractor may have been linked by email during the lookup
    await db.commit()
    return WorkerWeekListResponse(
        items=[
            WorkerWeekResponse(
                **WeekWindowResponse.window_fields(item.window),
                entry_count=item.entry_count,
                days_worked=item.days_worked,
                state=WeekStateResponse.from_state(item.state),
            )
            for item in result.items
        ],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get(
    "/{week}",
    response_model=WorkerWeekDetailResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_my_week(
    db: DbSession,
    principal: CurrentPrincipal,
    settings: AppSettings,
    week: Annotated[str, Path(description="ISO week, e.g. 2025-W36")],
) -> WorkerWeekDetailResponse:
    """Entries, per-worksite hours and invoice state for one week."""
    detail = await WorkerService(db, settings).get_week_details(principal, week)
    await db.commit()
    return WorkerWeekDetailResponse(
        **WeekWindowResponse.window_fields(detail.window),
        contractor_id=detail.contractor.contractor_id,
        contractor_name=detail.contractor.display_name,
        entries=[
            WeekEntryResponse(
                docket_id=e.docket_id,
                work_date=e.record.work_date,
                schedule_no=e.schedule_no,
                builder_name=e.record.builder_name,
                company_code=e.record.company_code,
                location_label=e.record.location_label,
                tonnage_hours=e.record.tonnage_hours,
                day_labour_hours=e.record.day_labour_hours,
                total_hours=e.record.total_hours,
            )
            for e in detail.entries
        ],
        worksites=[
            WorksiteRowResponse(
                builder_id=row.builder_id,
                builder_name=row.builder_name,
                company_code=row.company_code,
                location_id=row.location_id,
                location_label=row.location_label,
                daily_hours=row.daily_hours,
                sunday_hours=row.sunday_hours,
                tonnage_hours=row.tonnage_total,
                day_labour_hours=row.day_labour_total,
                total_hours=row.total_hours,
            )
            for row in detail.rows
        ],
        state=WeekStateResponse.from_state(detail.state),
    )
