"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from timesheet_engine.calculators.totals import format_decimal
from timesheet_engine.calculators.week_resolver import WeekWindow
from timesheet_engine.calculators.week_state import DraftWeek, WeekState

# Hours and money leave the API as two decimal place strings
Money = Annotated[Decimal, PlainSerializer(format_decimal, return_type=str, when_used="json")]


# ============================================================================
# Common schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


class WeekWindowResponse(BaseModel):
    """A resolved ISO week."""

    week: str
    week_start: date
    week_end: date
    label: str

    @staticmethod
    def window_fields(window: WeekWindow) -> dict[str, Any]:
        return {
            "week": window.iso_label,
            "week_start": window.start_date,
            "week_end": window.last_day,
            "label": window.label,
        }


class TotalsResponse(BaseModel):
    total_hours: Money
    total_amount: Money


class WeekStateResponse(BaseModel):
    """Invoice state of a contractor week (live for drafts, frozen otherwise)."""

    status: str
    invoice_id: UUID | None = None
    total_hours: Money
    total_amount: Money
    hourly_rate: Money
    can_submit: bool
    submitted_at: datetime | None = None
    paid_at: datetime | None = None

    @classmethod
    def from_state(cls, state: WeekState) -> "WeekStateResponse":
        rate = state.rate if isinstance(state, DraftWeek) else state.snapshot.rate
        totals = state.totals
        return cls(
            status=state.status,
            invoice_id=state.invoice_id,
            total_hours=totals.hours,
            total_amount=totals.amount,
            hourly_rate=rate,
            can_submit=state.can_submit,
            submitted_at=state.submitted_at,
            paid_at=state.paid_at,
        )


# ============================================================================
# Weekly report schemas
# ============================================================================


class WeeklyRowResponse(BaseModel):
    """One (contractor, builder, location) line of the weekly grid."""

    contractor_id: UUID
    contractor_name: str
    nickname: str | None = None
    email: str | None = None
    builder_id: UUID
    builder_name: str | None = None
    company_code: str | None = None
    location_id: UUID
    location_label: str | None = None
    mon: Money
    tue: Money
    wed: Money
    thu: Money
    fri: Money
    sat: Money
    sunday_hours: Money
    tonnage_hours: Money
    day_labour_hours: Money
    total_hours: Money
    rate: Money
    total_amount: Money
    status: str
    invoice_amount: Money | None = None


class WeeklyResponse(WeekWindowResponse):
    """Weekly grid with grand totals."""

    rows: list[WeeklyRowResponse]
    totals: TotalsResponse
    contractor_count: int


class BuilderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    builder_id: UUID
    name: str
    company_code: str


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    location_id: UUID
    builder_id: UUID
    label: str


# ============================================================================
# Worker week schemas
# ============================================================================


class WorkerWeekResponse(WeekWindowResponse):
    entry_count: int
    days_worked: int
    state: WeekStateResponse


class WorkerWeekListResponse(BaseModel):
    items: list[WorkerWeekResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class WeekEntryResponse(BaseModel):
    docket_id: UUID
    work_date: date
    schedule_no: str | None = None
    builder_name: str | None = None
    company_code: str | None = None
    location_label: str | None = None
    tonnage_hours: Money
    day_labour_hours: Money
    total_hours: Money


class WorksiteRowResponse(BaseModel):
    builder_id: UUID
    builder_name: str | None = None
    company_code: str | None = None
    location_id: UUID
    location_label: str | None = None
    daily_hours: list[Money]
    sunday_hours: Money
    tonnage_hours: Money
    day_labour_hours: Money
    total_hours: Money


class WorkerWeekDetailResponse(WeekWindowResponse):
    contractor_id: UUID
    contractor_name: str
    entries: list[WeekEntryResponse]
    worksites: list[WorksiteRowResponse]
    state: WeekStateResponse


# ============================================================================
# Invoice schemas
# ============================================================================


class InvoiceSubmitRequest(BaseModel):
    """Worker submission; any date in the week is normalised to its Monday."""

    week_start: date


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    contractor_id: UUID
    week_start: date
    week_end: date
    total_hours: Money
    hourly_rate: Money
    total_amount: Money
    status: str
    submitted_at: datetime | None = None
    paid_at: datetime | None = None
    pdf_url: str | None = None
    audit_notes: str | None = None
    created_at: datetime
    updated_at: datetime


class InvoiceListItemResponse(InvoiceResponse):
    nickname: str
    full_name: str | None = None
    email: str | None = None
    week_label: str


class InvoiceListResponse(BaseModel):
    items: list[InvoiceListItemResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class InvoiceUpdateRequest(BaseModel):
    """Admin edit of the frozen snapshot; a note is mandatory."""

    total_hours: Decimal | None = Field(default=None, ge=0)
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)
    audit_note: str = Field(min_length=1, max_length=1000)


class InvoiceStatusRequest(BaseModel):
    status: str
    audit_note: str | None = Field(default=None, max_length=1000)


# ============================================================================
# History schemas
# ============================================================================


class DocketHistoryItemResponse(BaseModel):
    entry_id: UUID
    docket_id: UUID
    work_date: date
    builder_name: str
    company_code: str
    location_label: str
    supervisor_name: str
    contractor_id: UUID
    contractor_nickname: str
    schedule_no: str | None = None
    description: str | None = None
    tonnage_hours: Money
    day_labour_hours: Money
    total_hours: Money
    created_at: datetime


class DocketHistoryTotalsResponse(BaseModel):
    entries: int
    tonnage_hours: Money
    day_labour_hours: Money
    total_hours: Money


class DocketHistoryResponse(BaseModel):
    items: list[DocketHistoryItemResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    totals: DocketHistoryTotalsResponse


class PaymentHistoryItemResponse(BaseModel):
    invoice_id: UUID
    contractor_id: UUID
    contractor_nickname: str
    contractor_full_name: str | None = None
    week_start: date
    week_end: date
    week_label: str
    total_hours: Money
    hourly_rate: Money
    total_amount: Money
    status: str
    submitted_at: datetime | None = None
    paid_at: datetime | None = None


class PaymentHistoryTotalsResponse(BaseModel):
    total_invoices: int
    total_hours: Money
    total_amount: Money
    paid_amount: Money
    pending_amount: Money


class PaymentHistoryResponse(BaseModel):
    items: list[PaymentHistoryItemResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    totals: PaymentHistoryTotalsResponse
