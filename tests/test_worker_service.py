"""Tests for the worker's own week views."""

import dataclasses
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from timesheet_engine.calculators.week_state import DraftWeek, PaidWeek
from timesheet_engine.errors import ForbiddenError, NotFoundError
from timesheet_engine.models import WorkerInvoice
from timesheet_engine.services.authorization import Principal
from timesheet_engine.services.worker_service import WorkerService

from tests.conftest import MONDAY, WEEK

pytestmark = pytest.mark.asyncio

TODAY = date(2025, 9, 10)


@pytest.fixture
def service(session, settings) -> WorkerService:
    return WorkerService(session, settings)


class TestListWeeks:
    async def test_weeks_newest_first(self, service, worker):
        page = await service.list_weeks(worker)

        assert page.total == 2
        assert [w.window.iso_label for w in page.items] == ["2025-W36", "2025-W35"]
        current = page.items[0]
        assert current.entry_count == 4
        assert current.days_worked == 4
        assert isinstance(current.state, DraftWeek)
        # Sunday billed by default
        assert current.state.totals.hours == Decimal("22.5")

    async def test_pagination(self, service, worker):
        page = await service.list_weeks(worker, page=2, limit=1)
        assert [w.window.iso_label for w in page.items] == ["2025-W35"]
        assert page.total_pages == 2
        assert not page.has_next

    async def test_invoice_only_week_is_listed(self, service, worker, session, seed):
        session.add(
            WorkerInvoice(
                invoice_id=uuid4(),
                contractor_id=seed.barry.contractor_id,
                week_start=date(2025, 6, 2),
                week_end=date(2025, 6, 8),
                total_hours=Decimal("10"),
                hourly_rate=Decimal("50"),
                total_amount=Decimal("500"),
                status="PAID",
                submitted_at=datetime(2025, 6, 9, tzinfo=timezone.utc),
                paid_at=datetime(2025, 6, 13, tzinfo=timezone.utc),
            )
        )
        await session.commit()

        page = await service.list_weeks(worker)

        oldest = page.items[-1]
        assert oldest.window.start_date == date(2025, 6, 2)
        assert oldest.entry_count == 0
        assert isinstance(oldest.state, PaidWeek)
        assert oldest.state.totals.amount == Decimal("500")

    async def test_sunday_excluded_when_not_billed(self, session, settings, worker):
        service = WorkerService(session, dataclasses.replace(settings, bill_sunday_hours=False))
        page = await service.list_weeks(worker)
        assert page.items[0].state.totals.hours == Decimal("20.5")

    async def test_only_workers(self, service, admin):
        with pytest.raises(ForbiddenError) as exc_info:
            await service.list_weeks(admin)
        assert exc_info.value.message == "Access denied - Worker access only"
        assert exc_info.value.context["permission"] == "timesheets.view_own"


class TestWeekDetails:
    async def test_details(self, service, worker, seed):
        detail = await service.get_week_details(worker, WEEK, today=TODAY)

        assert detail.window.start_date == MONDAY
        assert detail.contractor.contractor_id == seed.barry.contractor_id
        assert [e.record.work_date.day for e in detail.entries] == [1, 3, 6, 7]
        assert [e.schedule_no for e in detail.entries] == [
            "SCH-100", "SCH-101", "SCH-200", "SCH-102",
        ]
        assert [r.builder_name for r in detail.rows] == ["Acme Builders", "Zenith Homes"]
        assert detail.state.can_submit

    async def test_future_week_forbidden(self, service, worker):
        with pytest.raises(ForbiddenError) as exc_info:
            await service.get_week_details(worker, "2025-W40", today=TODAY)
        assert exc_info.value.message == "Can only view current or past weeks"

    async def test_week_without_data(self, service, worker):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_week_details(worker, "2025-W30", today=TODAY)
        assert exc_info.value.message == "No timesheet data found for this week"

    async def test_other_workers_hours_not_visible(self, service, seed):
        alan = Principal.from_user(seed.unlinked_worker)
        detail = await service.get_week_details(alan, WEEK, today=TODAY)

        assert detail.contractor.nickname == "Al"
        assert len(detail.entries) == 1
        assert detail.state.totals.amount == Decimal("320")
