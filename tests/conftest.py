"""Pytest fixtures for timesheet engine tests."""

from __future__ import annotations

import csv
import io
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timesheet_engine.config import Settings
from timesheet_engine.models import (
    AppUser,
    Base,
    Builder,
    BuilderLocation,
    Contractor,
    Docket,
    DocketEntry,
)
from timesheet_engine.providers import EmailMessageSpec, InvoiceData, PdfStorage, SendResult
from timesheet_engine.services.authorization import Principal

# In-memory SQLite shared by every connection of the engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"

WEEK = "2025-W36"
MONDAY = date(2025, 9, 1)
WEDNESDAY = date(2025, 9, 3)
SATURDAY = date(2025, 9, 6)
SUNDAY = date(2025, 9, 7)
PREVIOUS_WEDNESDAY = date(2025, 8, 27)


def parse_csv(text: str) -> list[dict[str, str]]:
    """Read CSV text, skipping the commented preamble."""
    lines = [line for line in text.splitlines() if line and not line.startswith("#")]
    return list(csv.DictReader(io.StringIO("\n".join(lines))))


@pytest_asyncio.fixture
async def engine():
    """Create a fresh database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        app_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        cors_origins=("*",),
        director_email="director@example.com",
        mail_from="Timesheets <noreply@example.com>",
        smtp_host="",
        smtp_port=587,
        smtp_username="",
        smtp_password="",
        smtp_use_tls=True,
        invoice_pdf_dir=str(tmp_path / "invoices"),
        currency="AUD",
        bill_sunday_hours=True,
    )


# ============================================================================
# Fake adapters
# ============================================================================


class RecordingNotifier:
    """Notifier double that records messages and can be told to fail."""

    name = "recording"

    def __init__(self, fail: bool = False, raises: Exception | None = None):
        self.fail = fail
        self.raises = raises
        self.sent: list[EmailMessageSpec] = []

    def send(self, message: EmailMessageSpec) -> SendResult:
        if self.raises is not None:
            raise self.raises
        if self.fail:
            return SendResult(success=False, error="relay unavailable")
        self.sent.append(message)
        return SendResult(success=True, message_id=f"test-{len(self.sent)}")


class FakeRenderer:
    """Renderer double returning a tiny PDF-looking payload."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rendered: list[InvoiceData] = []

    def render(self, data: InvoiceData) -> bytes:
        if self.fail:
            raise RuntimeError("renderer crashed")
        self.rendered.append(data)
        return b"%PDF-1.4 test invoice"


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def storage(settings: Settings) -> PdfStorage:
    return PdfStorage(settings.invoice_pdf_dir)


# ============================================================================
# Seed data
# ============================================================================


@dataclass
class Seed:
    admin: AppUser
    supervisor: AppUser
    other_supervisor: AppUser
    worker: AppUser
    unlinked_worker: AppUser
    orphan_worker: AppUser
    barry: Contractor
    alan: Contractor
    acme: Builder
    zenith: Builder
    tower: BuilderLocation
    lot: BuilderLocation
    monday_docket: Docket
    saturday_docket: Docket


def _docket(work_date, builder, location, supervisor, schedule_no=None) -> Docket:
    return Docket(
        docket_id=uuid4(),
        work_date=work_date,
        builder_id=builder.builder_id,
        location_id=location.location_id,
        supervisor_id=supervisor.user_id,
        schedule_no=schedule_no,
    )


def _entry(docket, contractor, tonnage="0", day_labour="0") -> DocketEntry:
    return DocketEntry(
        entry_id=uuid4(),
        docket_id=docket.docket_id,
        contractor_id=contractor.contractor_id,
        tonnage_hours=Decimal(tonnage),
        day_labour_hours=Decimal(day_labour),
    )


@pytest_asyncio.fixture
async def seed(session: AsyncSession) -> Seed:
    """A small crew working week 2025-W36.

    Barry (rate 50) works Mon 7.5h, Wed 8h, Sat 5h on another supervisor's
    docket and 2h on Sunday; Alan (rate 40) works Mon 8h. Barry also has 6h
    in the previous week. Data is committed so service rollbacks keep it.
    """
    admin = AppUser(user_id=uuid4(), email="admin@example.com", name="Office Admin", role="ADMIN")
    supervisor = AppUser(user_id=uuid4(), email="sam@example.com", name="Sam Super", role="SUPERVISOR")
    other_supervisor = AppUser(
        user_id=uuid4(), email="olga@example.com", name="Olga Other", role="SUPERVISOR"
    )
    worker = AppUser(user_id=uuid4(), email="barry@example.com", name="Barry", role="WORKER")
    unlinked_worker = AppUser(
        user_id=uuid4(), email="ALAN@example.com", name="Alan", role="WORKER"
    )
    orphan_worker = AppUser(
        user_id=uuid4(), email="nobody@example.com", name="Nobody", role="WORKER"
    )
    session.add_all([admin, supervisor, other_supervisor, worker, unlinked_worker, orphan_worker])

    barry = Contractor(
        contractor_id=uuid4(),
        user_id=worker.user_id,
        nickname="Bazza",
        first_name="Barry",
        last_name="Smith",
        full_name="Barry Smith",
        email="barry@example.com",
        hourly_rate=Decimal("50.00"),
    )
    alan = Contractor(
        contractor_id=uuid4(),
        nickname="Al",
        first_name="Alan",
        last_name="Jones",
        email="alan@example.com",
        hourly_rate=Decimal("40.00"),
    )
    acme = Builder(builder_id=uuid4(), name="Acme Builders", company_code="ACME")
    zenith = Builder(builder_id=uuid4(), name="Zenith Homes", company_code="ZEN")
    session.add_all([barry, alan, acme, zenith])
    await session.flush()

    tower = BuilderLocation(location_id=uuid4(), builder_id=acme.builder_id, label="Tower A")
    lot = BuilderLocation(location_id=uuid4(), builder_id=zenith.builder_id, label="Lot 7")
    session.add_all([tower, lot])
    await session.flush()

    monday = _docket(MONDAY, acme, tower, supervisor, "SCH-100")
    wednesday = _docket(WEDNESDAY, acme, tower, supervisor, "SCH-101")
    saturday = _docket(SATURDAY, zenith, lot, other_supervisor, "SCH-200")
    sunday = _docket(SUNDAY, acme, tower, supervisor, "SCH-102")
    previous = _docket(PREVIOUS_WEDNESDAY, acme, tower, supervisor, "SCH-099")
    session.add_all([monday, wednesday, saturday, sunday, previous])
    await session.flush()

    session.add_all(
        [
            _entry(monday, barry, tonnage="4", day_labour="3.5"),
            _entry(monday, alan, tonnage="8"),
            _entry(wednesday, barry, day_labour="8"),
            _entry(saturday, barry, tonnage="5"),
            _entry(sunday, barry, day_labour="2"),
            _entry(previous, barry, tonnage="6"),
        ]
    )
    await session.commit()

    return Seed(
        admin=admin,
        supervisor=supervisor,
        other_supervisor=other_supervisor,
        worker=worker,
        unlinked_worker=unlinked_worker,
        orphan_worker=orphan_worker,
        barry=barry,
        alan=alan,
        acme=acme,
        zenith=zenith,
        tower=tower,
        lot=lot,
        monday_docket=monday,
        saturday_docket=saturday,
    )


@pytest.fixture
def admin(seed: Seed) -> Principal:
    return Principal.from_user(seed.admin)


@pytest.fixture
def supervisor(seed: Seed) -> Principal:
    return Principal.from_user(seed.supervisor)


@pytest.fixture
def worker(seed: Seed) -> Principal:
    return Principal.from_user(seed.worker)
