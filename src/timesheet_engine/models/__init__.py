"""SQLAlchemy ORM models."""

from timesheet_engine.models.base import Base, TimestampMixin
from timesheet_engine.models.docket import Docket, DocketEntry
from timesheet_engine.models.invoice import WorkerInvoice
from timesheet_engine.models.people import AppUser, Contractor
from timesheet_engine.models.sites import Builder, BuilderLocation

__all__ = [
    "Base",
    "TimestampMixin",
    "AppUser",
    "Contractor",
    "Builder",
    "BuilderLocation",
    "Docket",
    "DocketEntry",
    "WorkerInvoice",
]
