"""Business logic services."""

from timesheet_engine.services.authorization import (
    Permission,
    Principal,
    Role,
    docket_filter,
    has_permission,
    invoice_filter,
    require_permission,
)
from timesheet_engine.services.history_service import HistoryService
from timesheet_engine.services.invoice_service import InvoiceService
from timesheet_engine.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
)
from timesheet_engine.services.weekly_service import WeeklyService
from timesheet_engine.services.worker_service import WorkerService

__all__ = [
    "Permission",
    "Principal",
    "Role",
    "docket_filter",
    "has_permission",
    "invoice_filter",
    "require_permission",
    "HistoryService",
    "InvoiceService",
    "InvalidTransitionError",
    "InvoiceStateMachine",
    "InvoiceStatus",
    "WeeklyService",
    "WorkerService",
]
