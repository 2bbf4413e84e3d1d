"""API routes."""

from timesheet_engine.api.routes.health import router as health_router
from timesheet_engine.api.routes.history import router as history_router
from timesheet_engine.api.routes.invoices import router as invoices_router
from timesheet_engine.api.routes.me_weeks import router as me_weeks_router
from timesheet_engine.api.routes.weekly import router as weekly_router

__all__ = [
    "health_router",
    "history_router",
    "invoices_router",
    "me_weeks_router",
    "weekly_router",
]
