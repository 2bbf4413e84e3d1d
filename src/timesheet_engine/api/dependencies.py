"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.config import Settings, get_settings
from timesheet_engine.database import get_session_factory
from timesheet_engine.errors import AuthenticationError
from timesheet_engine.models import AppUser
from timesheet_engine.providers import (
    InvoiceRenderer,
    LoggingNotifier,
    Notifier,
    PdfStorage,
    ReportLabInvoiceRenderer,
    SmtpNotifier,
)
from timesheet_engine.services.authorization import Principal


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def _notifier_for(settings: Settings) -> Notifier:
    if settings.smtp_enabled:
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            default_sender=settings.mail_from,
        )
    return LoggingNotifier()


def get_notifier(settings: Annotated[Settings, Depends(get_app_settings)]) -> Notifier:
    """SMTP when configured, otherwise a notifier that only logs."""
    return _notifier_for(settings)


def get_renderer() -> InvoiceRenderer:
    return ReportLabInvoiceRenderer()


def get_pdf_storage(settings: Annotated[Settings, Depends(get_app_settings)]) -> PdfStorage:
    return PdfStorage(settings.invoice_pdf_dir)


async def get_current_principal(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> Principal:
    """Resolve the acting user from the X-User-Id header.

    Session handling belongs to the upstream authentication provider, which
    forwards the authenticated user id.
    """
    if not x_user_id:
        raise AuthenticationError("X-User-Id header is required")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise AuthenticationError("Invalid X-User-Id format") from None

    user = await session.get(AppUser, user_id)
    if user is None:
        raise AuthenticationError("Unknown user")
    return Principal.from_user(user)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
RendererDep = Annotated[InvoiceRenderer, Depends(get_renderer)]
StorageDep = Annotated[PdfStorage, Depends(get_pdf_storage)]
