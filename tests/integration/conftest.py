"""HTTP test fixtures: the app wired to the in-memory test database."""

from collections.abc import AsyncGenerator
from uuid import UUID

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from timesheet_engine.api.app import create_app
from timesheet_engine.api.dependencies import (
    get_app_settings,
    get_db_session,
    get_notifier,
    get_pdf_storage,
    get_renderer,
)


def auth(user_id: UUID) -> dict[str, str]:
    """Headers identifying the acting user."""
    return {"X-User-Id": str(user_id)}


@pytest_asyncio.fixture
async def app(session_factory, seed, settings, notifier, renderer, storage) -> FastAPI:
    """The application with database and adapters overridden."""
    app = create_app()

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_pdf_storage] = lambda: storage
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the overridden app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
