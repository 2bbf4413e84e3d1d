"""Contractor profile resolution for worker requests."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.errors import NotFoundError
from timesheet_engine.models import Contractor
from timesheet_engine.services.authorization import Principal

logger = logging.getLogger(__name__)

NO_PROFILE_MESSAGE = (
    "No contractor profile found. Please contact an administrator to link your account."
)


async def find_contractor_for_user(
    session: AsyncSession, principal: Principal, link: bool = True
) -> Contractor:
    """Return the contractor linked to ``principal``.

    Falls back to an unlinked contractor with the same email and, when
    ``link`` is set, links it to the user. The caller owns the transaction.
    """
    contractor = await session.scalar(
        select(Contractor).where(Contractor.user_id == principal.user_id)
    )
    if contractor is None and principal.email:
        contractor = await session.scalar(
            select(Contractor)
            .where(func.lower(Contractor.email) == principal.email.lower())
            .where(Contractor.user_id.is_(None))
            .limit(1)
        )
        if contractor is not None and link:
            contractor.user_id = principal.user_id
            await session.flush()
            logger.info(
                "Linked contractor %s to user %s by email",
                contractor.contractor_id,
                principal.user_id,
            )

    if contractor is None:
        raise NotFoundError("Contractor", principal.user_id, message=NO_PROFILE_MESSAGE)
    return contractor
