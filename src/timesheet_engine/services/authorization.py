"""Role-based access control.

Authorization is expressed as one predicate builder per resource type. Each
returns a SQLAlchemy expression that services add to their queries once per
request, instead of branching on roles inline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import ColumnElement, false, true

from timesheet_engine.errors import ForbiddenError
from timesheet_engine.models import AppUser, Docket, WorkerInvoice


class Role(str, Enum):
    """User roles."""

    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    WORKER = "WORKER"


class Permission(str, Enum):
    """Capabilities granted to roles."""

    BUILDERS_VIEW = "builders.view"
    WEEKLY_VIEW = "weekly.view"
    TIMESHEETS_VIEW_OWN = "timesheets.view_own"
    INVOICES_SUBMIT = "invoices.submit"
    INVOICES_MANAGE = "invoices.manage"
    HISTORY_VIEW = "history.view"


# Admins act on everyone's data but never on a week of their own
ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission)
    - {Permission.INVOICES_SUBMIT, Permission.TIMESHEETS_VIEW_OWN},
    Role.SUPERVISOR: frozenset({Permission.BUILDERS_VIEW, Permission.WEEKLY_VIEW}),
    Role.WORKER: frozenset({Permission.TIMESHEETS_VIEW_OWN, Permission.INVOICES_SUBMIT}),
}


@dataclass(frozen=True)
class Principal:
    """The authenticated user a request acts on behalf of."""

    user_id: UUID
    email: str
    role: Role
    name: str | None = None

    @classmethod
    def from_user(cls, user: AppUser) -> Principal:
        return cls(
            user_id=user.user_id,
            email=user.email,
            role=Role(user.role),
            name=user.name,
        )

    @property
    def display_name(self) -> str:
        """Name written into invoice audit notes."""
        return self.name or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def has_permission(principal: Principal, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(principal.role, frozenset())


def require_permission(
    principal: Principal, permission: Permission, message: str | None = None
) -> None:
    """Raise ForbiddenError unless the principal's role grants ``permission``."""
    if not has_permission(principal, permission):
        raise ForbiddenError(
            message or f"Access denied. Missing permission: {permission.value}",
            context={"role": principal.role.value, "permission": permission.value},
        )


def docket_filter(principal: Principal) -> ColumnElement[bool]:
    """Dockets visible to the principal.

    Admins see every docket, supervisors only the dockets they supervise and
    anyone else sees nothing.
    """
    if principal.role == Role.ADMIN:
        return true()
    if principal.role == Role.SUPERVISOR:
        return Docket.supervisor_id == principal.user_id
    return false()


def invoice_filter(
    principal: Principal, contractor_id: UUID | None = None
) -> ColumnElement[bool]:
    """Invoices visible to the principal.

    Workers see only their own contractor's invoices (``contractor_id`` is the
    contractor profile linked to the worker).
    """
    if principal.role == Role.ADMIN:
        return true()
    if principal.role == Role.WORKER and contractor_id is not None:
        return WorkerInvoice.contractor_id == contractor_id
    return false()
