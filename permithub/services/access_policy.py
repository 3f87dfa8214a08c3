"""
Role-based access policy.

Each operation reachable over HTTP is listed once with the roles allowed to
perform it. A missing caller is ``Unauthenticated``; a caller whose role is not
listed is ``Forbidden``.
"""
from typing import Optional

from fastapi import Depends

from ..auth.security import get_current_user
from ..errors import Forbidden, Unauthenticated
from ..models.models import ROLES, Appointment, User


ADMIN = "admin"
COLLECTOR = "collector"
APPROVER = "approver"
ANY_ROLE = frozenset(ROLES)

POLICY = {
    "users:create": frozenset({ADMIN}),
    "users:list": frozenset({ADMIN}),
    "users:change_password": ANY_ROLE,
    "teams:create": frozenset({ADMIN}),
    "teams:list": frozenset({ADMIN}),
    "teams:members:list": frozenset({ADMIN}),
    "teams:members:assign": frozenset({ADMIN}),
    "clients:create": frozenset({COLLECTOR}),
    "clients:list": ANY_ROLE,
    "clients:read": ANY_ROLE,
    "appointments:create": frozenset({COLLECTOR}),
    "appointments:list": ANY_ROLE,
    "appointments:read": ANY_ROLE,
    "appointments:approve": frozenset({APPROVER}),
    "appointments:upload_pdf": frozenset({APPROVER}),
    "appointments:download_pdf": ANY_ROLE,
    "appointments:render_pdf": ANY_ROLE,
}


def authorize(user: Optional[User], operation: str) -> User:
    allowed = POLICY[operation]
    if user is None:
        raise Unauthenticated()
    if user.role not in allowed:
        raise Forbidden()
    return user


def require(operation: str):
    """FastAPI dependency: authenticate the caller, then check ``operation``."""
    if operation not in POLICY:
        raise ValueError(f"Unknown operation: {operation}")

    def _dep(user: User = Depends(get_current_user)) -> User:
        return authorize(user, operation)

    return _dep


def can_see_appointment(user: User, appointment: Appointment) -> bool:
    # Admins see everything; everyone else only their current team's work
    if user.role == ADMIN:
        return True
    return user.team_id is not None and appointment.team_id == user.team_id


def check_visible(user: User, appointment: Appointment) -> None:
    if not can_see_appointment(user, appointment):
        raise Forbidden()
