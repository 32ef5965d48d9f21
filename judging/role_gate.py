"""Role gate: decide locally whether a session may use a role-protected resource."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from .models import Role
from .session_context import Session


class Access(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


EVALUATION_ROLES = frozenset({Role.ADMINISTRATOR, Role.BEWERTER})
INSPECTION_ROLES = frozenset({Role.ADMINISTRATOR, Role.INSPEKTOR})
WARNING_ROLES = frozenset({Role.ADMINISTRATOR, Role.VERWARNER})


def check(required_roles: Iterable[Role], session: Session) -> Access:
    """Return GRANTED when the session's role is one of ``required_roles``.

    Pure: depends only on its arguments. A session without a role is always
    denied.
    """
    if session.role is None:
        return Access.DENIED
    return Access.GRANTED if session.role in frozenset(required_roles) else Access.DENIED


def is_granted(required_roles: Iterable[Role], session: Session) -> bool:
    return check(required_roles, session) is Access.GRANTED
