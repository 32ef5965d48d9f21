"""
Session Context - the authenticated role and session token of this process.

The context is the only writer of session state: login stores a new Session,
logout clears it. Every other component receives the current Session value
and never mutates it.

Usage:
    context = SessionContext()
    context.login(Session(role=Role.BEWERTER, token="session=abc"))
    session = context.session  # snapshot passed to gate/aggregator
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .logging_config import mask_token
from .models import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """
    Immutable view of the current authentication state.

    Attributes:
        role: Role held server-side, or None when unknown or logged out
        token: Opaque cookie-style token sent with every request
        username: Login name, kept for display only
    """

    role: Role | None = None
    token: str | None = None
    username: str | None = None

    @property
    def present(self) -> bool:
        return bool(self.token)

    def __repr__(self) -> str:
        role = self.role.value if self.role else None
        return f"Session(role={role!r}, token={mask_token(self.token)!r}, username={self.username!r})"


ANONYMOUS = Session()


class SessionContext:
    """Holds the current Session for the lifetime of the process."""

    def __init__(self, session: Session | None = None):
        self._session = session or ANONYMOUS

    @property
    def session(self) -> Session:
        """Current session snapshot; re-read on every refresh."""
        return self._session

    def login(self, session: Session) -> None:
        """Store the session produced by a successful login."""
        self._session = session
        role = session.role.value if session.role else "none"
        logger.info(f"Session established for {session.username or 'unknown user'} with role {role}")

    def logout(self) -> None:
        """Clear the session."""
        if self._session.present:
            logger.info(f"Session cleared for {self._session.username or 'unknown user'}")
        self._session = ANONYMOUS
