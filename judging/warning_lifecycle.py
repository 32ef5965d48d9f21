"""
Warning Lifecycle - the state machine of moderation warnings.

States: VALID, INVALIDATED (initial: VALID).

    issue        creates a new VALID warning for a stand
    invalidate   VALID -> INVALIDATED (actor = session holder, optional comment)
    reinstate    INVALIDATED -> VALID

Every transition is confirmed by the server before anything changes on the
client: nothing is flipped optimistically, and the caller refetches the
grouped warnings afterwards to pick up the authoritative record (including
whatever the server does with invalidation metadata on reinstate).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .client import ApiClient
from .errors import AccessDeniedError, InvalidTransitionError, ValidationFailedError
from .models import Stand, StandWarning, WarningState
from .role_gate import WARNING_ROLES, Access, check
from .session_context import Session

logger = logging.getLogger(__name__)

NO_STAND_MESSAGE = "Bitte wählen Sie einen Stand aus."
EMPTY_COMMENT_MESSAGE = "Bitte geben Sie einen Kommentar ein."
NOT_AUTHORIZED_MESSAGE = "Sie haben keine Berechtigung, Verwarnungen zu bearbeiten."


@dataclass(frozen=True)
class TransitionOutcome:
    """Server confirmation of a lifecycle event."""

    warning_id: int | None
    target_state: WarningState
    message: str


class WarningLifecycle:
    """Issues warnings and moves them between VALID and INVALIDATED."""

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def _require_role(session: Session) -> None:
        if check(WARNING_ROLES, session) is Access.DENIED:
            raise AccessDeniedError(NOT_AUTHORIZED_MESSAGE)

    async def issue(self, session: Session, stand: Stand | None, comment: str) -> TransitionOutcome:
        """Create a new VALID warning for ``stand``.

        Raises:
            ValidationFailedError: No stand selected or blank comment (no request sent)
            AccessDeniedError: Session role may not issue warnings (no request sent)
            JudgingError: Server or transport failure, message verbatim
        """
        if stand is None:
            raise ValidationFailedError(NO_STAND_MESSAGE)
        comment = comment.strip()
        if not comment:
            raise ValidationFailedError(EMPTY_COMMENT_MESSAGE)
        self._require_role(session)

        result = await self.client.call(
            "issue_warning",
            "POST",
            "/warnings/",
            session,
            json={"stand_id": stand.id, "comment": comment},
            failure_message="Verwarnung konnte nicht hinzugefügt werden.",
        )
        payload = result.unwrap()
        logger.info(f"Warning issued for stand {stand.id} by {session.username or 'current user'}")
        return TransitionOutcome(
            warning_id=payload.get("warning_id"),
            target_state=WarningState.VALID,
            message=result.message or "Verwarnung erfolgreich hinzugefügt!",
        )

    async def invalidate(self, session: Session, warning: StandWarning, comment: str = "") -> TransitionOutcome:
        """Move ``warning`` from VALID to INVALIDATED.

        The actor is the session holder; ``invalidated_by``,
        ``invalidation_comment`` and ``invalidation_timestamp`` are set by
        the server and only become visible after the next refetch.
        """
        if warning.state is not WarningState.VALID:
            raise InvalidTransitionError(f"Verwarnung {warning.id} ist bereits ungültig.")
        self._require_role(session)

        result = await self.client.call(
            "invalidate_warning",
            "POST",
            f"/warnings/invalidate_warning/{warning.id}",
            session,
            json={"invalidation_comment": comment.strip()},
            failure_message="Verwarnung konnte nicht ungültig gemacht werden.",
        )
        result.unwrap()
        logger.info(f"Warning {warning.id} invalidated by {session.username or 'current user'}")
        return TransitionOutcome(
            warning_id=warning.id,
            target_state=WarningState.INVALIDATED,
            message=result.message or "Verwarnung erfolgreich als ungültig markiert.",
        )

    async def reinstate(self, session: Session, warning: StandWarning) -> TransitionOutcome:
        """Move ``warning`` from INVALIDATED back to VALID."""
        if warning.state is not WarningState.INVALIDATED:
            raise InvalidTransitionError(f"Verwarnung {warning.id} ist bereits gültig.")
        self._require_role(session)

        result = await self.client.call(
            "reinstate_warning",
            "POST",
            f"/warnings/make_warning_valid/{warning.id}",
            session,
            failure_message="Verwarnung konnte nicht gültig gemacht werden.",
        )
        result.unwrap()
        logger.info(f"Warning {warning.id} reinstated by {session.username or 'current user'}")
        return TransitionOutcome(
            warning_id=warning.id,
            target_state=WarningState.VALID,
            message=result.message or "Verwarnung erfolgreich als gültig markiert.",
        )
