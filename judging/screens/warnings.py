"""
Warnings screen - warnings grouped per stand, with issue/invalidate/reinstate.

All transitions go through WarningLifecycle. After every confirmed
transition the grouped view is refetched, so valid counts and concurrently
changed peer warnings always come from the server.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..client import ApiClient
from ..entity_store import EntityStore
from ..errors import ValidationFailedError
from ..fetch_aggregator import FetchBatch, FetchRequest
from ..models import GroupedWarning, Stand, StandWarning
from ..role_gate import WARNING_ROLES, is_granted
from ..session_context import Session, SessionContext
from ..warning_lifecycle import TransitionOutcome, WarningLifecycle
from .base import Screen

logger = logging.getLogger(__name__)

WARNINGS_DATA_KEY = "warnings_data"


def _no_comment(warning: StandWarning) -> str:
    return ""


class WarningsScreen(Screen):
    """View state of the warnings page.

    Each warning carries an invalidation-comment draft; the form for a new
    warning keeps its selected stand and comment on the screen itself.
    """

    name = "warnings"

    def __init__(self, context: SessionContext, client: ApiClient):
        super().__init__(context, client)
        self.lifecycle = WarningLifecycle(client)
        self.stands: list[Stand] = []
        self.groups: list[GroupedWarning] = []
        self.warnings: EntityStore[StandWarning, str] = EntityStore(seed=_no_comment)
        self.new_warning_stand_id: int | None = None
        self.new_warning_comment: str = ""

    @property
    def can_moderate(self) -> bool:
        return is_granted(WARNING_ROLES, self.session)

    def build_requests(self, session: Session) -> Sequence[FetchRequest]:
        return [
            FetchRequest(
                WARNINGS_DATA_KEY,
                "GET",
                "/warnings/api/warnings_data",
                required_roles=WARNING_ROLES,
                failure_message="Fehler beim Laden der Verwarnungsdaten.",
            ),
            self.settings_request(),
        ]

    def apply(self, batch: FetchBatch, session: Session) -> None:
        self.apply_settings(batch)
        payload = batch.payload(WARNINGS_DATA_KEY)
        if payload is None:
            return

        stands = [Stand.model_validate(s) for s in payload.get("stands_for_dropdown") or []]
        groups = [GroupedWarning.model_validate(g) for g in payload.get("grouped_warnings") or []]
        self.stands = stands
        self.groups = groups
        self.warnings.replace([w for group in groups for w in group.warnings])

        if self.new_warning_stand_id is not None and self.new_warning_stand_id not in {s.id for s in self.stands}:
            self.new_warning_stand_id = None

    def group(self, stand_id: int) -> GroupedWarning | None:
        return next((g for g in self.groups if g.stand_id == stand_id), None)

    def valid_count(self, stand_id: int) -> int:
        group = self.group(stand_id)
        return group.valid_count if group else 0

    def find_warning(self, warning_id: int) -> StandWarning | None:
        return self.warnings.get(warning_id)

    def _require_warning(self, warning_id: int) -> StandWarning:
        warning = self.find_warning(warning_id)
        if warning is None:
            raise ValidationFailedError(f"Unbekannte Verwarnung: {warning_id}")
        return warning

    def set_invalidation_comment(self, warning_id: int, comment: str) -> None:
        self._require_warning(warning_id)
        self.warnings.set_draft(warning_id, comment)

    async def issue(self) -> TransitionOutcome:
        """Issue a warning from the new-warning form, then refetch.

        A blank comment or missing stand is rejected without a request.
        """
        async with self.mutation():
            stand_id = self.new_warning_stand_id
            stand = next((s for s in self.stands if s.id == stand_id), None) if stand_id is not None else None
            outcome = await self.lifecycle.issue(self.session, stand, self.new_warning_comment)
            self.new_warning_comment = ""
            self.new_warning_stand_id = None
            self.succeed(outcome.message)
            await self.refresh()
            return outcome

    async def invalidate(self, warning_id: int, comment: str | None = None) -> StandWarning | None:
        """Invalidate a warning and return its refetched, server-confirmed record.

        Args:
            warning_id: Warning to invalidate
            comment: Optional comment; defaults to the warning's draft

        Returns:
            The warning as now stored by the server, or None if it no longer exists
        """
        async with self.mutation():
            warning = self._require_warning(warning_id)
            text = comment if comment is not None else self.warnings.draft(warning_id) or ""
            with self.warnings.submitting([warning_id]) as ticket:
                outcome = await self.lifecycle.invalidate(self.session, warning, text)
                ticket.succeeded()
            return await self._resync(outcome)

    async def reinstate(self, warning_id: int) -> StandWarning | None:
        """Reinstate a warning and return its refetched, server-confirmed record."""
        async with self.mutation():
            warning = self._require_warning(warning_id)
            outcome = await self.lifecycle.reinstate(self.session, warning)
            return await self._resync(outcome)

    async def _resync(self, outcome: TransitionOutcome) -> StandWarning | None:
        self.succeed(outcome.message)
        await self.refresh()
        if outcome.warning_id is None:
            return None
        refreshed = self.find_warning(outcome.warning_id)
        if refreshed is not None and refreshed.state is not outcome.target_state:
            # Last write wins: another moderator changed it in the meantime
            logger.warning(
                f"Warning {outcome.warning_id} is {refreshed.state.value} after refetch, "
                f"expected {outcome.target_state.value}"
            )
        return refreshed
