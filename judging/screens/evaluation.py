"""
Evaluation screen - pick a stand, enter one score per criterion, submit.

Score inputs are drafts in an EntityStore keyed by criterion id. Changing the
selected stand discards them and reseeds from that stand's stored
evaluation. After a successful submit the stored evaluation is refetched;
the draft is never assumed to have been stored verbatim.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from ..client import ApiClient
from ..entity_store import EntityStore
from ..errors import AccessDeniedError, ValidationFailedError
from ..fetch_aggregator import FetchBatch, FetchRequest
from ..models import Criterion, Stand, StoredEvaluation
from ..role_gate import EVALUATION_ROLES, is_granted
from ..score_validator import validate_submission
from ..session_context import Session, SessionContext
from .base import Screen

logger = logging.getLogger(__name__)

INITIAL_DATA_KEY = "initial_data"
USER_SCORES_KEY = "user_scores"

NO_STAND_MESSAGE = "Bitte wähle zuerst einen Stand aus."
NOT_AUTHORIZED_MESSAGE = "Sie haben keine Berechtigung, Bewertungen abzugeben."


def _blank(criterion: Criterion) -> str:
    return ""


class EvaluationScreen(Screen):
    """View state of the evaluation page."""

    name = "evaluation"

    def __init__(self, context: SessionContext, client: ApiClient):
        super().__init__(context, client)
        self.stands: list[Stand] = []
        self.criteria: EntityStore[Criterion, str] = EntityStore(seed=_blank)
        self.selected_stand: Stand | None = None
        self.stored: StoredEvaluation | None = None

    def build_requests(self, session: Session) -> Sequence[FetchRequest]:
        return [
            FetchRequest(
                INITIAL_DATA_KEY,
                "GET",
                "/api/evaluate_initial_data",
                required_roles=EVALUATION_ROLES,
                failure_message="Fehler beim Laden der Initialdaten.",
            ),
            self.settings_request(),
        ]

    def apply(self, batch: FetchBatch, session: Session) -> None:
        self.apply_settings(batch)
        payload = batch.payload(INITIAL_DATA_KEY)
        if payload is None:
            return

        stands = [Stand.model_validate(s) for s in payload.get("stands") or []]
        criteria = [Criterion.model_validate(c) for c in payload.get("criteria") or []]
        self.stands = stands
        self.criteria.replace(criteria)

        if self.selected_stand is not None:
            current = self.stand(self.selected_stand.id)
            if current is None:
                logger.info(f"Selected stand {self.selected_stand.id} no longer listed; clearing selection")
                self._clear_selection()
            else:
                self.selected_stand = current

    def stand(self, stand_id: int) -> Stand | None:
        return next((s for s in self.stands if s.id == stand_id), None)

    def _clear_selection(self) -> None:
        self.selected_stand = None
        self.stored = None
        self.criteria.reseed(_blank)

    async def select_stand(self, stand_id: int | None) -> None:
        """Change the selected stand and load its stored evaluation.

        Drafts of the previous stand are discarded.
        """
        if stand_id is None:
            self._clear_selection()
            return
        stand = self.stand(stand_id)
        if stand is None:
            raise ValidationFailedError(f"Unbekannter Stand: {stand_id}")

        self._clear_selection()
        self.selected_stand = stand
        await self.load_stored_evaluation(stand.id)

    async def load_stored_evaluation(self, stand_id: int) -> StoredEvaluation | None:
        """Fetch the current user's stored scores for ``stand_id`` and seed the drafts."""
        session = self.session
        self.state.loading = True
        self.state.error = None
        try:
            batch = await self.aggregator.fetch_all(
                [
                    FetchRequest(
                        USER_SCORES_KEY,
                        "GET",
                        f"/api/evaluations/user_scores/{stand_id}",
                        required_roles=EVALUATION_ROLES,
                    )
                ],
                session,
            )
            if not self.scope.accepts(f"scores of stand {stand_id}"):
                return None
            if self.selected_stand is None or self.selected_stand.id != stand_id:
                logger.debug(f"Selection moved away from stand {stand_id}; ignoring its scores")
                return None

            result = batch[USER_SCORES_KEY]
            if not result.ok:
                self.state.error = f"Fehler beim Laden bestehender Bewertungen: {result.message}"
                return None

            try:
                stored = StoredEvaluation.model_validate(result.payload)
            except ValidationError as e:
                self.state.error = self.payload_error(e).message
                return None
            if not stored.exists:
                stored = StoredEvaluation(exists=False)
            self.stored = stored
            scores = stored.scores
            self.criteria.reseed(lambda c: str(scores[c.id]) if c.id in scores else "")
            return stored
        finally:
            if self.scope.active:
                self.state.loading = False

    def set_score(self, criterion_id: int, raw_input: str) -> None:
        if criterion_id not in self.criteria:
            raise ValidationFailedError(f"Unbekanntes Kriterium: {criterion_id}")
        self.criteria.set_draft(criterion_id, raw_input)

    async def submit(self) -> str:
        """Validate every criterion and submit the evaluation.

        Nothing is sent unless every draft validates.

        Returns:
            The server's confirmation message

        Raises:
            JudgingError: Validation, authorization, server or transport failure
        """
        async with self.mutation():
            session = self.session
            if not is_granted(EVALUATION_ROLES, session):
                raise AccessDeniedError(NOT_AUTHORIZED_MESSAGE)
            stand = self.selected_stand
            if stand is None:
                raise ValidationFailedError(NO_STAND_MESSAGE)

            scores = validate_submission(self.criteria.drafts, self.criteria.entities)

            with self.criteria.submitting(scores) as ticket:
                result = await self.client.call(
                    "submit_evaluation",
                    "POST",
                    "/evaluate",
                    session,
                    json={"stand_id": stand.id, "scores": {str(k): v for k, v in scores.items()}},
                    failure_message="Bewertung fehlgeschlagen.",
                )
                result.unwrap()
                ticket.succeeded()

            message = result.message or "Bewertung erfolgreich gespeichert!"
            logger.info(f"Evaluation of stand {stand.id} submitted ({len(scores)} criteria)")
            self.succeed(message)
            await self.load_stored_evaluation(stand.id)
            return message
