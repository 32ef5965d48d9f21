"""Start page - counts and top rankings loaded in one concurrent batch."""

from __future__ import annotations

from collections.abc import Sequence

from ..client import ApiClient
from ..fetch_aggregator import FetchBatch, FetchRequest
from ..models import DashboardSummary
from ..role_gate import EVALUATION_ROLES, INSPECTION_ROLES, WARNING_ROLES, is_granted
from ..session_context import Session, SessionContext
from .base import Screen

MY_EVALUATIONS_KEY = "my_evaluations"
RANKING_KEY = "ranking_data"
ROOM_INSPECTIONS_KEY = "room_inspections"

TOP_RANKINGS = 3


class DashboardScreen(Screen):
    name = "dashboard"

    def __init__(self, context: SessionContext, client: ApiClient):
        super().__init__(context, client)
        self.summary = DashboardSummary()

    def build_requests(self, session: Session) -> Sequence[FetchRequest]:
        return [
            self.settings_request(),
            FetchRequest(MY_EVALUATIONS_KEY, "GET", "/api/my_evaluations", required_roles=EVALUATION_ROLES),
            FetchRequest(RANKING_KEY, "GET", "/api/ranking_data"),
            FetchRequest(ROOM_INSPECTIONS_KEY, "GET", "/api/room_inspections", required_roles=INSPECTION_ROLES),
        ]

    def apply(self, batch: FetchBatch, session: Session) -> None:
        self.apply_settings(batch)

        my_evaluations_count = None
        evaluations = (batch.payload(MY_EVALUATIONS_KEY) or {}).get("evaluations")
        if isinstance(evaluations, list):
            my_evaluations_count = len(evaluations)

        top_rankings: tuple[dict, ...] = ()
        rankings = (batch.payload(RANKING_KEY) or {}).get("rankings")
        if isinstance(rankings, list):
            top_rankings = tuple(rankings[:TOP_RANKINGS])

        open_rooms_count = None
        rooms = (batch.payload(ROOM_INSPECTIONS_KEY) or {}).get("room_inspections")
        if isinstance(rooms, list):
            open_rooms_count = sum(
                1 for room in rooms if isinstance(room, dict) and room.get("inspection_timestamp") is None
            )

        self.summary = DashboardSummary(
            my_evaluations_count=my_evaluations_count,
            top_rankings=top_rankings,
            open_rooms_count=open_rooms_count,
        )

    def error_for(self, batch: FetchBatch) -> str | None:
        # Cards the role may not see are hidden rather than reported
        return batch.error_message(include_local_denials=False)

    @property
    def shows_evaluation_cards(self) -> bool:
        return is_granted(EVALUATION_ROLES, self.session)

    @property
    def shows_inspection_card(self) -> bool:
        return is_granted(INSPECTION_ROLES, self.session)

    @property
    def shows_warnings_card(self) -> bool:
        return is_granted(WARNING_ROLES, self.session)
