"""Room inspection screen - mark rooms clean or not clean with a comment."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..client import ApiClient
from ..entity_store import EntityStore
from ..errors import AccessDeniedError, ValidationFailedError
from ..fetch_aggregator import FetchBatch, FetchRequest
from ..models import RoomInspection
from ..role_gate import INSPECTION_ROLES, is_granted
from ..session_context import Session, SessionContext
from .base import Screen

logger = logging.getLogger(__name__)

ROOM_INSPECTIONS_KEY = "room_inspections"

NOT_AUTHORIZED_MESSAGE = "Sie haben keine Berechtigung, Räume zu inspizieren."


class RoomInspectionScreen(Screen):
    """View state of the room inspection page; one comment draft per room."""

    name = "rooms"

    def __init__(self, context: SessionContext, client: ApiClient):
        super().__init__(context, client)
        self.rooms: EntityStore[RoomInspection, str] = EntityStore(
            seed=lambda room: room.comment,
            key=lambda room: room.room_id,
        )

    def build_requests(self, session: Session) -> Sequence[FetchRequest]:
        return [
            FetchRequest(
                ROOM_INSPECTIONS_KEY,
                "GET",
                "/api/room_inspections",
                required_roles=INSPECTION_ROLES,
                failure_message="Fehler beim Laden der Rauminspektionen.",
            ),
            self.settings_request(),
        ]

    def apply(self, batch: FetchBatch, session: Session) -> None:
        self.apply_settings(batch)
        payload = batch.payload(ROOM_INSPECTIONS_KEY)
        if payload is None:
            return
        self.rooms.replace([RoomInspection.model_validate(r) for r in payload.get("room_inspections") or []])

    @property
    def open_rooms_count(self) -> int:
        return sum(1 for room in self.rooms if room.inspection_timestamp is None)

    def set_comment(self, room_id: int, comment: str) -> None:
        if room_id not in self.rooms:
            raise ValidationFailedError(f"Unbekannter Raum: {room_id}")
        self.rooms.set_draft(room_id, comment)

    async def submit(self, room_id: int, is_clean: bool) -> str:
        """Record an inspection for one room, then refetch all rooms.

        Other rooms' comment drafts that are being edited survive the refetch.
        """
        async with self.mutation():
            session = self.session
            if not is_granted(INSPECTION_ROLES, session):
                raise AccessDeniedError(NOT_AUTHORIZED_MESSAGE)
            if room_id not in self.rooms:
                raise ValidationFailedError(f"Unbekannter Raum: {room_id}")

            comment = self.rooms.draft(room_id) or ""
            with self.rooms.submitting([room_id]) as ticket:
                result = await self.client.call(
                    "submit_inspection",
                    "POST",
                    "/api/room_inspections",
                    session,
                    json={"room_id": room_id, "is_clean": 1 if is_clean else 0, "comment": comment},
                    failure_message="Raumstatus-Aktualisierung fehlgeschlagen.",
                )
                result.unwrap()
                ticket.succeeded()

            message = result.message or "Raumstatus erfolgreich aktualisiert."
            logger.info(f"Room {room_id} inspected: {'clean' if is_clean else 'not clean'}")
            self.succeed(message)
            await self.refresh()
            return message
