"""
Pydantic models for the judging server's JSON payloads.

All entities are frozen: a refetch replaces them wholesale, and warning
transitions produce new instances rather than mutating existing ones.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    """Roles held server-side and mirrored by the client."""

    ADMINISTRATOR = "Administrator"
    BEWERTER = "Bewerter"
    INSPEKTOR = "Inspektor"
    VERWARNER = "Verwarner"

    @classmethod
    def parse(cls, value: str | None) -> Role | None:
        """Map a server role string to a Role; unknown or empty means no role."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class WarningState(str, Enum):
    """States of the warning lifecycle."""

    VALID = "valid"
    INVALIDATED = "invalidated"


class InspectionStatus(str, Enum):
    """Room inspection status derived from ``is_clean``."""

    OPEN = "Offen"
    CLEAN = "Sauber"
    NOT_CLEAN = "Nicht sauber"


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Stand(_Entity):
    """A competition booth being judged."""

    id: int
    name: str
    room_name: str | None = None
    description: str | None = None


class Criterion(_Entity):
    """A named, bounded scoring dimension."""

    id: int
    name: str
    description: str = ""
    max_score: int = Field(ge=0)


class StoredEvaluation(_Entity):
    """The server's stored evaluation of one stand by the current user."""

    exists: bool = False
    scores: dict[int, int] = Field(default_factory=dict)
    timestamp: str | None = None

    @field_validator("scores", mode="before")
    @classmethod
    def _none_scores(cls, v: Any) -> Any:
        return v or {}


class StandWarning(_Entity):
    """A moderation flag issued against a stand."""

    id: int
    stand_id: int
    stand_name: str | None = None
    warner_name: str = "Unbekannt"
    comment: str = "Kein Kommentar"
    timestamp: str = "N/A"
    is_invalidated: bool = False
    invalidated_by: str | None = Field(default=None, alias="invalidated_by_user_name")
    invalidation_comment: str | None = None
    invalidation_timestamp: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _apply_display_defaults(cls, data: Any) -> Any:
        # The server sends explicit nulls for unset display fields
        if isinstance(data, dict):
            defaults = {"warner_name": "Unbekannt", "comment": "Kein Kommentar", "timestamp": "N/A"}
            data = {**data}
            for key, default in defaults.items():
                if data.get(key) is None:
                    data[key] = default
            if data.get("is_invalidated") is None:
                data["is_invalidated"] = False
        return data

    @property
    def state(self) -> WarningState:
        return WarningState.INVALIDATED if self.is_invalidated else WarningState.VALID


class GroupedWarning(_Entity):
    """All warnings of one stand, with the count of those still valid.

    ``valid_count`` is recomputed from ``warnings`` on every access; any total
    the server sends alongside is ignored.
    """

    stand_id: int
    stand_name: str
    warnings: tuple[StandWarning, ...] = ()

    @property
    def valid_count(self) -> int:
        return sum(1 for w in self.warnings if not w.is_invalidated)

    def find(self, warning_id: int) -> StandWarning | None:
        for warning in self.warnings:
            if warning.id == warning_id:
                return warning
        return None


class RoomInspection(_Entity):
    """Inspection state of one room."""

    room_id: int
    room_name: str
    stands_in_room_count: int = 0
    is_clean: bool | None = None
    last_inspected_by: str = Field(default="N/A", alias="inspector_display_name")
    inspection_timestamp: str | None = None
    comment: str = ""

    @model_validator(mode="before")
    @classmethod
    def _count_inline_stands(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**data}
            stands = data.pop("stands", None)
            if "stands_in_room_count" not in data:
                data["stands_in_room_count"] = len(stands) if isinstance(stands, list) else 0
            if data.get("inspector_display_name") is None and data.get("last_inspected_by") is None:
                data["inspector_display_name"] = "N/A"
            if data.get("comment") is None:
                data["comment"] = ""
        return data

    @property
    def status(self) -> InspectionStatus:
        if self.is_clean is None:
            return InspectionStatus.OPEN
        return InspectionStatus.CLEAN if self.is_clean else InspectionStatus.NOT_CLEAN


class AppSettings(_Entity):
    """Display settings published by the server (title and logo only)."""

    title: str = "Stand App"
    logo_url: str | None = None

    @classmethod
    def from_api(cls, settings: dict[str, Any], server_address: str, default_title: str = "Stand App") -> AppSettings:
        """Build from the ``settings`` object of ``/api/admin_settings``.

        A relative ``logo_path`` is joined to the server address with exactly
        one slash; absolute http(s) URLs are kept as they are.
        """
        logo_path = settings.get("logo_path")
        logo_url: str | None = None
        if logo_path:
            if logo_path.startswith(("http://", "https://")):
                logo_url = logo_path
            else:
                logo_url = f"{server_address.rstrip('/')}/{logo_path.lstrip('/')}"
        return cls(title=settings.get("index_title_text") or default_title, logo_url=logo_url)


class DashboardSummary(_Entity):
    """Counts shown on the start page."""

    my_evaluations_count: int | None = None
    top_rankings: tuple[dict[str, Any], ...] = ()
    open_rooms_count: int | None = None
