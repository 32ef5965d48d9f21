"""
Judging - client-side synchronization layer for the stand judging platform.

This package contains:
- session_context: Session value and its single owner
- role_gate: Local role checks mirroring the server's authorization
- fetch_aggregator: Concurrent, independently failable request batches
- entity_store: Screen-scoped entities with per-entity drafts
- score_validator: Score bounds checking before submission
- warning_lifecycle: Issue/invalidate/reinstate state machine
- screens: View-state controllers built from the above
"""

from judging.client import ApiClient, FetchResult, Outcome
from judging.entity_store import EntityStore
from judging.errors import (
    AccessDeniedError,
    ApplicationRejectedError,
    ConnectionFailedError,
    InvalidTransitionError,
    JudgingError,
    RequestFailedError,
    ValidationFailedError,
)
from judging.fetch_aggregator import ConcurrentFetchAggregator, FetchBatch, FetchRequest
from judging.models import (
    Criterion,
    GroupedWarning,
    InspectionStatus,
    Role,
    RoomInspection,
    Stand,
    StandWarning,
    WarningState,
)
from judging.role_gate import Access, check
from judging.session_context import Session, SessionContext
from judging.warning_lifecycle import WarningLifecycle

__all__ = [
    "Access",
    "AccessDeniedError",
    "ApiClient",
    "ApplicationRejectedError",
    "ConcurrentFetchAggregator",
    "ConnectionFailedError",
    "Criterion",
    "EntityStore",
    "FetchBatch",
    "FetchRequest",
    "FetchResult",
    "GroupedWarning",
    "InspectionStatus",
    "InvalidTransitionError",
    "JudgingError",
    "Outcome",
    "RequestFailedError",
    "Role",
    "RoomInspection",
    "Session",
    "SessionContext",
    "Stand",
    "StandWarning",
    "ValidationFailedError",
    "WarningLifecycle",
    "WarningState",
    "check",
]
