"""
Screens - view-state controllers composing the synchronization layer.

Each screen owns its EntityStore(s), a ScreenScope and a ViewState, and
refreshes through one ConcurrentFetchAggregator batch.
"""

from __future__ import annotations

from .base import Screen, ScreenScope, ViewState
from .dashboard import DashboardScreen
from .evaluation import EvaluationScreen
from .rooms import RoomInspectionScreen
from .warnings import WarningsScreen

__all__ = [
    "DashboardScreen",
    "EvaluationScreen",
    "RoomInspectionScreen",
    "Screen",
    "ScreenScope",
    "ViewState",
    "WarningsScreen",
]
