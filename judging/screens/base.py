"""
Screen base - scoped ownership of a screen's fetches and view state.

A screen owns one ScreenScope. Requests are never cancelled when the screen
goes away; instead every late-arriving result is checked against the scope
and dropped once the screen has been closed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from pydantic import ValidationError

from ..client import INVALID_PAYLOAD_MESSAGE, ApiClient
from ..errors import JudgingError, RequestFailedError
from ..fetch_aggregator import ConcurrentFetchAggregator, FetchBatch, FetchRequest
from ..models import AppSettings
from ..session_context import Session, SessionContext

logger = logging.getLogger(__name__)

ADMIN_SETTINGS_KEY = "admin_settings"


class ScreenScope:
    """Lifetime token of one screen instance."""

    def __init__(self, name: str):
        self.name = name
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def close(self) -> None:
        self._closed = True

    def accepts(self, what: str) -> bool:
        """True while results may still be applied; logs the discard otherwise."""
        if self._closed:
            logger.debug(f"Discarding {what} for closed screen '{self.name}'")
            return False
        return True


@dataclass
class ViewState:
    """What a screen shows around its content."""

    loading: bool = False
    error: str | None = None
    notice: str | None = None


class Screen:
    """
    Common refresh cycle of every screen.

    Subclasses declare their batch in ``build_requests`` and merge results in
    ``apply``. The role is re-read from the session context on each refresh.
    """

    name = "screen"

    def __init__(self, context: SessionContext, client: ApiClient):
        self.context = context
        self.client = client
        self.aggregator = ConcurrentFetchAggregator(client)
        self.scope = ScreenScope(self.name)
        self.state = ViewState()
        self.app_settings = AppSettings()

    @property
    def session(self) -> Session:
        return self.context.session

    def build_requests(self, session: Session) -> Sequence[FetchRequest]:
        raise NotImplementedError

    def apply(self, batch: FetchBatch, session: Session) -> None:
        raise NotImplementedError

    @staticmethod
    def settings_request() -> FetchRequest:
        # Display settings failures only get logged
        return FetchRequest(ADMIN_SETTINGS_KEY, "GET", "/api/admin_settings", reports_errors=False)

    def apply_settings(self, batch: FetchBatch) -> None:
        payload = batch.payload(ADMIN_SETTINGS_KEY)
        if payload is None:
            if ADMIN_SETTINGS_KEY in batch.results:
                logger.warning(f"Could not load admin settings: {batch[ADMIN_SETTINGS_KEY].message}")
            return
        settings = payload.get("settings")
        if not isinstance(settings, dict):
            return
        try:
            self.app_settings = AppSettings.from_api(settings, self.client.server_address)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed admin settings: {e.error_count()} validation error(s)")

    async def refresh(self) -> FetchBatch | None:
        """Run the screen's batch and merge it into the view state.

        Returns:
            The batch, or None when the screen was closed before it settled
        """
        session = self.session
        self.state.loading = True
        self.state.error = None
        try:
            batch = await self.aggregator.fetch_all(self.build_requests(session), session)
            if not self.scope.accepts(f"{self.name} refresh"):
                return None
            try:
                self.apply(batch, session)
            except ValidationError as e:
                self.state.error = self.error_for(batch) or self.payload_error(e).message
                return batch
            self.state.error = self.error_for(batch)
            return batch
        finally:
            if self.scope.active:
                self.state.loading = False

    def error_for(self, batch: FetchBatch) -> str | None:
        return batch.error_message()

    def payload_error(self, error: ValidationError) -> RequestFailedError:
        """Map a body that does not fit its model onto a failed request."""
        logger.warning(f"Unexpected payload on screen '{self.name}': {error.error_count()} validation error(s)")
        logger.debug(str(error))
        return RequestFailedError(INVALID_PAYLOAD_MESSAGE, status_code=200)

    @asynccontextmanager
    async def mutation(self) -> AsyncIterator[None]:
        """Wrap a user-triggered write: loading flag on, failures into the error slot."""
        self.state.loading = True
        try:
            yield
        except JudgingError as e:
            self.fail(e)
            raise
        finally:
            if self.scope.active:
                self.state.loading = False

    def fail(self, error: JudgingError) -> str:
        """Record a mutation failure in the view state and return its message."""
        if self.scope.accepts(f"{self.name} error"):
            self.state.error = error.message
            self.state.notice = None
        return error.message

    def succeed(self, message: str) -> None:
        if self.scope.accepts(f"{self.name} notice"):
            self.state.notice = message
            self.state.error = None

    def close(self) -> None:
        """Tear the screen down; in-flight requests keep running but are ignored."""
        self.scope.close()
