"""
Concurrent Fetch Aggregator - issue independent requests together, join on all.

Each request settles on its own: a declined, refused or failed request never
aborts its siblings, and every result is available in the returned batch.
Role-protected requests are checked against the role gate first; a denied
request is not sent and an ACCESS_DENIED result is substituted.

Usage:
    batch = await aggregator.fetch_all(
        [
            FetchRequest("warnings", "GET", "/warnings/api/warnings_data", required_roles=WARNING_ROLES),
            FetchRequest("settings", "GET", "/api/admin_settings"),
        ],
        session,
    )
    if batch.succeeded("warnings"):
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .client import ApiClient, FetchResult, Outcome, access_denied
from .models import Role
from .role_gate import Access, check
from .session_context import Session

logger = logging.getLogger(__name__)

# Lower value wins when choosing the message for the screen's error slot
_ERROR_PRIORITY = {
    Outcome.ACCESS_DENIED: 0,
    Outcome.CONNECTION_FAILED: 1,
    Outcome.REQUEST_FAILED: 2,
    Outcome.DECLINED: 3,
}


@dataclass(frozen=True)
class FetchRequest:
    """
    Descriptor of one independent request.

    Attributes:
        key: Name the result is merged under (unique within a batch)
        method: HTTP method
        path: Path relative to the server address
        json: Optional JSON body
        required_roles: Roles allowed to send it; None means not role-protected
        failure_message: Message used when the server declines without one
        reports_errors: Whether a failure should reach the screen's error slot
    """

    key: str
    method: str
    path: str
    json: dict[str, Any] | None = None
    required_roles: frozenset[Role] | None = None
    failure_message: str | None = None
    reports_errors: bool = True


@dataclass(frozen=True)
class FetchBatch:
    """All settled results of one aggregated fetch, keyed by request key."""

    results: dict[str, FetchResult]
    reporting_keys: frozenset[str] = frozenset()

    def __getitem__(self, key: str) -> FetchResult:
        return self.results[key]

    def succeeded(self, key: str) -> bool:
        result = self.results.get(key)
        return result is not None and result.ok

    def payload(self, key: str) -> dict[str, Any] | None:
        """Payload of a successful result, else None."""
        result = self.results.get(key)
        return result.payload if result is not None and result.ok else None

    @property
    def failures(self) -> list[FetchResult]:
        return [r for r in self.results.values() if not r.ok]

    @property
    def all_succeeded(self) -> bool:
        return not self.failures

    def error_message(self, include_local_denials: bool = True) -> str | None:
        """Message for the screen's error slot.

        ACCESS_DENIED takes priority over any other concurrent failure; among
        equal kinds the first request in batch order wins.

        Args:
            include_local_denials: Whether requests refused by the role gate count
        """
        candidates = [
            r
            for r in self.failures
            if r.key in self.reporting_keys and (include_local_denials or not r.local)
        ]
        if not candidates:
            return None
        best = min(candidates, key=lambda r: _ERROR_PRIORITY[r.outcome])
        return best.message


class ConcurrentFetchAggregator:
    """Runs batches of independent requests on one event loop."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def fetch_all(self, requests: Sequence[FetchRequest], session: Session) -> FetchBatch:
        """Issue every request at once and wait for all of them to settle.

        Args:
            requests: Independent request descriptors
            session: Session snapshot used for gating and the token header

        Returns:
            FetchBatch holding one result per request key
        """
        keys = [r.key for r in requests]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate request keys in batch: {keys}")

        gated: dict[str, FetchResult] = {}
        to_send: list[FetchRequest] = []
        for request in requests:
            if request.required_roles is not None and check(request.required_roles, session) is Access.DENIED:
                logger.debug(f"Role gate denied '{request.key}' for role {session.role}; request not sent")
                gated[request.key] = access_denied(request.key)
            else:
                to_send.append(request)

        sent = await asyncio.gather(
            *(
                self.client.call(
                    r.key,
                    r.method,
                    r.path,
                    session,
                    json=r.json,
                    failure_message=r.failure_message,
                )
                for r in to_send
            )
        )

        by_key = {**gated, **{result.key: result for result in sent}}
        results = {key: by_key[key] for key in keys}
        batch = FetchBatch(
            results=results,
            reporting_keys=frozenset(r.key for r in requests if r.reports_errors),
        )

        failed = [f"{r.key}={r.outcome.value}" for r in batch.failures]
        logger.info(
            f"Fetched {len(requests)} requests ({len(gated)} gated locally): "
            f"{len(requests) - len(failed)} ok" + (f", failed: {', '.join(failed)}" if failed else "")
        )
        return batch
