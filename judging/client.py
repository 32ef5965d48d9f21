"""Async HTTP client for the judging server and response classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from .errors import (
    AccessDeniedError,
    ApplicationRejectedError,
    ConnectionFailedError,
    JudgingError,
    RequestFailedError,
)
from .session_context import Session
from .settings import JudgingSettings

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "Sie haben keine Berechtigung, auf diese Seite zuzugreifen."
DECLINED_MESSAGE = "Die Anfrage wurde vom Server abgelehnt."
INVALID_BODY_MESSAGE = "Ungültige Antwort vom Server."
INVALID_PAYLOAD_MESSAGE = "Unerwartete Daten vom Server erhalten."


class Outcome(str, Enum):
    """Classification of a single settled request."""

    SUCCESS = "success"
    DECLINED = "declined"  # 200 with success: false
    ACCESS_DENIED = "access_denied"
    REQUEST_FAILED = "request_failed"
    CONNECTION_FAILED = "connection_failed"


@dataclass(frozen=True)
class FetchResult:
    """
    Settled result of one request.

    Attributes:
        key: Name the result is merged under
        outcome: Classification of the response
        payload: Decoded JSON body on success, empty otherwise
        message: Message to surface (server-provided where available)
        status_code: HTTP status, None when no response was received
        error: Raw transport exception for CONNECTION_FAILED
        local: True when synthesized without a network round trip
    """

    key: str
    outcome: Outcome
    payload: dict[str, Any] = field(default_factory=dict)
    message: str | None = None
    status_code: int | None = None
    error: BaseException | None = None
    local: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    def to_error(self) -> JudgingError | None:
        """Map a failed result onto the error hierarchy."""
        message = self.message or DECLINED_MESSAGE
        if self.outcome is Outcome.SUCCESS:
            return None
        if self.outcome is Outcome.ACCESS_DENIED:
            return AccessDeniedError(message)
        if self.outcome is Outcome.DECLINED:
            return ApplicationRejectedError(message)
        if self.outcome is Outcome.CONNECTION_FAILED:
            return ConnectionFailedError(message, cause=self.error)
        return RequestFailedError(message, status_code=self.status_code)

    def unwrap(self) -> dict[str, Any]:
        """Return the payload, raising the mapped error for any failure."""
        error = self.to_error()
        if error is not None:
            raise error
        return self.payload


def access_denied(key: str) -> FetchResult:
    """Result substituted for a request the role gate refused to send."""
    return FetchResult(key=key, outcome=Outcome.ACCESS_DENIED, message=ACCESS_DENIED_MESSAGE, local=True)


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def classify_response(key: str, response: httpx.Response, failure_message: str | None = None) -> FetchResult:
    """Classify one HTTP response.

    - 403 → ACCESS_DENIED
    - other non-200, or a 200 without a JSON object body → REQUEST_FAILED
    - 200 with ``success: true`` → SUCCESS
    - 200 otherwise → DECLINED
    """
    status = response.status_code
    body = _json_object(response)
    server_message = body.get("message") if body else None

    if status == 403:
        return FetchResult(
            key=key,
            outcome=Outcome.ACCESS_DENIED,
            message=server_message or ACCESS_DENIED_MESSAGE,
            status_code=status,
        )
    if status != 200:
        return FetchResult(
            key=key,
            outcome=Outcome.REQUEST_FAILED,
            message=server_message or f"Fehler {status}: {response.reason_phrase}",
            status_code=status,
        )
    if body is None:
        return FetchResult(key=key, outcome=Outcome.REQUEST_FAILED, message=INVALID_BODY_MESSAGE, status_code=status)
    if body.get("success") is True:
        return FetchResult(key=key, outcome=Outcome.SUCCESS, payload=body, message=server_message, status_code=status)
    return FetchResult(
        key=key,
        outcome=Outcome.DECLINED,
        message=server_message or failure_message or DECLINED_MESSAGE,
        status_code=status,
    )


class ApiClient:
    """Client for the judging server's JSON API.

    The session token travels in the ``Cookie`` header of every request.
    No timeout is applied unless one is configured.
    """

    def __init__(
        self,
        server_address: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_address = server_address.rstrip("/")
        self._http = httpx.AsyncClient(base_url=self.server_address, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: JudgingSettings, transport: httpx.AsyncBaseTransport | None = None) -> ApiClient:
        return cls(settings.server_address, timeout=settings.request_timeout, transport=transport)

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _headers(session: Session) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if session.token:
            headers["Cookie"] = session.token
        return headers

    async def send(
        self,
        method: str,
        path: str,
        session: Session,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request; transport errors propagate as httpx exceptions."""
        logger.trace(f"{method} {path}")  # type: ignore[attr-defined]
        return await self._http.request(method, path, headers=self._headers(session), json=json)

    async def post_form(self, path: str, data: dict[str, str]) -> httpx.Response:
        """POST form-encoded data without a session (used for login)."""
        return await self._http.post(path, data=data)

    async def call(
        self,
        key: str,
        method: str,
        path: str,
        session: Session,
        json: dict[str, Any] | None = None,
        failure_message: str | None = None,
    ) -> FetchResult:
        """Send one request and classify it; a failure to send is returned, never raised."""
        try:
            response = await self.send(method, path, session, json=json)
        except httpx.HTTPError as e:
            logger.warning(f"Connection failed for {method} {path}: {type(e).__name__}: {e}")
            return FetchResult(
                key=key,
                outcome=Outcome.CONNECTION_FAILED,
                message=f"Verbindungsfehler: {e}",
                error=e,
            )
        except Exception as e:
            # Anything else raised while sending still settles only this request
            logger.error(f"Request {method} {path} failed unexpectedly: {type(e).__name__}: {e}")
            return FetchResult(
                key=key,
                outcome=Outcome.CONNECTION_FAILED,
                message=f"Verbindungsfehler: {e}",
                error=e,
            )

        result = classify_response(key, response, failure_message)
        if not result.ok:
            logger.debug(f"{method} {path} -> {result.outcome.value} ({response.status_code}): {result.message}")
        return result
