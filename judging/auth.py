"""Login and logout against the judging server."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .client import ApiClient, classify_response
from .errors import ConnectionFailedError, RequestFailedError, ValidationFailedError
from .models import Role
from .session_context import Session, SessionContext

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Bitte fülle alle Felder aus."


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    session: Session
    message: str
    redirect_to_setup: bool = False


def _session_cookie(response: httpx.Response, cookie_name: str) -> str | None:
    """Extract ``name=value`` of the session cookie from the response."""
    value = response.cookies.get(cookie_name)
    if value:
        return f"{cookie_name}={value}"
    # Fall back to the first cookie the server set
    set_cookie = response.headers.get("set-cookie")
    if set_cookie:
        return set_cookie.split(";", 1)[0].strip() or None
    return None


async def login(
    client: ApiClient,
    context: SessionContext,
    username: str,
    password: str,
    cookie_name: str = "session",
) -> LoginResult:
    """Authenticate and store the resulting session in ``context``.

    Raises:
        ValidationFailedError: Username or password missing (no request sent)
        JudgingError: Rejected credentials, HTTP or transport failure
    """
    username = username.strip()
    password = password.strip()
    if not username or not password:
        raise ValidationFailedError(MISSING_FIELDS_MESSAGE)

    try:
        response = await client.post_form("/login", {"username": username, "password": password})
    except httpx.HTTPError as e:
        raise ConnectionFailedError(
            f"Verbindungsfehler: Bitte überprüfe die Server-URL und deine Internetverbindung. ({e})", cause=e
        ) from e

    result = classify_response("login", response, failure_message="Login fehlgeschlagen.")
    payload = result.unwrap()

    token = _session_cookie(response, cookie_name)
    if token is None:
        raise RequestFailedError("Login erfolgreich, aber der Server hat keine Sitzung gesetzt.", response.status_code)

    role = Role.parse(payload.get("role") or payload.get("user_role"))
    session = Session(role=role, token=token, username=username)
    context.login(session)
    return LoginResult(
        session=session,
        message=payload.get("message") or "Login erfolgreich.",
        redirect_to_setup=bool(payload.get("redirect_to_setup")),
    )


async def logout(client: ApiClient, context: SessionContext) -> None:
    """End the server session and clear ``context``.

    The local session is cleared even when the server call fails; the
    failure is still raised to the caller.
    """
    session = context.session
    context.logout()
    try:
        response = await client.send("GET", "/api/logout", session)
    except httpx.HTTPError as e:
        raise ConnectionFailedError(f"Verbindungsfehler beim Abmelden: {e}", cause=e) from e
    if response.status_code != 200:
        raise RequestFailedError(f"Fehler beim Abmelden. Status: {response.status_code}", response.status_code)
    logger.info("Logged out")
