"""
Root test configuration and fixtures for the judging client.

This conftest.py provides common fixtures for all test categories:
- unit/: Fast, isolated unit tests against an in-process fake server

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

SERVER_ADDRESS = "http://judging.test"

Reply = httpx.Response | Callable[[httpx.Request], Any]


class FakeServer:
    """Route table served through httpx.MockTransport.

    Each route holds a list of replies; they are used in order and the last
    one repeats. A reply is either a response or a callable taking the
    request (sync or async). Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, *replies: Reply) -> None:
        self.routes[(method.upper(), path)] = list(replies)

    def json(self, method: str, path: str, *bodies: dict[str, Any], status: int = 200) -> None:
        """Register JSON replies, one per call in order."""
        self.route(method, path, *(httpx.Response(status, json=body) for body in bodies))

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        replies = self.routes.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, httpx.Response):
            # Fresh copy so a repeated reply can be read again
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        result = reply(request)
        if not isinstance(result, httpx.Response):
            result = await result
        return result

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def server() -> FakeServer:
    """Fake judging server; register routes before exercising the client."""
    return FakeServer()


@pytest.fixture
def client(server):
    """ApiClient wired to the fake server."""
    from judging.client import ApiClient

    return ApiClient(SERVER_ADDRESS, transport=httpx.MockTransport(server.handle))


def make_session(role_name: str | None, username: str = "tester"):
    from judging.models import Role
    from judging.session_context import Session

    role = Role(role_name) if role_name else None
    return Session(role=role, token="session=abc123", username=username)


@pytest.fixture
def admin_context():
    from judging.session_context import SessionContext

    return SessionContext(make_session("Administrator", "admin"))


@pytest.fixture
def bewerter_context():
    from judging.session_context import SessionContext

    return SessionContext(make_session("Bewerter", "bewerter"))


@pytest.fixture
def inspektor_context():
    from judging.session_context import SessionContext

    return SessionContext(make_session("Inspektor", "inspektor"))


@pytest.fixture
def verwarner_context():
    from judging.session_context import SessionContext

    return SessionContext(make_session("Verwarner", "verwarner"))


@pytest.fixture
def admin_settings_body() -> dict[str, Any]:
    return {"success": True, "settings": {"index_title_text": "Projekttag 2026", "logo_path": "/static/logo.png"}}


@pytest.fixture
def session_for():
    """Factory: ``session_for("Bewerter")`` builds a logged-in Session."""
    return make_session
