"""Shared fixtures: settings, a controllable clock and a fake Microsoft backend."""

import json
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from kanban_todo.config.settings import MicrosoftSettings
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient

LISTS_URL = "https://graph.microsoft.com/v1.0/me/todo/lists"
TOKEN_URL = "https://login.microsoftonline.com/consumers/oauth2/v2.0/token"


class FakeClock:
    """Callable clock for SessionStore; only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeMicrosoft:
    """In-memory stand-in for the token endpoint and the Graph To Do API.

    Plug `handle` into httpx.MockTransport. Every request is recorded in
    `requests`; `fail_refresh` (answered with `refresh_status`) and `graph_status`
    switch on failure modes.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.lists = [{"id": "L1", "displayName": "Groceries"}]
        self.tasks: dict[str, dict[str, Any]] = {}
        self.next_task_id = 1
        self.fail_refresh = False
        self.refresh_status = 400
        self.rotate_refresh_token = True
        self.graph_status: int | None = None

    def add_task(self, **fields: Any) -> dict[str, Any]:
        task = {
            "id": fields.pop("id", f"T{self.next_task_id}"),
            "title": "Task",
            "status": "notStarted",
            "importance": "normal",
            "createdDateTime": "2025-05-01T08:00:00Z",
            **fields,
        }
        self.next_task_id += 1
        self.tasks[task["id"]] = task
        return task

    def form(self, request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == TOKEN_URL:
            return self._token(request)

        if self.graph_status is not None:
            return httpx.Response(self.graph_status, text="boom")

        path = url.removeprefix(LISTS_URL).strip("/")
        parts = path.split("/") if path else []

        if not parts:
            return httpx.Response(200, json={"value": self.lists})
        if len(parts) == 1:
            found = [lst for lst in self.lists if lst["id"] == parts[0]]
            if not found:
                return httpx.Response(404, json={"error": {"code": "ErrorItemNotFound"}})
            return httpx.Response(200, json=found[0])
        if len(parts) == 2 and request.method == "GET":
            return httpx.Response(200, json={"value": list(self.tasks.values())})
        if len(parts) == 2 and request.method == "POST":
            body = json.loads(request.content)
            task = self.add_task(title=body["title"])
            return httpx.Response(201, json=task)

        task_id = parts[2]
        if task_id not in self.tasks:
            return httpx.Response(404, json={"error": {"code": "ErrorItemNotFound"}})
        if request.method == "GET":
            return httpx.Response(200, json=self.tasks[task_id])
        if request.method == "PATCH":
            self.tasks[task_id].update(json.loads(request.content))
            return httpx.Response(200, json=self.tasks[task_id])
        if request.method == "DELETE":
            del self.tasks[task_id]
            return httpx.Response(204)
        return httpx.Response(405)

    def _token(self, request: httpx.Request) -> httpx.Response:
        data = self.form(request)
        if data["grant_type"] == "authorization_code":
            if data["code"] != "good-code":
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(
                200,
                json={
                    "access_token": "access-1",
                    "refresh_token": "refresh-1",
                    "expires_in": 3600,
                    "token_type": "Bearer",
                },
            )
        if self.fail_refresh:
            return httpx.Response(
                self.refresh_status,
                json={"error": "invalid_grant", "error_description": "revoked"},
            )
        body: dict[str, Any] = {"access_token": "access-2", "expires_in": 3600}
        if self.rotate_refresh_token:
            body["refresh_token"] = "refresh-2"
        return httpx.Response(200, json=body)

    def graph_calls(self, method: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and str(r.url).startswith(LISTS_URL)
        ]


@pytest.fixture
def microsoft_settings() -> MicrosoftSettings:
    """Microsoft settings with test credentials."""
    return MicrosoftSettings(client_id="client-123", client_secret="secret-456")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_microsoft() -> FakeMicrosoft:
    return FakeMicrosoft()


@pytest.fixture
async def microsoft_client(
    microsoft_settings: MicrosoftSettings, fake_microsoft: FakeMicrosoft
) -> AsyncGenerator[MicrosoftClient, None]:
    """MicrosoftClient talking to FakeMicrosoft through a MockTransport."""
    client = MicrosoftClient(
        microsoft_settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_microsoft.handle)),
    )
    yield client
    await client.close()
