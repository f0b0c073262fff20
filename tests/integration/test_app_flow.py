"""End-to-end flows through the ASGI app with a fake Microsoft backend."""

from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from conftest import FakeClock, FakeMicrosoft
from fastapi import FastAPI

from kanban_todo.application.services.session_store import SessionStore
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient
from kanban_todo.main import create_app


@pytest.fixture
def app(microsoft_client: MicrosoftClient, clock: FakeClock) -> FastAPI:
    app = create_app()
    app.state.microsoft_client = microsoft_client
    app.state.session_store = SessionStore(microsoft_client, clock=clock)
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    # https base URL: every cookie we set is Secure.
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="https://testserver"
    ) as client:
        yield client


async def _sign_in(client: httpx.AsyncClient) -> str:
    login = await client.get("/login")
    state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
    callback = await client.get("/auth/callback", params={"code": "good-code", "state": state})
    assert callback.status_code == 302
    return callback.cookies["session"]


class TestSignIn:
    """Login, callback and logout."""

    async def test_login_redirects_to_microsoft_with_state_cookie(
        self, client: httpx.AsyncClient
    ) -> None:
        response = await client.get("/login")

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.netloc == "login.microsoftonline.com"
        state = parse_qs(location.query)["state"][0]
        assert response.cookies["oauth_state"] == state
        assert "httponly" in response.headers["set-cookie"].lower()

    async def test_callback_creates_session(
        self, client: httpx.AsyncClient, app: FastAPI
    ) -> None:
        login = await client.get("/login")
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        response = await client.get(
            "/auth/callback", params={"code": "good-code", "state": state}
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/todoLists"
        session_id = response.cookies["session"]
        session = await app.state.session_store.get(session_id)
        assert session.access_token == "access-1"

    async def test_callback_without_code(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/auth/callback")

        assert response.status_code == 400
        assert response.json() == {"detail": "Code not found"}

    async def test_callback_state_mismatch(self, client: httpx.AsyncClient) -> None:
        await client.get("/login")

        response = await client.get(
            "/auth/callback", params={"code": "good-code", "state": "forged"}
        )

        assert response.status_code == 400

    async def test_callback_with_error_goes_home(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/auth/callback", params={"error": "access_denied", "error_description": "no"}
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/"

    async def test_failed_code_exchange_goes_home(
        self, client: httpx.AsyncClient, app: FastAPI
    ) -> None:
        response = await client.get("/auth/callback", params={"code": "bad-code"})

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert await app.state.session_store.count() == 0

    async def test_logout_deletes_session(self, client: httpx.AsyncClient, app: FastAPI) -> None:
        session_id = await _sign_in(client)

        response = await client.get("/logout")

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert await app.state.session_store.get(session_id) is None
        assert (await client.get("/todoLists")).status_code == 302


class TestPages:
    """Server-rendered pages."""

    async def test_home(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == 200
        assert 'href="/login"' in response.text

    async def test_pages_require_session(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/todoLists")

        assert response.status_code == 302
        assert response.headers["location"] == "/"

    async def test_lists_page(self, client: httpx.AsyncClient) -> None:
        await _sign_in(client)

        response = await client.get("/todoLists")

        assert response.status_code == 200
        assert 'href="/list/L1/"' in response.text
        assert "Groceries" in response.text

    async def test_board(self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft) -> None:
        fake_microsoft.add_task(id="A", title="Milk")
        fake_microsoft.add_task(id="B", title="Eggs", categories=["Doing"])
        fake_microsoft.add_task(id="C", title="Bread", status="completed")
        await _sign_in(client)

        response = await client.get("/list/L1/")

        assert response.status_code == 200
        html = response.text
        assert html.index('data-column="Not Started"') < html.index("Milk")
        assert html.index('data-column="Doing"') < html.index("Eggs")
        assert html.index('data-column="Done"') < html.index("Bread")

    async def test_unknown_list_is_500(self, client: httpx.AsyncClient) -> None:
        await _sign_in(client)

        response = await client.get("/list/nope/")

        assert response.status_code == 500
        assert "404" in response.json()["detail"]


class TestTaskApi:
    """The /api endpoints used by the board script."""

    async def test_requires_session(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/updateTask", data={"listId": "L1", "taskId": "A", "column": "Done"}
        )

        assert response.status_code == 401

    async def test_move_to_doing(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        fake_microsoft.add_task(id="A", categories=["Work"])
        await _sign_in(client)

        response = await client.post(
            "/api/updateTask", data={"listId": "L1", "taskId": "A", "column": "Doing"}
        )

        assert response.status_code == 200
        assert response.text == "Task updated successfully"
        assert fake_microsoft.tasks["A"]["categories"] == ["Work", "Doing"]
        assert fake_microsoft.tasks["A"]["status"] == "notStarted"

    async def test_move_unknown_task(self, client: httpx.AsyncClient) -> None:
        await _sign_in(client)

        response = await client.post(
            "/api/updateTask", data={"listId": "L1", "taskId": "ZZ", "column": "Done"}
        )

        assert response.status_code == 404

    async def test_missing_parameters(self, client: httpx.AsyncClient) -> None:
        await _sign_in(client)

        response = await client.post("/api/updateTask", data={"listId": "L1"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Missing required parameters"}

    async def test_wrong_method(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/updateTask")

        assert response.status_code == 405

    async def test_toggle_importance(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        fake_microsoft.add_task(id="A")
        await _sign_in(client)

        on = await client.post(
            "/api/toggleImportance", data={"listId": "L1", "taskId": "A", "isImportant": "true"}
        )
        assert on.text == "Task importance updated successfully"
        assert fake_microsoft.tasks["A"]["importance"] == "high"

        await client.post(
            "/api/toggleImportance", data={"listId": "L1", "taskId": "A", "isImportant": "yes"}
        )
        assert fake_microsoft.tasks["A"]["importance"] == "normal"

    async def test_create_then_details(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        await _sign_in(client)

        created = await client.post("/api/createTask", data={"listId": "L1", "title": "Milk"})
        assert created.status_code == 200
        task_id = created.json()["taskId"]

        details = await client.get(
            "/api/getTaskDetails", params={"listId": "L1", "taskId": task_id}
        )

        assert details.json() == {
            "id": task_id,
            "title": "Milk",
            "status": "notStarted",
            "importance": "normal",
            "categories": [],
        }

    async def test_update_details_then_read_due_date(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        fake_microsoft.add_task(id="A")
        await _sign_in(client)

        response = await client.post(
            "/api/updateTaskDetails",
            data={
                "listId": "L1",
                "taskId": "A",
                "title": "Buy milk",
                "status": "completed",
                "importance": "high",
                "dueDate": "2025-06-01",
                "categories": '["Home"]',
            },
        )
        assert response.text == "Task updated successfully"

        details = (
            await client.get("/api/getTaskDetails", params={"listId": "L1", "taskId": "A"})
        ).json()
        assert details["dueDateTimeRaw"] == "2025-06-01T00:00:00Z"
        assert details["dueDateTime"] == "Jun 1, 2025"
        assert details["status"] == "completed"
        assert details["categories"] == ["Home"]

    async def test_update_details_bad_categories(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        fake_microsoft.add_task(id="A")
        await _sign_in(client)

        response = await client.post(
            "/api/updateTaskDetails",
            data={"listId": "L1", "taskId": "A", "title": "X", "categories": "Home"},
        )

        assert response.status_code == 400
        assert not fake_microsoft.graph_calls("PATCH")

    async def test_delete(self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft) -> None:
        fake_microsoft.add_task(id="A")
        await _sign_in(client)

        response = await client.post("/api/deleteTask", data={"listId": "L1", "taskId": "A"})

        assert response.text == "Task deleted successfully"
        assert "A" not in fake_microsoft.tasks

    async def test_graph_failure_is_500(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft
    ) -> None:
        await _sign_in(client)
        fake_microsoft.graph_status = 500

        response = await client.post("/api/deleteTask", data={"listId": "L1", "taskId": "A"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Microsoft Graph API returned error: 500 - boom"}


class TestTokenExpiry:
    """Transparent refresh and what happens when it fails."""

    async def test_expired_token_refreshed_transparently(
        self, client: httpx.AsyncClient, fake_microsoft: FakeMicrosoft, clock: FakeClock
    ) -> None:
        await _sign_in(client)
        clock.advance(3601)

        response = await client.get("/todoLists")

        assert response.status_code == 200
        assert fake_microsoft.graph_calls("GET")[-1].headers["authorization"] == "Bearer access-2"

    @pytest.mark.parametrize("refresh_status", [400, 401])
    @pytest.mark.parametrize("page_path", ["/todoLists", "/list/L1/"])
    async def test_refresh_failure(
        self,
        client: httpx.AsyncClient,
        fake_microsoft: FakeMicrosoft,
        clock: FakeClock,
        refresh_status: int,
        page_path: str,
    ) -> None:
        await _sign_in(client)
        clock.advance(3601)
        fake_microsoft.fail_refresh = True
        fake_microsoft.refresh_status = refresh_status

        page = await client.get(page_path)
        api = await client.post(
            "/api/deleteTask", data={"listId": "L1", "taskId": "A"}
        )

        assert page.status_code == 302
        assert page.headers["location"] == "/"
        assert api.status_code == 401
        assert not fake_microsoft.graph_calls("DELETE")


async def test_health(client: httpx.AsyncClient) -> None:
    await _sign_in(client)

    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["sessions"] == 1
