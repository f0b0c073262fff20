"""Microsoft identity platform + Graph To Do HTTP client."""

import logging
from typing import Any, TypeVar
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from kanban_todo.config.settings import HttpSettings, MicrosoftSettings
from kanban_todo.domain.entities import TokenResult
from kanban_todo.domain.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    RemoteAPIError,
    TokenExchangeError,
    TransportError,
)
from kanban_todo.domain.ports import ITokenClient
from kanban_todo.infrastructure.integrations.http_pool import HttpClientPool
from kanban_todo.infrastructure.integrations.microsoft_schemas import (
    TaskUpdate,
    TodoList,
    TodoListCollection,
    TodoTask,
    TodoTaskCollection,
    TokenErrorResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _segment(value: str) -> str:
    # Graph ids are base64-ish and may end in "=", but a "/" must never
    # change the path we hit.
    return quote(value, safe="=")


class MicrosoftClient(ITokenClient):
    """HTTP client for the Microsoft OAuth endpoints and the Graph To Do API.

    No retries anywhere: every failure surfaces to the request that caused it.
    """

    # Hey future me, the HTTP client is NOT created here. Either the caller injects one
    # (tests do, with an httpx.MockTransport) and we own it, or we borrow the shared
    # one from HttpClientPool on first use - the pool closes that one, not us.
    def __init__(
        self,
        settings: MicrosoftSettings,
        http_client: httpx.AsyncClient | None = None,
        http: HttpSettings | None = None,
    ) -> None:
        """
        Initialize Microsoft client.

        Args:
            settings: Microsoft configuration settings
            http_client: Optional client to use instead of the shared pool
            http: Timeout and limits for the pooled client
        """
        self.settings = settings
        self._http = http
        self._client: httpx.AsyncClient | None = http_client
        self._owns_client = http_client is not None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get the injected client or the shared pooled one."""
        if self._client is None:
            self._client = await HttpClientPool.get_client(self._http)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    @property
    def lists_url(self) -> str:
        return self.settings.graph_lists_url.rstrip("/")

    def _list_url(self, list_id: str) -> str:
        return f"{self.lists_url}/{_segment(list_id)}"

    def _tasks_url(self, list_id: str) -> str:
        return f"{self._list_url(list_id)}/tasks"

    def _task_url(self, list_id: str, task_id: str) -> str:
        return f"{self._tasks_url(list_id)}/{_segment(task_id)}"

    # =========================================================================
    # OAUTH
    # =========================================================================

    # Listen future me, the state param is the CSRF token of the login flow. The router
    # puts the same value in the oauth_state cookie and compares on the way back.
    # response_mode=query makes Microsoft send code/state as query params (not a POST).
    def get_authorization_url(self, state: str) -> str:
        """
        Build the Microsoft sign-in URL.

        Args:
            state: Opaque value echoed back on the callback

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If client_id is not configured
        """
        if not self.settings.client_id.strip():
            raise ConfigurationError(
                "MS_CLIENT_ID is not configured. "
                "Set MS_CLIENT_ID and MS_CLIENT_SECRET in your environment or .env"
            )

        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": self.settings.redirect_uri,
            "scope": self.settings.scope,
            "response_mode": "query",
            "state": state,
        }
        return f"{self.settings.authorize_url}?{urlencode(params)}"

    # Yo future me, the code is single-use and short-lived. redirect_uri MUST match the
    # one from get_authorization_url() exactly or Microsoft says invalid_grant.
    async def exchange_code(self, code: str) -> TokenResult:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback

        Returns:
            TokenResult with access token, refresh token and lifetime

        Raises:
            TokenExchangeError: On transport error, non-2xx, or malformed body
        """
        return await self._token_request(
            {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
                "grant_type": "authorization_code",
            },
            grant="authorization_code",
        )

    # Hey future me, Microsoft usually rotates the refresh token here, but not always.
    # An empty refresh_token in the result means "keep the old one" - SessionStore
    # handles that, this method just reports what came back.
    async def refresh_token(self, refresh_token: str) -> TokenResult:
        """
        Mint a new access token from a refresh token.

        Args:
            refresh_token: Refresh token of the session

        Returns:
            TokenResult (refresh_token may be empty)

        Raises:
            TokenExchangeError: On transport error, non-2xx, or malformed body
        """
        return await self._token_request(
            {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "refresh_token": refresh_token,
                "redirect_uri": self.settings.redirect_uri,
                "grant_type": "refresh_token",
            },
            grant="refresh_token",
        )

    async def _token_request(self, data: dict[str, str], grant: str) -> TokenResult:
        client = await self._get_client()

        try:
            response = await client.post(
                self.settings.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.warning(
                "Token request failed (grant=%s): %s",
                grant,
                e,
                extra={"grant_type": grant, "error_type": type(e).__name__},
            )
            raise TokenExchangeError(f"Token request failed: {e}") from e

        if not response.is_success:
            error_code = None
            try:
                error_code = TokenErrorResponse.model_validate(response.json()).error
            except (ValueError, PydanticValidationError):
                # Non-JSON error page; the status code is all we get.
                error_code = None
            logger.warning(
                "Token endpoint returned %d (grant=%s, error=%s)",
                response.status_code,
                grant,
                error_code,
                extra={
                    "grant_type": grant,
                    "status_code": response.status_code,
                    "error_code": error_code,
                },
            )
            raise TokenExchangeError(
                f"Token request failed with status {response.status_code}",
                error_code=error_code,
                http_status=response.status_code,
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Malformed token response (grant=%s)", grant)
            raise TokenExchangeError(
                "Token endpoint returned a malformed response",
                http_status=response.status_code,
            ) from e

        return TokenResult(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_in=token.expires_in,
            token_type=token.token_type,
            scope=token.scope,
        )

    # =========================================================================
    # GRAPH
    # =========================================================================

    # Hey future me - ALL Graph calls go through here. One bearer request, no retries.
    # Transport problems become TransportError, any non-2xx becomes RemoteAPIError with
    # the raw body so the 500 the user sees actually says what Graph complained about.
    async def _graph_request(
        self,
        method: str,
        url: str,
        access_token: str,
        operation: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            response = await client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as e:
            logger.error(
                "Graph %s failed: %s",
                operation,
                e,
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise TransportError(f"Microsoft Graph request failed: {e}") from e

        if not response.is_success:
            logger.error(
                "Graph %s returned %d",
                operation,
                response.status_code,
                extra={"operation": operation, "status_code": response.status_code},
            )
            raise RemoteAPIError(response.status_code, response.text, operation)

        return response

    @staticmethod
    def _parse(model: type[ModelT], response: httpx.Response, operation: str) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(
                "Graph %s returned an unexpected body", operation, extra={"operation": operation}
            )
            raise MalformedResponseError(
                f"Microsoft Graph returned a malformed response for {operation}"
            ) from e

    async def get_lists(self, access_token: str) -> list[TodoList]:
        """Fetch all To Do lists of the signed-in user."""
        response = await self._graph_request("GET", self.lists_url, access_token, "get_lists")
        return self._parse(TodoListCollection, response, "get_lists").value

    async def get_list(self, access_token: str, list_id: str) -> TodoList:
        """Fetch one To Do list (for its display name)."""
        response = await self._graph_request(
            "GET", self._list_url(list_id), access_token, "get_list"
        )
        return self._parse(TodoList, response, "get_list")

    # Hey future me, this is the ONE place tasks are read for the board. No paging:
    # Graph returns the first page (up to 100ish) and that's what the board shows.
    async def get_tasks(self, access_token: str, list_id: str) -> list[TodoTask]:
        """Fetch the tasks of a list."""
        response = await self._graph_request(
            "GET", self._tasks_url(list_id), access_token, "get_tasks"
        )
        return self._parse(TodoTaskCollection, response, "get_tasks").value

    async def get_task(self, access_token: str, list_id: str, task_id: str) -> TodoTask:
        """Fetch one task."""
        response = await self._graph_request(
            "GET", self._task_url(list_id, task_id), access_token, "get_task"
        )
        return self._parse(TodoTask, response, "get_task")

    async def create_task(self, access_token: str, list_id: str, title: str) -> TodoTask:
        """Create a task with just a title. Graph answers 201 with the new task."""
        response = await self._graph_request(
            "POST",
            self._tasks_url(list_id),
            access_token,
            "create_task",
            json={"title": title},
        )
        return self._parse(TodoTask, response, "create_task")

    async def update_task_status(
        self,
        access_token: str,
        list_id: str,
        task_id: str,
        status: str,
        categories: list[str],
    ) -> None:
        """PATCH status and categories (the board move)."""
        await self._graph_request(
            "PATCH",
            self._task_url(list_id, task_id),
            access_token,
            "update_task_status",
            json={"status": status, "categories": categories},
        )

    async def update_task_importance(
        self, access_token: str, list_id: str, task_id: str, importance: str
    ) -> None:
        """PATCH importance only."""
        await self._graph_request(
            "PATCH",
            self._task_url(list_id, task_id),
            access_token,
            "update_task_importance",
            json={"importance": importance},
        )

    async def update_task_fields(
        self, access_token: str, list_id: str, task_id: str, update: TaskUpdate
    ) -> None:
        """PATCH the fields edited in the task dialog."""
        await self._graph_request(
            "PATCH",
            self._task_url(list_id, task_id),
            access_token,
            "update_task_fields",
            json=update.to_payload(),
        )

    async def delete_task(self, access_token: str, list_id: str, task_id: str) -> None:
        """Delete a task. Graph answers 204."""
        await self._graph_request(
            "DELETE", self._task_url(list_id, task_id), access_token, "delete_task"
        )
