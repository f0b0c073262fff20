"""Dependency injection for API endpoints."""

import logging
from typing import cast

from fastapi import Cookie, Depends, HTTPException, Request

from kanban_todo.application.services.microsoft_auth_service import MicrosoftAuthService
from kanban_todo.application.services.session_store import SessionStore
from kanban_todo.application.services.todo_service import TodoService
from kanban_todo.config import Settings, get_settings
from kanban_todo.domain.exceptions import AuthenticationError, TokenRefreshException
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


# Hey future me, the session store lives on app.state (created in lifecycle.py lifespan).
# Missing means startup did not finish - 503, not 500. Tests set app.state.session_store
# by hand without running the lifespan.
def get_session_store(request: Request) -> SessionStore:
    """Get the in-memory session store from app state.

    Raises:
        HTTPException: 503 if session store not initialized
    """
    if not hasattr(request.app.state, "session_store"):
        raise HTTPException(status_code=503, detail="Session store not initialized")
    return cast(SessionStore, request.app.state.session_store)


def get_microsoft_client(request: Request) -> MicrosoftClient:
    """Get the Microsoft client from app state.

    Raises:
        HTTPException: 503 if the client is not initialized
    """
    if not hasattr(request.app.state, "microsoft_client"):
        raise HTTPException(status_code=503, detail="Microsoft client not initialized")
    return cast(MicrosoftClient, request.app.state.microsoft_client)


def get_todo_service(
    client: MicrosoftClient = Depends(get_microsoft_client),
) -> TodoService:
    """TodoService bound to the shared Microsoft client."""
    return TodoService(client)


def get_auth_service(
    client: MicrosoftClient = Depends(get_microsoft_client),
) -> MicrosoftAuthService:
    """MicrosoftAuthService bound to the shared Microsoft client."""
    return MicrosoftAuthService(client)


def get_session_id(
    session_cookie: str | None = Cookie(None, alias=SESSION_COOKIE),
) -> str | None:
    """Session id from the `session` cookie, None when absent or empty."""
    return session_cookie or None


# Hey future me, this is THE auth dependency for every page and /api route behind login.
# It never returns an expired token: refresh_if_needed() refreshes transparently when the
# access token is past its expiry. Every failure is an AuthenticationError and the
# exception handler decides the response: 302 to "/" for pages, 401 for /api/*.
async def get_access_token(
    session_store: SessionStore = Depends(get_session_store),
    session_id: str | None = Depends(get_session_id),
) -> str:
    """Valid Microsoft Graph access token for the current browser.

    Raises:
        AuthenticationError: No cookie, unknown session, or refresh failed
    """
    if not session_id:
        raise AuthenticationError("No session found. Please sign in with Microsoft.")

    try:
        session = await session_store.refresh_if_needed(session_id)
    except TokenRefreshException as e:
        logger.warning(
            "Token refresh failed, user must sign in again: %s",
            e.message,
            extra={"error_code": e.error_code, "http_status": e.http_status},
        )
        raise AuthenticationError("Session expired. Please sign in with Microsoft again.") from e

    return session.access_token


__all__ = [
    "SESSION_COOKIE",
    "Settings",
    "get_access_token",
    "get_auth_service",
    "get_microsoft_client",
    "get_session_id",
    "get_session_store",
    "get_settings",
    "get_todo_service",
]
