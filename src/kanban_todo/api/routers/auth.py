"""Sign-in, OAuth callback and sign-out."""

import logging

from fastapi import APIRouter, Cookie, Depends, Query, Request, status
from fastapi.responses import RedirectResponse

from kanban_todo.api.dependencies import (
    SESSION_COOKIE,
    get_auth_service,
    get_session_id,
    get_session_store,
)
from kanban_todo.application.services.microsoft_auth_service import MicrosoftAuthService
from kanban_todo.application.services.session_store import SessionStore
from kanban_todo.config import Settings, get_settings
from kanban_todo.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

STATE_COOKIE = "oauth_state"
# Ten minutes is generous for a Microsoft sign-in page.
STATE_COOKIE_MAX_AGE = 600


def _clear_cookie(response: RedirectResponse, key: str) -> None:
    response.delete_cookie(key, path="/", secure=True, httponly=True, samesite="lax")


# Hey future me, the state value is our CSRF token for the OAuth round trip. It rides in a
# short-lived HttpOnly cookie and must come back unchanged as ?state= on the callback.
@router.get("/login")
async def login(
    auth_service: MicrosoftAuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Redirect to the Microsoft sign-in page."""
    auth = auth_service.generate_auth_url()
    response = RedirectResponse(url=auth.authorization_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        STATE_COOKIE,
        auth.state,
        max_age=STATE_COOKIE_MAX_AGE,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )
    return response


# Yo future me, order matters here:
# 1. Microsoft sent ?error= (user hit "Cancel") -> back home, nothing to show
# 2. no code -> 400
# 3. state does not match the cookie -> 400 (possible CSRF)
# 4. code exchange fails -> TokenExchangeError -> handler redirects home
# 5. session created, cookie set, off to the lists page
@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str = Query(""),
    state: str = Query(""),
    error: str = Query(""),
    expected_state: str | None = Cookie(None, alias=STATE_COOKIE),
    auth_service: MicrosoftAuthService = Depends(get_auth_service),
    session_store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Finish the sign-in: exchange the code and start a session."""
    if error:
        logger.warning(
            "Sign-in was not completed: %s",
            request.query_params.get("error_description") or error,
            extra={"oauth_error": error},
        )
        response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
        _clear_cookie(response, STATE_COOKIE)
        return response

    if not code:
        raise ValidationError("Code not found")

    if expected_state is not None and not auth_service.state_matches(expected_state, state):
        logger.warning("OAuth state mismatch on callback")
        raise ValidationError("Invalid OAuth state")
    if expected_state is None:
        logger.warning("OAuth callback without state cookie, skipping state check")

    token = await auth_service.exchange_code(code)
    session_id = await session_store.create(token)

    response = RedirectResponse(url="/todoLists", status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        max_age=settings.api.session_max_age,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )
    _clear_cookie(response, STATE_COOKIE)
    return response


@router.get("/logout")
async def logout(
    session_id: str | None = Depends(get_session_id),
    session_store: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    """Forget the session and clear the cookie."""
    if session_id:
        await session_store.delete(session_id)

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    _clear_cookie(response, SESSION_COOKIE)
    return response
