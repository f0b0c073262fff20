"""Microsoft OAuth sign-in flow.

Hey future me - this wraps MicrosoftClient's OAuth half so the auth router stays
thin. Flow:
1. generate_auth_url() -> URL + state (router puts state in the oauth_state cookie)
2. User signs in at Microsoft, comes back to /auth/callback?code=&state=
3. state_matches() -> CSRF check against the cookie
4. exchange_code() -> TokenResult, router hands it to SessionStore.create()

The service stores nothing. Tokens go to SessionStore only.
"""

import logging
import secrets
from dataclasses import dataclass

from kanban_todo.domain.entities import TokenResult
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient

logger = logging.getLogger(__name__)


@dataclass
class AuthUrlResult:
    """Sign-in URL plus the state value it carries."""

    authorization_url: str
    state: str


class MicrosoftAuthService:
    """Service for the Microsoft OAuth authorization-code flow."""

    def __init__(self, client: MicrosoftClient) -> None:
        self._client = client

    def generate_auth_url(self, state: str | None = None) -> AuthUrlResult:
        """Build the sign-in URL with a fresh random state (unless given)."""
        if state is None:
            state = secrets.token_urlsafe(32)

        authorization_url = self._client.get_authorization_url(state)
        logger.debug(f"Generated auth URL with state={state[:8]}...")
        return AuthUrlResult(authorization_url=authorization_url, state=state)

    @staticmethod
    def state_matches(expected: str | None, received: str | None) -> bool:
        """Constant-time comparison of the stored and returned state."""
        if not expected or not received:
            return False
        return secrets.compare_digest(expected, received)

    async def exchange_code(self, code: str) -> TokenResult:
        """Exchange the callback code for tokens.

        Raises:
            TokenExchangeError: If Microsoft refuses or the call fails
        """
        token = await self._client.exchange_code(code)
        logger.info("Successfully exchanged authorization code for tokens")
        return token
