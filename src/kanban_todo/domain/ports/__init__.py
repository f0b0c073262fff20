"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod

from kanban_todo.domain.entities import TokenResult


# Hey future me, ITokenClient is the only thing the session store knows about the
# identity provider. MicrosoftClient implements it; tests hand in small
# stubs. Both methods raise TokenExchangeError on ANY failure.
class ITokenClient(ABC):
    """OAuth2 token endpoint operations."""

    @abstractmethod
    async def exchange_code(self, code: str) -> TokenResult:
        """Exchange an authorization code for tokens."""

    @abstractmethod
    async def refresh_token(self, refresh_token: str) -> TokenResult:
        """Mint a new access token from a refresh token."""


__all__ = ["ITokenClient"]
