"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it
    # without parsing str(exception). Never raise this directly - always a subclass.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found.

    HTTP Status: 404
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationError(DomainException):
    """Input validation failed (missing or malformed request parameters).

    HTTP Status: 400

    Example:
        raise ValidationError("Missing required parameters")
        raise ValidationError("Invalid categories format: expected a JSON array")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised at startup when required configuration is missing (client
    credentials, TLS files, templates). The process must not start serving.

    HTTP Status: 503 (if it ever escapes into a request)
    """

    pass


class AuthenticationError(DomainException):
    """The browser is not logged in (or no longer is).

    Everything session related derives from this: unknown session, failed
    code exchange, failed refresh. Handlers treat all of them as
    "not logged in" - redirect to / for pages, 401 for /api/*.

    HTTP Status: 401
    """

    pass


class SessionNotFoundError(AuthenticationError):
    """No live session for the given identifier."""

    def __init__(self, session_id: str | None = None) -> None:
        # Only a short prefix ends up in logs - the id is a bearer secret.
        prefix = f"{session_id[:8]}..." if session_id else "<none>"
        super().__init__(f"Session {prefix} not found")
        self.session_id = session_id


class TokenExchangeError(AuthenticationError):
    """Token endpoint call failed (code exchange or refresh).

    Covers transport failures, non-2xx responses and malformed bodies.
    error_code carries the OAuth "error" field when the provider sent one
    (e.g. "invalid_grant"), http_status the response status if there was one.
    """

    def __init__(
        self,
        message: str = "Token exchange with the identity provider failed.",
        error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.http_status = http_status


class TokenRefreshException(AuthenticationError):
    """Raised when refreshing a session's access token fails.

    The stored session is left untouched; the user has to sign in again.
    """

    def __init__(
        self,
        message: str = "Token refresh failed. Please sign in with Microsoft again.",
        error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code  # e.g., "invalid_grant"
        self.http_status = http_status  # e.g., 400, 401

    @property
    def requires_reauth(self) -> bool:
        """Check if error means the refresh token itself is dead."""
        return self.error_code == "invalid_grant" or self.http_status in (400, 401, 403)


class ExternalServiceError(DomainException):
    """Microsoft Graph (or the network in between) failed us.

    HTTP Status: 500
    """

    pass


class RemoteAPIError(ExternalServiceError):
    """Graph answered with a non-2xx status."""

    def __init__(self, status: int, body: str, operation: str = "Graph request") -> None:
        super().__init__(
            f"Microsoft Graph API returned error: {status} - {body}"
            if body
            else f"Microsoft Graph API returned error: {status}"
        )
        self.status = status
        self.body = body
        self.operation = operation


class TransportError(ExternalServiceError):
    """Network-level failure talking to Graph (connect, timeout, TLS...)."""

    pass


class MalformedResponseError(ExternalServiceError):
    """Graph returned 2xx but the body did not match the expected shape."""

    pass


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "MalformedResponseError",
    "RemoteAPIError",
    "SessionNotFoundError",
    "TokenExchangeError",
    "TokenRefreshException",
    "TransportError",
    "ValidationError",
]
