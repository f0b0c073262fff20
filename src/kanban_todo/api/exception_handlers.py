"""Custom exception handlers for the FastAPI application.

Converts domain exceptions and request validation errors into HTTP responses.
Error bodies are always JSON {"detail": "..."}, with one exception: an
AuthenticationError on a page route becomes a 302 back to the landing page,
because a browser navigating to /todoLists should land on "Sign in", not on
a JSON blob.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from kanban_todo.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EntityNotFoundException,
    ExternalServiceError,
    RemoteAPIError,
    ValidationError,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"


def is_api_request(request: Request) -> bool:
    """True for the JSON/text endpoints under /api/."""
    return request.url.path.startswith(API_PREFIX)


def _detail(
    status_code: int, detail: Any, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


def _describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    # Form/query errors come as {"loc": ("body", "listId"), ...}; we only
    # need the field names for a readable 400.
    fields = sorted({str(e.get("loc", ("", "?"))[-1]) for e in errors})
    return f"Missing or invalid parameters: {', '.join(fields)}"


# Hey future me, this registers GLOBAL exception handlers for the whole app. Call it from
# create_app() BEFORE any request arrives. Domain exceptions raised anywhere in a route or
# dependency end up here instead of as bare 500s.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle domain validation errors with 400 Bad Request."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _detail(status.HTTP_400_BAD_REQUEST, exc.message)

    # Missing form fields and query params land here. The UI never sends them, so a
    # 400 with the field names is plenty; FastAPI's default would be a 422.
    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors with 400 Bad Request."""
        detail = _describe_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            detail,
            extra={"path": request.url.path},
        )
        return _detail(status.HTTP_400_BAD_REQUEST, detail)

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_exception_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        """Handle entity not found exceptions with 404 Not Found."""
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": exc.entity_id,
            },
        )
        return _detail(status.HTTP_404_NOT_FOUND, f"{exc.entity_type} not found")

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> Response:
        """401 for /api/*, redirect to the landing page for everything else."""
        logger.warning(
            "Authentication error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        if is_api_request(request):
            return _detail(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _detail(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message)

    # Graph failures are the user's problem only in the sense that the action failed.
    # The remote status + body go into the detail so the UI alert says what happened.
    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle Microsoft Graph failures with 500 Internal Server Error."""
        extra: dict[str, Any] = {
            "path": request.url.path,
            "error_type": type(exc).__name__,
        }
        if isinstance(exc, RemoteAPIError):
            extra["remote_status"] = exc.status
            extra["operation"] = exc.operation
        logger.error(
            "External service error at %s: %s",
            request.url.path,
            exc.message,
            extra=extra,
        )
        return _detail(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions (404 route, 405 method, 503 not ready) with logging."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "HTTP error %d at %s: %s",
            exc.status_code,
            request.url.path,
            exc.detail,
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "detail": exc.detail,
            },
        )
        return _detail(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))
