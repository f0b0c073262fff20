"""Application entrypoint: app factory and HTTPS server runner."""

import logging
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from kanban_todo import __version__
from kanban_todo.api.exception_handlers import register_exception_handlers
from kanban_todo.api.routers import router
from kanban_todo.config import TlsFiles, get_settings
from kanban_todo.domain.exceptions import ConfigurationError
from kanban_todo.infrastructure.lifecycle import lifespan
from kanban_todo.infrastructure.observability import (
    RequestLoggingMiddleware,
    configure_logging,
)

logger = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).parent / "static"

OPENSSL_HINT = (
    "openssl req -x509 -newkey rsa:4096 -keyout certs/server.key "
    "-out certs/server.crt -days 365 -nodes -subj '/CN=localhost'"
)


# Hey future me, create_app() does NOT touch Microsoft or the session store - that all
# happens in the lifespan. Tests call create_app(), put fakes on app.state and drive it
# through httpx.ASGITransport without ever running the lifespan.
def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Serve the app over HTTPS (console script `kanban-todo`).

    Exits non-zero when the client credentials or the TLS files are missing.
    """
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )

    try:
        settings.require_microsoft_credentials()
    except ConfigurationError as e:
        logger.error(e.message)
        sys.exit(1)

    tls = TlsFiles(cert_file=settings.api.cert_file, key_file=settings.api.key_file)
    missing = tls.missing()
    if missing:
        logger.error(
            "TLS certificate or key not found (%s). Generate a self-signed pair with:\n  %s",
            ", ".join(str(p) for p in missing),
            OPENSSL_HINT,
        )
        sys.exit(1)

    logger.info("Server starting on https://%s:%d", settings.api.host, settings.api.port)
    uvicorn.run(
        "kanban_todo.main:app",
        host=settings.api.host,
        port=settings.api.port,
        ssl_certfile=str(tls.cert_file),
        ssl_keyfile=str(tls.key_file),
        log_config=None,
    )


if __name__ == "__main__":
    run()
