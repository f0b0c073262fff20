"""Shared HTTP client for the identity platform and Graph.

Hey future me - ONE httpx.AsyncClient for the whole process. The token endpoint
(login.microsoftonline.com) and Graph (graph.microsoft.com) are two hosts, and
keep-alive makes the second call on each noticeably faster. Built lazily by the
first caller, closed by the lifespan (see lifecycle.py).

Usage:
    from kanban_todo.infrastructure.integrations.http_pool import HttpClientPool

    client = await HttpClientPool.get_client(settings.http)
"""

import asyncio
import logging
from typing import ClassVar

import httpx

from kanban_todo.config.settings import HttpSettings

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Process-wide shared httpx.AsyncClient."""

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    # Every outbound call is bounded. Graph normally answers well under a second.
    DEFAULT_TIMEOUT: ClassVar[float] = 15.0

    @classmethod
    def _guard(cls) -> asyncio.Lock:
        # Created on first use so it binds to the running loop.
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    def _build(cls, http: HttpSettings) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(http.timeout_seconds),
            limits=httpx.Limits(
                max_connections=http.max_connections,
                max_keepalive_connections=http.max_keepalive,
            ),
            # Neither Microsoft endpoint should ever redirect an API call.
            follow_redirects=False,
        )

    @classmethod
    async def get_client(cls, http: HttpSettings | None = None) -> httpx.AsyncClient:
        """Return the shared client, building it on the first call.

        Args:
            http: Timeout and connection limits; only the first call's values
                count, later calls get the existing client as is

        Returns:
            Shared httpx.AsyncClient
        """
        async with cls._guard():
            if cls._client is None:
                http = http or HttpSettings(timeout_seconds=cls.DEFAULT_TIMEOUT)
                cls._client = cls._build(http)
                logger.info(
                    "Shared HTTP client ready (timeout=%.1fs, max_connections=%d, keepalive=%d)",
                    http.timeout_seconds,
                    http.max_connections,
                    http.max_keepalive,
                )
            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client. The next get_client() builds a new one."""
        async with cls._guard():
            client, cls._client = cls._client, None
        if client is not None:
            await client.aclose()
            logger.info("Shared HTTP client closed")

    @classmethod
    def is_initialized(cls) -> bool:
        """True while a shared client exists."""
        return cls._client is not None
