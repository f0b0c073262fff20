"""In-memory session store with transparent token refresh.

Hey future me - this is the heart of the app! Every authenticated request goes
through refresh_if_needed(). Rules that must hold:

1. The table is guarded by a reader/writer lock. Reads (get, count) run in
   parallel, writes (create, delete, refresh write-back, eviction) are exclusive.
2. NO network I/O under the lock. A refresh reads a snapshot, releases the
   lock, calls the token endpoint, then takes the write lock for the swap.
3. Session records are frozen. A refresh builds a new record and swaps it in,
   so a failed refresh leaves the old record exactly as it was.
4. Concurrent refreshes of the same session collapse into ONE token call.
   Microsoft rotates refresh tokens; two parallel refreshes with the same
   refresh token would race and the loser could invalidate the winner.

Sessions live in process memory only. Restart = everybody signs in again.
"""

import asyncio
import logging
import secrets
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from kanban_todo.domain.entities import Session, TokenResult
from kanban_todo.domain.exceptions import (
    SessionNotFoundError,
    TokenExchangeError,
    TokenRefreshException,
)
from kanban_todo.domain.ports import ITokenClient

logger = logging.getLogger(__name__)

# 32 random bytes = 256 bits, URL-safe base64 (43 chars).
SESSION_ID_BYTES = 32


def utcnow() -> datetime:
    """Timezone-aware now in UTC (the default clock)."""
    return datetime.now(UTC)


def _log_id(session_id: str) -> str:
    # Session ids are bearer secrets; only a prefix goes to the logs.
    return f"{session_id[:8]}..."


class ReadWriteLock:
    """Asyncio reader/writer lock.

    Many readers OR one writer. Writer-preferring: once a writer is waiting,
    new readers queue behind it, so a steady stream of reads cannot starve
    a refresh write-back.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer_active

    async def _notify(self) -> None:
        async with self._cond:
            self._cond.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer_active and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            # Counters change before any await, so a cancel here cannot leak them.
            self._readers -= 1
            if self._readers == 0:
                await asyncio.shield(self._notify())

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer_active and self._readers == 0
                )
            finally:
                self._writers_waiting -= 1
                # A cancelled writer must not leave readers parked behind it.
                self._cond.notify_all()
            self._writer_active = True
        try:
            yield
        finally:
            self._writer_active = False
            await asyncio.shield(self._notify())


class SessionStore:
    """Maps opaque session ids to Microsoft credentials.

    One instance per process, created by the lifespan and stored on
    app.state.session_store.
    """

    def __init__(
        self,
        token_client: ITokenClient,
        session_max_age_seconds: int = 86400,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the store.

        Args:
            token_client: Token endpoint client used for refreshes
            session_max_age_seconds: How long a session may sit with an expired
                token before evict_stale() drops it (matches the cookie max-age)
            clock: Returns the current aware UTC datetime (injectable for tests)
        """
        self._token_client = token_client
        self._max_age = timedelta(seconds=session_max_age_seconds)
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = ReadWriteLock()
        # session_id -> running refresh. Only touched on the event loop thread
        # between awaits, so it needs no lock of its own.
        self._inflight: dict[str, asyncio.Task[Session]] = {}

    async def create(self, token: TokenResult) -> str:
        """Store a new session for a freshly exchanged token.

        Returns:
            The new session id (goes into the session cookie)
        """
        now = self._clock()
        async with self._lock.write():
            session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
            while session_id in self._sessions:
                session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
            self._sessions[session_id] = Session(
                session_id=session_id,
                access_token=token.access_token,
                refresh_token=token.refresh_token,
                expires_at=now + timedelta(seconds=token.expires_in),
                created_at=now,
            )

        logger.info(
            "Session %s created (expires_in=%ds)",
            _log_id(session_id),
            token.expires_in,
            extra={"session": _log_id(session_id)},
        )
        return session_id

    async def get(self, session_id: str) -> Session | None:
        """Look up a session. No expiry check, no mutation."""
        async with self._lock.read():
            return self._sessions.get(session_id)

    # Hey future me, this is what get_access_token() calls on every request. Fast path:
    # one read-locked lookup, token still valid, done. Slow path: join (or start) the
    # single in-flight refresh for this session. shield() keeps the refresh running if
    # THIS request gets cancelled (client closed the tab) - other waiters need the result.
    async def refresh_if_needed(self, session_id: str) -> Session:
        """Return the session with a non-expired access token.

        Raises:
            SessionNotFoundError: Unknown id (or deleted during the refresh)
            TokenRefreshException: Token endpoint refused or failed; the stored
                session is unchanged
        """
        snapshot = await self.get(session_id)
        if snapshot is None:
            raise SessionNotFoundError(session_id)
        if not snapshot.is_token_expired(self._clock()):
            return snapshot

        task = self._inflight.get(session_id)
        if task is None:
            task = asyncio.create_task(self._refresh(session_id))
            self._inflight[session_id] = task
            task.add_done_callback(lambda t: self._forget_refresh(session_id, t))
        return await asyncio.shield(task)

    def _forget_refresh(self, session_id: str, task: asyncio.Task[Session]) -> None:
        if self._inflight.get(session_id) is task:
            del self._inflight[session_id]
        if not task.cancelled():
            # Waiters re-raise the error themselves; this marks it retrieved
            # for the case where every waiter was cancelled.
            task.exception()

    async def _refresh(self, session_id: str) -> Session:
        # Re-read: a refresh may have finished between the caller's snapshot and now.
        current = await self.get(session_id)
        if current is None:
            raise SessionNotFoundError(session_id)
        if not current.is_token_expired(self._clock()):
            return current

        logger.info("Refreshing access token for session %s", _log_id(session_id))
        try:
            token = await self._token_client.refresh_token(current.refresh_token)
        except TokenExchangeError as e:
            logger.warning(
                "Token refresh failed for session %s: %s",
                _log_id(session_id),
                e.message,
                extra={
                    "session": _log_id(session_id),
                    "error_code": e.error_code,
                    "http_status": e.http_status,
                },
            )
            raise TokenRefreshException(
                e.message, error_code=e.error_code, http_status=e.http_status
            ) from e

        now = self._clock()
        async with self._lock.write():
            latest = self._sessions.get(session_id)
            if latest is None:
                # Logged out while we were talking to Microsoft. Don't resurrect it.
                raise SessionNotFoundError(session_id)
            if (
                latest.access_token != current.access_token
                or latest.expires_at != current.expires_at
            ):
                return latest

            updated = replace(
                latest,
                access_token=token.access_token,
                refresh_token=token.refresh_token or latest.refresh_token,
                expires_at=now + timedelta(seconds=token.expires_in),
            )
            self._sessions[session_id] = updated

        logger.info(
            "Session %s refreshed (expires_in=%ds, rotated=%s)",
            _log_id(session_id),
            token.expires_in,
            bool(token.refresh_token),
        )
        return updated

    async def delete(self, session_id: str) -> None:
        """Remove a session. Unknown ids are fine."""
        async with self._lock.write():
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Session %s deleted", _log_id(session_id))

    async def evict_stale(self) -> int:
        """Drop sessions whose token expired more than max age ago.

        Returns:
            Number of sessions removed
        """
        now = self._clock()
        async with self._lock.write():
            stale = [
                sid for sid, s in self._sessions.items() if s.is_stale(now, self._max_age)
            ]
            for sid in stale:
                del self._sessions[sid]

        if stale:
            logger.info("Evicted %d stale session(s)", len(stale))
        return len(stale)

    async def count(self) -> int:
        """Number of stored sessions."""
        async with self._lock.read():
            return len(self._sessions)

    async def close(self) -> None:
        """Cancel refreshes still in flight (app shutdown)."""
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
