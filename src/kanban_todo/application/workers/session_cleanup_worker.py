"""Session Cleanup Worker - drops sessions nobody will come back for.

Hey future me - the session store only ever grows on its own. Sessions are
created on login and deleted on logout, but most people just close the tab.
This worker calls SessionStore.evict_stale() every few minutes, which drops
sessions whose access token expired longer ago than the cookie lifetime. By
then the browser has thrown the cookie away anyway.

Lifecycle:
- Created in lifecycle.py during app startup
- Runs as asyncio task via start()
- Stopped via stop() during shutdown (task is cancelled right after)
"""

import asyncio
import logging
from datetime import UTC, datetime

from kanban_todo.application.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionCleanupWorker:
    """Periodically evicts stale sessions from the in-memory store."""

    def __init__(self, session_store: SessionStore, check_interval: int = 900) -> None:
        """Initialize the cleanup worker.

        Args:
            session_store: Store to sweep
            check_interval: Seconds between sweeps (default: 900)
        """
        self._session_store = session_store
        self._check_interval = check_interval
        self._running = False
        self._stats: dict = {
            "total_evicted": 0,
            "last_run_at": None,
            "evicted_last_cycle": 0,
        }

    async def start(self) -> None:
        """Run sweeps until stop() is called."""
        self._running = True
        logger.info(f"SessionCleanupWorker started (check_interval={self._check_interval}s)")

        while self._running:
            await asyncio.sleep(self._check_interval)
            if not self._running:
                break
            try:
                await self.run_once()
            except Exception as e:
                # Log but don't crash - next cycle tries again
                logger.exception(f"SessionCleanupWorker error: {e}")

    def stop(self) -> None:
        """Signal the worker to stop."""
        self._running = False
        logger.info("SessionCleanupWorker stopping...")

    async def run_once(self) -> int:
        """One sweep. Returns the number of sessions evicted."""
        evicted = await self._session_store.evict_stale()
        self._stats["total_evicted"] += evicted
        self._stats["last_run_at"] = datetime.now(UTC)
        self._stats["evicted_last_cycle"] = evicted
        return evicted

    def get_stats(self) -> dict:
        """Worker statistics for /health."""
        return {
            **self._stats,
            "running": self._running,
            "check_interval": self._check_interval,
        }


def create_session_cleanup_worker(
    session_store: SessionStore, check_interval: int = 900
) -> SessionCleanupWorker:
    """Create a SessionCleanupWorker with the given configuration."""
    return SessionCleanupWorker(session_store=session_store, check_interval=check_interval)
