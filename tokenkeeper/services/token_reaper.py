"""Token reaper - periodically deletes expired token state."""

import asyncio
from collections.abc import Callable

from tokenkeeper.core.logging import get_logger
from tokenkeeper.services.active_tokens import ActiveTokenIndex
from tokenkeeper.services.refresh_tokens import RefreshTokenStore
from tokenkeeper.services.token_blacklist import RevocationList

logger = get_logger("token_reaper")

# How often to run cleanup (in seconds)
CLEANUP_INTERVAL_SECONDS = 3600  # 1 hour


class TokenReaperService:
    """Background service sweeping expired refresh tokens, blacklist entries
    and active-token index entries.

    Each sweep is independent: one failing does not skip the others, and
    no failure stops the schedule.
    """

    def __init__(
        self,
        refresh_tokens: RefreshTokenStore,
        blacklist: RevocationList,
        active_tokens: ActiveTokenIndex | None = None,
        *,
        interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
    ):
        self._sweeps: dict[str, Callable[[], int]] = {
            "refresh_tokens": refresh_tokens.sweep_expired,
            "blacklist": blacklist.sweep_expired,
        }
        if active_tokens is not None:
            self._sweeps["active_tokens"] = active_tokens.sweep_expired
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def start(self):
        """Start the background reaper task."""
        if self._running:
            logger.warning("Token reaper is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop(), name="token-reaper")
        logger.info("Token reaper started", extra={"interval_seconds": self._interval})

    async def stop(self):
        """Stop the background reaper task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Token reaper stopped")

    async def _cleanup_loop(self):
        """Sleep one interval, sweep, repeat."""
        while self._running:
            await asyncio.sleep(self._interval)
            self._run_cleanup()

    def _run_cleanup(self) -> dict[str, int]:
        """Execute a single pass over every store."""
        removed: dict[str, int] = {}
        for name, sweep in self._sweeps.items():
            try:
                removed[name] = sweep()
            except Exception:
                logger.exception("Error sweeping expired entries", extra={"store": name})
                continue
            if removed[name] > 0:
                logger.info(
                    "Token reaper removed expired entries",
                    extra={"store": name, "removed": removed[name]},
                )
        return removed

    async def run_cleanup_now(self) -> dict[str, int]:
        """Manually trigger a cleanup run.

        Returns:
            Entries removed per store (stores whose sweep failed are omitted)
        """
        return self._run_cleanup()
