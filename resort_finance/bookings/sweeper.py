"""
Lock Expiry Sweeper

Runs BookingStore.sweep_expired_locks() on a fixed cadence as an asyncio
task. This is the only mutation nobody clicked for, so it must be
stoppable: stop() cancels the task and waits for it, after which the store
is never touched again by the sweeper.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from resort_finance.bookings.store import BookingStore
from resort_finance.models.booking import Booking


logger = structlog.get_logger(__name__)

ExpiredCallback = Callable[[list[Booking]], Awaitable[None]]


class LockSweeper:
    """Periodic lock-expiry sweep owned by the booking store's lifecycle."""

    def __init__(
        self,
        store: BookingStore,
        interval_seconds: float = 10.0,
        on_expired: Optional[ExpiredCallback] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive")
        self._store = store
        self._interval = interval_seconds
        self._on_expired = on_expired
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sweeping on the running event loop. Starting twice is a no-op."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="booking-lock-sweeper"
        )
        logger.info("lock_sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the sweep task and wait until it has finished."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("lock_sweeper_stopped")

    async def sweep_once(self) -> list[Booking]:
        """One sweep pass plus the expiry callback."""
        removed = self._store.sweep_expired_locks()
        if removed and self._on_expired is not None:
            await self._on_expired(removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                # Keep sweeping; the next tick retries from the current snapshot
                logger.exception("lock_sweep_failed")
