"""Background task that removes expired artifacts."""

from __future__ import annotations

import asyncio

from payment_advice.storage.lifecycle import ArtifactStore
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)


class ArtifactReaper:
    """Periodically sweeps an :class:`ArtifactStore`.

    One task serves every artifact. Failures are logged and the loop keeps
    going; cleanup never reaches a caller.
    """

    def __init__(self, store: ArtifactStore, interval_seconds: float = 30.0) -> None:
        """Initialize the reaper.

        Args:
            store: Store to sweep
            interval_seconds: Pause between sweeps
        """
        self.store = store
        self.interval_seconds = interval_seconds

        self._task: asyncio.Task[None] | None = None
        self._sweeps = 0
        self._removed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        logger.info(
            "reaper_starting",
            sink=self.store.sink.name,
            interval_seconds=self.interval_seconds,
        )
        self._task = asyncio.create_task(self._sweep_loop(), name="artifact-reaper")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("reaper_stopped", sweeps=self._sweeps, removed=self._removed)

    async def sweep_once(self) -> int:
        """Run a single sweep, swallowing any error.

        Returns:
            Number of artifacts removed (0 on failure)
        """
        try:
            removed = await self.store.sweep()
        except Exception as e:
            logger.error("reaper_sweep_error", sink=self.store.sink.name, error=str(e))
            return 0

        self._sweeps += 1
        self._removed += removed
        return removed

    async def _sweep_loop(self) -> None:
        """Sweep immediately, then every ``interval_seconds``."""
        while True:
            await self.sweep_once()
            await asyncio.sleep(self.interval_seconds)
