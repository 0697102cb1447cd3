"""Background polling that turns store changes into live snapshots."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger("spendwatch.poller")


class Refreshable(Protocol):
    """A source that can re-query and push changed snapshots."""

    def refresh(self) -> int:  # pragma: no cover - interface
        ...


class SnapshotPoller:
    """Runs ``source.refresh`` on an APScheduler interval job."""

    JOB_ID = "snapshot_refresh"

    def __init__(self, source: Refreshable, *, interval_seconds: float = 2.0):
        """Initialize the poller.

        Args:
            source: Store whose subscribers should be refreshed
            interval_seconds: Delay between refreshes
        """
        self.source = source
        self.interval_seconds = interval_seconds
        self.scheduler = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        from apscheduler.schedulers.background import BackgroundScheduler
        from apscheduler.triggers.interval import IntervalTrigger

        if self.scheduler is not None:
            logger.warning("Poller already running")
            return

        self.scheduler = BackgroundScheduler()
        # max_instances=1 keeps refreshes from overlapping on slow queries
        self.scheduler.add_job(
            func=self._run_refresh,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Snapshot refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Polling every {self.interval_seconds}s")

    def stop(self) -> None:
        """Stop the scheduler, waiting for a running refresh to finish."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Poller stopped")

    def _run_refresh(self) -> None:
        try:
            notified = self.source.refresh()
        except Exception as exc:
            logger.error(f"Snapshot refresh failed: {exc}", exc_info=True)
            return
        if notified:
            logger.debug(f"Refreshed {notified} subscriber(s)")
