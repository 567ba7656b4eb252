"""Scheduled expiry sweep over the stored inventory."""

from __future__ import annotations

import logging
from datetime import date

from .models import Urgency

logger = logging.getLogger(__name__)


class ExpirySweepScheduler:
    """Runs a periodic expiry and low-stock report over the inventory.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config) -> None:
        """Initialize scheduler with a PantryConfig.

        Args:
            config: PantryConfig instance.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'pantry-scanner[scheduler]'"
            )

        self._config = config
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        if not self._config.scheduler.enabled:
            logger.info("Expiry sweep disabled in config")
            return

        expr = self._config.scheduler.expiry_schedule
        self._scheduler.add_job(
            self._job_expiry_sweep,
            trigger=self._parse_cron(expr),
            id="expiry_sweep",
            name="Expiry sweep",
            replace_existing=True,
        )
        logger.info("Registered expiry sweep: %s", expr)

    def start(self) -> None:
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": _next_run(job),
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def _job_expiry_sweep(self) -> dict[str, int]:
        """Log expired, expiring-soon and low-stock items."""
        logger.info("Running expiry sweep...")
        counts = {"expired": 0, "soon": 0, "low_stock": 0}

        try:
            from .db import SQLiteInventoryStore
            from .inventory import InventoryModel

            store = SQLiteInventoryStore(self._config.database.path)
            try:
                model = InventoryModel(
                    store, soon_days=self._config.inventory.soon_days
                )
                model.load()
                today = date.today()
                for summary in model.snapshot(today):
                    if summary.urgency is Urgency.EXPIRED:
                        counts["expired"] += 1
                        logger.warning(
                            "Expired: %s (%s)",
                            summary.name,
                            summary.soonest_expiration,
                        )
                    elif summary.urgency is Urgency.SOON:
                        counts["soon"] += 1
                        logger.info(
                            "Expiring soon: %s (%s)",
                            summary.name,
                            summary.soonest_expiration,
                        )
                    if summary.low_stock:
                        counts["low_stock"] += 1
                        logger.info(
                            "Low stock: %s (%d/%d)",
                            summary.name,
                            summary.quantity,
                            summary.par_level,
                        )
            finally:
                store.close()
        except Exception:
            logger.exception("Expiry sweep failed")

        return counts


def _next_run(job) -> str | None:
    # Jobs added before start() are pending and have no next_run_time yet.
    next_run = getattr(job, "next_run_time", None)
    return str(next_run) if next_run else None
