"""Background trigger for periodic settlement runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("scheduler")

SETTLEMENT_JOB_ID = "settlement_run"


class SettlementScheduler:
    """Runs ``SettlementRunner.run`` on an interval or a crontab expression.

    Overlap protection here (``max_instances=1``, ``coalesce``) only avoids
    wasted work; runs stay correct even when several processes trigger them.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.scheduler: Optional[APScheduler] = None

    def _trigger(self):
        cron = self.ctx.config.SETTLEMENT_CRON
        if cron:
            return CronTrigger.from_crontab(cron)
        return IntervalTrigger(seconds=self.ctx.config.SETTLEMENT_INTERVAL_SECONDS)

    def start(self) -> None:
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler()
        self.scheduler.add_job(
            func=self.run_settlement,
            trigger=self._trigger(),
            id=SETTLEMENT_JOB_ID,
            name="Time deposit settlement",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info(
            "Settlement scheduler started",
            extra={
                "cron": self.ctx.config.SETTLEMENT_CRON,
                "interval_seconds": self.ctx.config.SETTLEMENT_INTERVAL_SECONDS,
            },
        )

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Settlement scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def run_settlement(self) -> None:
        """Job body; a failed run is logged and retried on the next tick."""
        try:
            self.ctx.settlement.run()
        except Exception:
            logger.error("Scheduled settlement run failed", exc_info=True)


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> SettlementScheduler:
    scheduler = SettlementScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
