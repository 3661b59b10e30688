"""
Background trigger for the recurring sweep.

The sweep itself lives in RecurrenceService and is safe to run
at any time; this module only decides when: once at startup to
catch up after downtime, daily at the configured time, and
hourly as a safety net in case the daily run was missed.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from finance_tracker.config import get_settings
from finance_tracker.models.base import SessionLocal
from finance_tracker.services.recurrence_service import RecurrenceService, SweepResult

logger = logging.getLogger(__name__)


def run_sweep(source: str = "manual", session_factory=SessionLocal) -> SweepResult:
    """Run one sweep over every user's rules."""
    logger.info("scheduler_run: source=%s", source)
    db = session_factory()
    try:
        result = RecurrenceService(db).process_due_rules()
    finally:
        db.close()
    logger.info(
        "scheduler_run: source=%s processed=%s occurrences=%s failed=%s",
        source, result.processed, result.occurrences, len(result.failures),
    )
    return result


class SchedulerManager:

    def __init__(self, session_factory=SessionLocal) -> None:
        self.settings = get_settings()
        self.session_factory = session_factory
        self.scheduler = BackgroundScheduler(timezone=self.settings.TIMEZONE)

    def start(self) -> None:
        # No trigger: runs once on a worker thread as soon as the
        # scheduler starts, not on the caller's (event loop) thread
        self.scheduler.add_job(
            run_sweep,
            args=["startup", self.session_factory],
            id="recurring_startup",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self.scheduler.add_job(
            run_sweep,
            CronTrigger(
                hour=self.settings.RECURRING_SWEEP_HOUR,
                minute=self.settings.RECURRING_SWEEP_MINUTE,
            ),
            args=["daily", self.session_factory],
            id="recurring_daily",
            replace_existing=True,
            misfire_grace_time=3600,
        )
        self.scheduler.add_job(
            run_sweep,
            IntervalTrigger(hours=1),
            args=["hourly_safety_net", self.session_factory],
            id="recurring_hourly_safety",
            replace_existing=True,
            misfire_grace_time=300,
        )

        self.scheduler.start()
        logger.info(
            "Scheduler started: daily sweep at %02d:%02d %s, hourly safety net",
            self.settings.RECURRING_SWEEP_HOUR,
            self.settings.RECURRING_SWEEP_MINUTE,
            self.settings.TIMEZONE,
        )

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
