"""
Background Job Scheduler

Runs the feed scan on a fixed tick using APScheduler. Each tick scans only
the sources whose update interval has elapsed. The job is never re-entrant:
a tick that fires while a scan is still running is coalesced away.
"""

from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import Settings, get_settings
from ..core.logging import get_logger

logger = get_logger(__name__)

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


class SchedulerService:
    """
    Manages background job scheduling.

    Jobs:
    1. Feed Scan (every SCHEDULER_TICK_SECONDS, default 60)
       - Finds due feed sources
       - Ingests new episodes from their pages
    """

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        settings: Optional[Settings] = None,
    ):
        self.scheduler = scheduler or get_scheduler()
        self.settings = settings or get_settings()
        self._scan_job_id = "feed_scan"

    async def _run_scan(self, force: bool = False):
        """Execute one scan; failures are logged and never reach APScheduler."""
        from ..jobs.ingestion import run_ingestion_job

        logger.info("scheduler_job_started", job="feed_scan", force=force)
        try:
            report = await run_ingestion_job(force=force)
            logger.info(
                "scheduler_job_completed",
                job="feed_scan",
                scanned=report.scanned,
                added=report.added,
            )
        except Exception as e:
            logger.error("scheduler_job_failed", job="feed_scan", error=str(e))

    async def _run_single(self, source_id: int):
        from ..jobs.ingestion import run_single_source_job

        logger.info("scheduler_job_started", job="feed_refresh", source_id=source_id)
        try:
            report = await run_single_source_job(source_id)
            logger.info(
                "scheduler_job_completed",
                job="feed_refresh",
                source_id=source_id,
                added=report.added,
            )
        except Exception as e:
            logger.error("scheduler_job_failed", job="feed_refresh", source_id=source_id, error=str(e))

    def setup_jobs(self):
        """Configure the periodic scan job."""
        self.scheduler.add_job(
            self._run_scan,
            trigger=IntervalTrigger(seconds=self.settings.scheduler_tick_seconds),
            id=self._scan_job_id,
            name="Feed Scan",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            "scheduler_jobs_configured",
            scan_interval_seconds=self.settings.scheduler_tick_seconds,
        )

    def start(self):
        """Start the scheduler."""
        if not self.scheduler.running:
            self.setup_jobs()
            self.scheduler.start()
            logger.info("scheduler_started")

    def stop(self):
        """Stop the scheduler; a scan in progress is allowed to finish."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "pending": job.pending,
            })

        return {
            "running": self.scheduler.running,
            "jobs": jobs,
            "current_time": datetime.utcnow().isoformat(),
        }

    async def trigger_all_now(self, force: bool = True):
        """Manually trigger a scan."""
        logger.info("manual_trigger", job="feed_scan", force=force)
        await self._run_scan(force=force)

    async def trigger_source_now(self, source_id: int):
        """Manually trigger a refresh of one source."""
        logger.info("manual_trigger", job="feed_refresh", source_id=source_id)
        await self._run_single(source_id)


# Singleton instance
_scheduler_service: Optional[SchedulerService] = None


def get_scheduler_service() -> SchedulerService:
    """Get singleton SchedulerService instance."""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service
