from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from weekly_tracker.config import Settings
from weekly_tracker.utils.logging_config import cleanup_old_logs
import logging

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Background housekeeping jobs."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.scheduler = AsyncIOScheduler()

    def start(self):
        # Daily at 2 AM: drop log files past the retention window
        self.scheduler.add_job(
            self.cleanup_logs,
            CronTrigger(hour=2, minute=0),
            id='log_cleanup',
            replace_existing=True
        )

        self.scheduler.start()
        logger.info(f"Scheduler started - log cleanup daily at 2 AM (keeping {self.settings.log_retention_days} days)")

    def stop(self):
        if not self.scheduler.running:
            return
        self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def cleanup_logs(self):
        removed = cleanup_old_logs(self.settings.log_dir, self.settings.log_retention_days)
        logger.info(f"Log cleanup removed {len(removed)} files")
        return removed
