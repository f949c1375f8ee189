"""
APScheduler setup for the daily broadcast jobs.

Jobs live in memory only; the broadcast cycle re-arms itself whenever the
connection opens, so nothing needs to survive a restart.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from offhours.config.settings import get_settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global scheduler

    if scheduler is None:
        scheduler = AsyncIOScheduler(timezone=get_settings().timezone)

    return scheduler


async def start_scheduler() -> None:
    """Start the scheduler."""
    sched = get_scheduler()
    if not sched.running:
        sched.start()
        logger.info("Scheduler started")


async def stop_scheduler() -> None:
    """Stop the scheduler without waiting for running jobs."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    scheduler = None
