"""
Application Scheduler - APScheduler Integration

Runs the email outbox dispatcher on a fixed interval inside the API
process.
"""

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={
        "coalesce": True,  # Combine multiple missed executions into one
        "max_instances": 1,  # Only one instance of each job at a time
        "misfire_grace_time": 60,
    },
)


def scheduler_listener(event):
    """Log failed jobs; successful runs are logged by the job itself."""
    if event.exception:
        logger.error(
            f"Job '{event.job_id}' failed with exception: {event.exception}",
            exc_info=event.exception,
        )


scheduler.add_listener(scheduler_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)


async def run_outbox_dispatcher():
    """Scheduled task: deliver pending outbox emails."""
    from app.db.session import AsyncSessionLocal
    from app.services.outbox_dispatcher import OutboxDispatcher

    dispatcher = OutboxDispatcher(AsyncSessionLocal)
    await dispatcher.dispatch_pending()


def start_scheduler():
    """Start the scheduler with all configured jobs."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")
        return

    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    scheduler.add_job(
        run_outbox_dispatcher,
        trigger=IntervalTrigger(seconds=settings.OUTBOX_DISPATCH_INTERVAL_SECONDS),
        id="outbox_dispatcher",
        name="Deliver pending outbox emails",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started: outbox dispatch every {settings.OUTBOX_DISPATCH_INTERVAL_SECONDS}s"
    )


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
