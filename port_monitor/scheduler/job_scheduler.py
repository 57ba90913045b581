"""Job scheduler using APScheduler."""

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES, JobEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from port_monitor.config import settings
from port_monitor.metrics import cycles_skipped_total

logger = logging.getLogger(__name__)

MONITOR_JOB_ID = "monitor_cycle"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def _job_listener(event: JobEvent) -> None:
    """Listen for job execution events."""
    if event.code == EVENT_JOB_MAX_INSTANCES:
        logger.warning("Job %s still running, tick skipped", event.job_id)
        cycles_skipped_total.inc()
    elif event.exception:
        logger.error(
            "Job %s failed with exception: %s",
            event.job_id,
            event.exception,
        )
    else:
        logger.debug("Job %s executed successfully", event.job_id)


def create_scheduler() -> AsyncIOScheduler:
    """Create and configure the scheduler.

    Returns:
        Configured AsyncIOScheduler instance.
    """
    # Configure job defaults
    job_defaults = {
        "coalesce": True,  # Combine missed ticks into one
        "max_instances": 1,  # Cycles never overlap
        "misfire_grace_time": settings.check_interval_seconds,
    }

    return AsyncIOScheduler(
        job_defaults=job_defaults,
        timezone="UTC",
    )


def start_scheduler() -> None:
    """Start the scheduler with the periodic monitoring job."""
    global scheduler

    # Import here to avoid circular imports
    from port_monitor.monitor.service import run_monitor_cycle

    scheduler = create_scheduler()

    scheduler.add_listener(
        _job_listener,
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES,
    )

    # Periodic cycle, first run immediately on startup
    scheduler.add_job(
        run_monitor_cycle,
        trigger=IntervalTrigger(seconds=settings.check_interval_seconds),
        id=MONITOR_JOB_ID,
        name="Port Monitoring Cycle",
        next_run_time=datetime.now(timezone.utc),
        replace_existing=True,
    )
    logger.info(
        "Scheduled monitoring cycle every %d seconds",
        settings.check_interval_seconds,
    )

    scheduler.start()
    logger.info(
        "Scheduler started with %d jobs",
        len(scheduler.get_jobs()),
    )


def shutdown_scheduler() -> None:
    """Stop scheduling new cycles."""
    global scheduler

    if scheduler and scheduler.running:
        # In-flight probes finish on their own timeout
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown complete")


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the current scheduler instance.

    Returns:
        The scheduler instance or None if not started.
    """
    return scheduler


def get_jobs_info() -> list:
    """Get information about scheduled jobs.

    Returns:
        List of job information dictionaries.
    """
    if not scheduler:
        return []

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        })

    return jobs


async def trigger_manual_cycle() -> str:
    """Trigger an immediate monitoring cycle.

    Returns:
        Message describing what happened.
    """
    from port_monitor.monitor.service import run_monitor_cycle

    if scheduler:
        job = scheduler.get_job(MONITOR_JOB_ID)
        if job is not None:
            # Pull the next tick forward; max_instances still prevents overlap
            job.modify(next_run_time=datetime.now(timezone.utc))
            return "Monitoring cycle triggered"

    ran = await run_monitor_cycle()
    return "Monitoring cycle completed" if ran else "Monitoring cycle skipped"
