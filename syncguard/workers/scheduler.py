"""APScheduler setup for the auto-disable sweep.

Uses AsyncIOScheduler with an in-memory job store. The sweep is registered via
register_jobs() called from the application lifespan.
"""

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from syncguard.config import get_settings
from syncguard.workers.jobs import run_auto_disable_sweep

scheduler = AsyncIOScheduler(
    jobstores={
        "default": MemoryJobStore(),
    },
    job_defaults={
        "coalesce": True,
        "misfire_grace_time": 300,
        "max_instances": 1,
    },
    timezone="UTC",
)


def register_jobs() -> None:
    """Register the auto-disable sweep on a fixed interval.

    max_instances=1 keeps sweeps from overlapping, so no connection is ever
    evaluated by two sweeps at once.
    """
    interval = get_settings().auto_disable_sweep_interval_seconds
    scheduler.add_job(
        run_auto_disable_sweep,
        trigger=IntervalTrigger(seconds=interval),
        id="auto_disable_sweep",
        name="Auto-disable failing connections",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info("Registered job: auto_disable_sweep (every {}s)", interval)
