"""
Job scheduling module for the poll loop
"""

from typing import Dict, Any, List, Callable, Optional
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.events import (
    EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES, EVENT_SCHEDULER_SHUTDOWN
)
from loguru import logger

from diversion_notifier.config.settings import Settings


class JobScheduler:
    """Manage scheduled jobs on the running asyncio loop"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults={
                'coalesce': True,  # Collapse missed runs into one
                'max_instances': 1,
                'misfire_grace_time': 30
            },
            timezone=settings.TIMEZONE
        )
        self._scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self._scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
        self._scheduler.add_listener(self._job_overlap_listener, EVENT_JOB_MAX_INSTANCES)
        self._scheduler.add_listener(self._shutdown_listener, EVENT_SCHEDULER_SHUTDOWN)
        self._stopping = False

    def _job_error_listener(self, event):
        logger.error(f"Job {event.job_id} crashed with exception: {event.exception}")

    def _job_executed_listener(self, event):
        logger.debug(f"Job {event.job_id} executed, returned {event.retval!r}")

    def _job_overlap_listener(self, event):
        logger.warning(f"Job {event.job_id} is still running, skipped scheduled run")

    def _shutdown_listener(self, event):
        self._stopping = False
        logger.info("Job scheduler stopped")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self):
        """Start the scheduler. Must be called from inside the event loop."""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Job scheduler started")
        else:
            logger.info("Job scheduler is already running")

    def stop(self):
        """
        Request scheduler shutdown without waiting for running jobs.

        On the asyncio scheduler the shutdown may complete on a later loop
        iteration; "Job scheduler stopped" is logged once it has.
        """
        if self._scheduler.running and not self._stopping:
            self._stopping = True
            logger.info("Job scheduler shutting down")
            self._scheduler.shutdown(wait=False)

    def add_job(self, func: Callable, interval_minutes: int,
                job_id: Optional[str] = None, run_immediately: bool = False,
                **kwargs) -> str:
        """
        Add an interval job to the scheduler

        Args:
            func: Function or coroutine function to execute
            interval_minutes: Run every N minutes
            job_id: Unique job identifier
            run_immediately: Fire once right away instead of waiting a full interval
            **kwargs: Additional arguments for APScheduler's add_job

        Returns:
            str: Job ID
        """
        if interval_minutes < 1:
            raise ValueError("interval_minutes must be at least 1")

        if not job_id:
            job_id = f"{func.__name__}_{datetime.now(timezone.utc).timestamp()}"

        trigger = IntervalTrigger(minutes=interval_minutes)
        if run_immediately:
            kwargs['next_run_time'] = datetime.now(timezone.utc)

        job = self._scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            replace_existing=True,
            **kwargs
        )

        logger.info(f"Added job {job_id} with trigger {trigger}")
        return job.id

    def remove_job(self, job_id: str) -> bool:
        """Remove a job from the scheduler"""
        try:
            self._scheduler.remove_job(job_id)
            logger.info(f"Removed job {job_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to remove job {job_id}: {e}")
            return False

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Get list of all scheduled jobs"""
        jobs = []

        for job in self._scheduler.get_jobs():
            next_run = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'trigger': str(job.trigger),
                'next_run': next_run.isoformat() if next_run else None,
            })

        return jobs
