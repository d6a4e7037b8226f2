"""Job scheduler: polls registered jobs and runs the ones that are due.

The scheduler owns the polling loop and the job registry. Each job runs at
most once at a time: the automatic loop and manual triggers share the same
running guard.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from lapse.scheduling.types import (
    JobCallback,
    JobNotFoundError,
    NextRunCalculator,
    ScheduledJob,
    cron_next_run,
    validate_cron,
)

logger = logging.getLogger(__name__)

# Heartbeat every 60 polls (~1 min at the default 1s interval)
HEARTBEAT_INTERVAL = 60

EVERY_MINUTE = "* * * * *"


class Scheduler:
    """Runs named cron jobs.

    Example:
        scheduler = Scheduler(poll_interval=1.0)
        scheduler.schedule("daily-reminder-check", "0 9 * * *", engine.check_reminders)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        timezone: str = "UTC",
        next_run: NextRunCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._poll_interval = poll_interval
        self._timezone = timezone
        self._next_run = next_run or cron_next_run
        self._clock = clock or (lambda: datetime.now(UTC))
        self._jobs: dict[str, ScheduledJob] = {}
        self._active = False
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._poll_count = 0

    @property
    def is_active(self) -> bool:
        return self._active

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def schedule(
        self,
        name: str,
        cron: str,
        callback: JobCallback,
        timezone: str | None = None,
    ) -> ScheduledJob:
        """Register a job, replacing any job with the same name.

        Raises:
            ValueError: If the cron expression is invalid.
        """
        validate_cron(cron)
        previous = self._jobs.get(name)
        if previous is not None and previous.is_running:
            logger.warning(
                "scheduled_job_replaced_while_running", extra={"job.name": name}
            )

        job = ScheduledJob(
            name=name,
            schedule=cron,
            callback=callback,
            timezone=timezone or self._timezone,
        )
        job.next_run = self._compute_next_run(job)
        self._jobs[name] = job
        logger.info(
            "scheduled_job_registered",
            extra={
                "job.name": name,
                "job.schedule": cron,
                "job.next_run": job.next_run.isoformat() if job.next_run else None,
            },
        )
        return job

    def schedule_immediate(self, name: str, callback: JobCallback) -> ScheduledJob:
        """Register an every-minute job and run it once right away.

        Must be called with a running event loop.
        """
        job = self.schedule(name, EVERY_MINUTE, callback)
        self._spawn(job)
        return job

    def remove_job(self, name: str) -> bool:
        """Deregister a job.

        A running job is not interrupted; it is flagged and dropped when the
        current run completes.
        """
        job = self._jobs.get(name)
        if job is None:
            return False
        if job.is_running:
            job.remove_pending = True
            logger.info("scheduled_job_removal_deferred", extra={"job.name": name})
            return True
        del self._jobs[name]
        logger.info("scheduled_job_removed", extra={"job.name": name})
        return True

    def get_job(self, name: str) -> ScheduledJob | None:
        return self._jobs.get(name)

    def get_jobs(self) -> list[ScheduledJob]:
        return list(self._jobs.values())

    def get_stats(self) -> dict[str, Any]:
        jobs = self.get_jobs()
        return {
            "total_jobs": len(jobs),
            "running_jobs": sum(1 for j in jobs if j.is_running),
            "total_runs": sum(j.run_count for j in jobs),
            "is_active": self._active,
        }

    async def reset(self) -> None:
        await self.stop()
        self._jobs.clear()
        logger.info("scheduler_reset")

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._active:
            logger.debug("scheduler_already_active")
            return
        self._active = True
        logger.info(
            "scheduler_started",
            extra={"scheduler.jobs": len(self._jobs), "poll.interval": self._poll_interval},
        )
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop polling and wait for in-flight runs to finish."""
        if not self._active:
            return
        self._active = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("scheduler_stopped")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def trigger_job(self, name: str) -> bool:
        """Run a job now, out of band.

        Returns:
            True if the job ran, False if it was skipped because a run is
            already in flight.

        Raises:
            JobNotFoundError: If no job is registered under ``name``.
        """
        job = self._jobs.get(name)
        if job is None:
            raise JobNotFoundError(name)
        if job.is_running:
            logger.info("scheduled_job_already_running", extra={"job.name": name})
            return False
        return await self._execute(job)

    async def trigger_all_jobs(self) -> int:
        """Run every idle job concurrently. Returns how many ran."""
        idle = [job for job in self._jobs.values() if not job.is_running]
        logger.info("scheduler_trigger_all", extra={"scheduler.jobs": len(idle)})
        results = await asyncio.gather(*(self._execute(job) for job in idle))
        return sum(1 for ran in results if ran)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while self._active:
            try:
                self._poll_count += 1
                if self._poll_count % HEARTBEAT_INTERVAL == 0:
                    logger.info(
                        "scheduler_heartbeat",
                        extra={
                            "poll.count": self._poll_count,
                            "scheduler.jobs": len(self._jobs),
                        },
                    )
                self._check_jobs()
            except Exception as e:
                logger.error("scheduler_check_error", extra={"error.message": str(e)})
            await asyncio.sleep(self._poll_interval)

    def _check_jobs(self) -> None:
        now = self._clock()
        for job in list(self._jobs.values()):
            if job.is_due(now):
                self._spawn(job)

    def _spawn(self, job: ScheduledJob) -> None:
        task = asyncio.create_task(self._execute(job))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _execute(self, job: ScheduledJob) -> bool:
        # Checked and set without awaiting in between so that overlapping
        # triggers observe the flag.
        if job.is_running:
            return False
        job.is_running = True
        job.last_run = self._clock()
        job.run_count += 1

        logger.info(
            "scheduled_job_executing",
            extra={"job.name": job.name, "job.run": job.run_count},
        )
        try:
            result = job.callback()
            if inspect.isawaitable(result):
                await result
            job.last_error = None
            logger.info("scheduled_job_completed", extra={"job.name": job.name})
        except Exception as e:
            job.last_error = str(e)
            logger.error(
                "scheduled_job_failed",
                extra={"job.name": job.name, "error.message": str(e)},
                exc_info=True,
            )
        finally:
            job.is_running = False
            job.next_run = self._compute_next_run(job)
            if job.remove_pending and self._jobs.get(job.name) is job:
                del self._jobs[job.name]
                logger.info("scheduled_job_removed", extra={"job.name": job.name})
        return True

    def _compute_next_run(self, job: ScheduledJob) -> datetime | None:
        try:
            return self._next_run(job.schedule, self._clock(), job.timezone)
        except Exception as e:
            logger.warning(
                "cron_next_run_failed",
                extra={
                    "job.name": job.name,
                    "job.schedule": job.schedule,
                    "error.message": str(e),
                },
            )
            return None
