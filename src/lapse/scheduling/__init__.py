"""Scheduling subsystem: named recurring jobs.

Public API:
- Scheduler: Polling loop, manual triggers, per-job running guard

Types:
- ScheduledJob: A registered job and its run state
- JobCallback: Callable run by a job
- JobNotFoundError: Manual trigger of an unknown job
"""

from lapse.scheduling.scheduler import Scheduler
from lapse.scheduling.types import (
    JobCallback,
    JobNotFoundError,
    NextRunCalculator,
    ScheduledJob,
    cron_next_run,
    validate_cron,
)

__all__ = [
    "JobCallback",
    "JobNotFoundError",
    "NextRunCalculator",
    "ScheduledJob",
    "Scheduler",
    "cron_next_run",
    "validate_cron",
]
