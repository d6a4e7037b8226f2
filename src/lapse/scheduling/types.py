"""Scheduler types.

Public types:
- ScheduledJob: A named recurring job and its run state
- JobCallback: Async (or sync) zero-argument callable run by a job
- NextRunCalculator: Pluggable "next instant >= now" for a cron expression
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

logger = logging.getLogger(__name__)

JobCallback = Callable[[], Awaitable[Any] | Any]

# (cron expression, base time in UTC, IANA timezone) -> next run in UTC
NextRunCalculator = Callable[[str, datetime, str], datetime]


class JobNotFoundError(KeyError):
    """Raised when a manual trigger names a job that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Job '{self.name}' not found"


def validate_cron(expression: str) -> None:
    """Raise ValueError if ``expression`` is not a valid cron expression."""
    if not croniter.is_valid(expression):
        raise ValueError(f"Invalid cron expression: {expression!r}")


def cron_next_run(expression: str, base: datetime, timezone: str = "UTC") -> datetime:
    """Next fire time strictly after ``base`` for a cron expression.

    The expression is evaluated in the job's local timezone so that
    "0 9 * * *" means 9 AM local, then converted back to UTC.
    """
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("invalid_timezone", extra={"schedule.timezone": timezone})
        tz = ZoneInfo("UTC")

    next_local = croniter(expression, base.astimezone(tz)).get_next(datetime)
    return next_local.astimezone(UTC)


@dataclass
class ScheduledJob:
    """A named recurring task.

    State machine: idle -> running -> idle. A job removed while running is
    flagged ``remove_pending`` and dropped once the run completes.
    """

    name: str
    schedule: str
    callback: JobCallback
    timezone: str = "UTC"
    run_count: int = 0
    is_running: bool = False
    last_run: datetime | None = None
    next_run: datetime | None = None
    last_error: str | None = None
    remove_pending: bool = False

    def is_due(self, now: datetime) -> bool:
        return (
            not self.is_running
            and self.next_run is not None
            and now >= self.next_run
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "schedule": self.schedule,
            "timezone": self.timezone,
            "run_count": self.run_count,
            "is_running": self.is_running,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_error": self.last_error,
        }
