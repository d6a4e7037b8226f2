"""Reminder types.

Public types:
- IntervalTag: Fixed set of notification thresholds used as dedup keys
- EvaluationReport: Outcome of one evaluation pass
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

ONE_DAY = timedelta(days=1)

DEFAULT_INTERVALS: tuple[int, ...] = (30, 7, 1)


class IntervalTag(StrEnum):
    """Interval tags stored on delivery records."""

    DAY_30 = "day_30"
    DAY_7 = "day_7"
    DAY_1 = "day_1"
    POST_EXPIRY = "post_expiry"

    @classmethod
    def for_days(cls, days: int) -> IntervalTag:
        """Tag for a day threshold.

        Raises:
            ValueError: If no tag exists for the threshold.
        """
        return cls(f"day_{days}")

    @classmethod
    def thresholds(cls) -> tuple[int, ...]:
        return tuple(
            int(tag.value.removeprefix("day_")) for tag in cls if tag != cls.POST_EXPIRY
        )


def days_until(expiry: datetime, now: datetime) -> int:
    """Whole days until ``expiry``, rounded up. Zero or negative once expired."""
    return math.ceil((expiry - now) / ONE_DAY)


@dataclass
class EvaluationReport:
    """Counters for one evaluation pass."""

    evaluated_at: datetime
    examined: int = 0
    delivered: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "evaluated_at": self.evaluated_at.isoformat(),
            "examined": self.examined,
            "delivered": self.delivered,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
        }
