"""Reminder subsystem: due-notice evaluation and owner commands.

Public API:
- ReminderEngine: Evaluation pass with per-interval delivery dedup
- ReminderCommands: track / list / check replies for owners
- render_reminder, status_label: Tiered text

Types:
- IntervalTag: Dedup tags stored on delivery records
- EvaluationReport: Counters for one pass
"""

from lapse.reminders.commands import ReminderCommands
from lapse.reminders.engine import ReminderEngine
from lapse.reminders.messages import render_reminder, status_label
from lapse.reminders.types import (
    DEFAULT_INTERVALS,
    EvaluationReport,
    IntervalTag,
    days_until,
)

__all__ = [
    "DEFAULT_INTERVALS",
    "EvaluationReport",
    "IntervalTag",
    "ReminderCommands",
    "ReminderEngine",
    "days_until",
    "render_reminder",
    "status_label",
]
