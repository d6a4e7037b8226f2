"""Reminder and status text.

Tier boundaries matter more than wording: they decide which notice an owner
gets at a given number of days remaining.
"""

from datetime import datetime


def render_reminder(name: str, days_remaining: int) -> str:
    """Notification text for ``name`` with ``days_remaining`` days left."""
    if days_remaining <= 0:
        return (
            f'URGENT: "{name}" has expired! You may still be able to renew it '
            "during the grace period. Act quickly to avoid losing it."
        )
    if days_remaining == 1:
        return (
            f'FINAL NOTICE: "{name}" expires TOMORROW! Renew it now to avoid '
            "losing it."
        )
    if days_remaining <= 7:
        return (
            f'URGENT: "{name}" expires in {days_remaining} days! Please renew '
            "it soon."
        )
    if days_remaining <= 30:
        return (
            f'Reminder: "{name}" expires in {days_remaining} days. Consider '
            "renewing it so you don't lose it."
        )
    return (
        f'Reminder: "{name}" expires in {days_remaining} days. You have plenty '
        "of time, but it's good to keep track!"
    )


def status_label(days_remaining: int) -> str:
    """Short status used in listings."""
    if days_remaining <= 0:
        return "EXPIRED"
    if days_remaining <= 1:
        return "EXPIRES TODAY"
    if days_remaining <= 7:
        return "EXPIRES SOON"
    if days_remaining <= 30:
        return "EXPIRES THIS MONTH"
    return "ACTIVE"


def status_sentence(days_remaining: int) -> str:
    if days_remaining <= 0:
        return "This name has expired!"
    if days_remaining <= 1:
        return "This name expires today!"
    if days_remaining <= 7:
        return "This name expires very soon!"
    if days_remaining <= 30:
        return "This name expires within a month."
    return "This name is active."


def format_remaining(days_remaining: int) -> str:
    if days_remaining <= 0:
        return "Expired"
    if days_remaining == 1:
        return "1 day remaining"
    return f"{days_remaining} days remaining"


def format_date(value: datetime) -> str:
    return value.strftime("%a %b %d %Y")


def format_intervals(intervals: list[int] | tuple[int, ...]) -> str:
    values = [str(i) for i in sorted(intervals, reverse=True)]
    if len(values) == 1:
        return f"{values[0]} day"
    if len(values) == 2:
        return f"{values[0]} and {values[1]} day"
    return f"{', '.join(values[:-1])}, and {values[-1]} day"
