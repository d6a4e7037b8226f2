"""Owner-facing commands: track a name, list tracked names, check a name.

Every command returns reply text. Failures become apology text; nothing
propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from lapse.reminders.messages import (
    format_date,
    format_intervals,
    format_remaining,
    status_label,
    status_sentence,
)
from lapse.reminders.types import DEFAULT_INTERVALS, days_until
from lapse.resolver import ExpiryResolver, is_valid_name, normalize_name
from lapse.store import Conversation, RecordStore, Table, TrackedResource

logger = logging.getLogger(__name__)

TRACK_FAILED = (
    "Sorry, I encountered an error setting up your reminder. Please try again later."
)
LIST_FAILED = (
    "Sorry, I encountered an error retrieving your reminders. Please try again later."
)
CHECK_FAILED = (
    "Sorry, I encountered an error checking that name. Please try again later."
)


class ReminderCommands:
    """Command interface for owners."""

    def __init__(
        self,
        store: RecordStore,
        resolver: ExpiryResolver,
        intervals: list[int] | tuple[int, ...] = DEFAULT_INTERVALS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._intervals = tuple(intervals)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def track(self, name: str, owner: str) -> str:
        """Start tracking ``name`` for ``owner``."""
        if not name or not name.strip():
            return "Please specify a name to track (e.g., vitalik.eth)."
        if not owner:
            return "I couldn't tell who you are, so I can't set a reminder."

        name = normalize_name(name)
        if not is_valid_name(name):
            return (
                f'"{name}" doesn\'t appear to be a valid name. '
                "Please use the format: name.eth"
            )

        try:
            self._touch_conversation(owner)
            expiry = await self._resolver.resolve_expiry(name)
            if expiry is None:
                return (
                    f'I couldn\'t find an expiry date for "{name}". '
                    "It may not be registered."
                )

            now = self._clock()
            if expiry < now:
                return (
                    f'"{name}" already expired on {format_date(expiry)}. '
                    "You may still be able to renew it during the grace period."
                )

            result = self._store.insert(
                Table.REMINDERS,
                TrackedResource(domain=name, wallet_address=owner, expiry_date=expiry),
            )
            if result.error:
                logger.error(
                    "reminder_insert_failed",
                    extra={"resource.name": name, "error.message": str(result.error)},
                )
                return TRACK_FAILED
        except Exception as e:
            logger.error(
                "track_command_failed",
                extra={"resource.name": name, "error.message": str(e)},
                exc_info=True,
            )
            return TRACK_FAILED

        days = days_until(expiry, now)
        logger.info(
            "reminder_tracked",
            extra={"resource.name": name, "messaging.recipient": owner},
        )
        return (
            f'Reminder set for "{name}"!\n\n'
            f"Expires: {format_date(expiry)} ({days} days from now)\n\n"
            f"I'll send you notifications at {format_intervals(self._intervals)} "
            "intervals before expiration."
        )

    async def list_for_owner(self, owner: str) -> str:
        """List ``owner``'s tracked names with their current status."""
        try:
            self._touch_conversation(owner)
            result = (
                self._store.select(Table.REMINDERS)
                .eq("wallet_address", owner)
                .order("expiry_date")
                .resolve()
            )
        except Exception as e:
            logger.error(
                "list_command_failed",
                extra={"error.message": str(e)},
                exc_info=True,
            )
            return LIST_FAILED

        if result.error:
            logger.error(
                "reminder_select_failed", extra={"error.message": str(result.error)}
            )
            return LIST_FAILED
        if not result.rows:
            return (
                "You don't have any active reminders. "
                "Use 'remind me about name.eth' to set one up!"
            )

        now = self._clock()
        lines = ["Your reminders:", ""]
        for resource in result.rows:
            if resource.expiry_date is None:
                lines.append(f"PENDING {resource.domain}")
                lines.append("   Expiry not resolved yet")
                lines.append("")
                continue
            days = days_until(resource.expiry_date, now)
            lines.append(f"{status_label(days)} {resource.domain}")
            lines.append(f"   Expires: {format_date(resource.expiry_date)}")
            lines.append(f"   {format_remaining(days)}")
            lines.append("")
        return "\n".join(lines).strip()

    async def check_status(self, name: str, owner: str | None = None) -> str:
        """Report when ``name`` expires."""
        if not name or not name.strip():
            return "Please specify a name to check (e.g., vitalik.eth)."
        name = normalize_name(name)
        if not is_valid_name(name):
            return (
                f'"{name}" doesn\'t appear to be a valid name. '
                "Please use the format: name.eth"
            )

        try:
            if owner:
                self._touch_conversation(owner)
            expiry = await self._resolver.resolve_expiry(name)
        except Exception as e:
            logger.error(
                "check_command_failed",
                extra={"resource.name": name, "error.message": str(e)},
                exc_info=True,
            )
            return CHECK_FAILED

        if expiry is None:
            return (
                f'I couldn\'t find expiry information for "{name}". '
                "It may not be registered."
            )

        days = days_until(expiry, self._clock())
        return (
            f"Name info: {name}\n\n"
            f"Expires: {format_date(expiry)}\n"
            f"{format_remaining(days)}\n\n"
            f"{status_sentence(days)}\n\n"
            f'Want me to set a reminder? Just say "remind me about {name}"'
        )

    def _touch_conversation(self, owner: str) -> None:
        now = self._clock()
        updated = (
            self._store.update(
                Table.CONVERSATIONS, {"last_message_at": now, "is_active": True}
            )
            .eq("wallet_address", owner)
            .resolve()
        )
        if updated.error:
            logger.warning(
                "conversation_update_failed",
                extra={"error.message": str(updated.error)},
            )
            return
        if updated.count:
            return
        inserted = self._store.insert(
            Table.CONVERSATIONS,
            Conversation(
                wallet_address=owner,
                conversation_id=f"conv_{owner.lower()}",
                peer_address=owner,
                last_message_at=now,
            ),
        )
        if inserted.error:
            logger.warning(
                "conversation_insert_failed",
                extra={"error.message": str(inserted.error)},
            )
