"""Reminder engine: decides which notices are due and sends each once.

An evaluation pass re-reads every tracked resource from the store, works out
which interval notices are due at ``now`` and, for each one without a
delivery record, sends it through the gateway. A delivery record is written
only after a successful send, so failed sends are retried next pass.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from lapse.delivery.base import DeliveryGateway, DeliveryReceipt
from lapse.reminders.messages import render_reminder
from lapse.reminders.types import (
    DEFAULT_INTERVALS,
    EvaluationReport,
    IntervalTag,
    days_until,
)
from lapse.store import DeliveryRecord, RecordStore, Table, TrackedResource

logger = logging.getLogger(__name__)

DEDUP_KEY = ("reminder_id", "reminder_type")


class ReminderEngine:
    """Evaluates tracked resources and delivers due reminders."""

    def __init__(
        self,
        store: RecordStore,
        gateway: DeliveryGateway,
        intervals: Iterable[int] = DEFAULT_INTERVALS,
        post_expiry_tag: IntervalTag = IntervalTag.DAY_1,
        delivery_timeout: float = 30.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Record store holding tracked resources and delivery records.
            gateway: Transport used to send notices.
            intervals: Day thresholds that trigger a notice on exact match.
            post_expiry_tag: Dedup tag recorded for the expired notice. The
                default shares the ``day_1`` bucket, so an owner who already got
                the final notice is not told again once the name expires.
            delivery_timeout: Seconds allowed per send before it counts as failed.
            clock: Source of "now" when ``evaluate`` is called without one.
        """
        self._store = store
        self._gateway = gateway
        self._thresholds: dict[int, IntervalTag] = {
            days: IntervalTag.for_days(days) for days in intervals
        }
        self._post_expiry_tag = IntervalTag(post_expiry_tag)
        self._delivery_timeout = delivery_timeout
        self._clock = clock or (lambda: datetime.now(UTC))
        self._locks: dict[tuple[int, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[int, str], int] = {}
        self._passes = 0
        self._total_delivered = 0
        self._last_report: EvaluationReport | None = None

    @property
    def intervals(self) -> list[int]:
        return sorted(self._thresholds, reverse=True)

    @property
    def post_expiry_tag(self) -> IntervalTag:
        return self._post_expiry_tag

    def due_tags(self, days_remaining: int) -> list[IntervalTag]:
        """Dedup tags due at ``days_remaining``."""
        due: list[IntervalTag] = []
        tag = self._thresholds.get(days_remaining)
        if tag is not None:
            due.append(tag)
        if days_remaining <= 0:
            due.append(self._post_expiry_tag)
        return due

    async def check_reminders(self) -> int:
        """Run one evaluation pass now. Returns the number of notices delivered."""
        report = await self.evaluate()
        return report.delivered

    async def evaluate(self, now: datetime | None = None) -> EvaluationReport:
        """Evaluate every tracked resource at ``now``.

        Never raises for a single bad resource: its error is logged, counted,
        and the pass moves on.
        """
        now = now or self._clock()
        report = EvaluationReport(evaluated_at=now)
        self._passes += 1

        result = self._store.select(Table.REMINDERS).resolve()
        if result.error:
            logger.error(
                "reminder_select_failed", extra={"error.message": str(result.error)}
            )
            report.errors.append(str(result.error))
            self._last_report = report
            return report

        for resource in result.rows:
            report.examined += 1
            try:
                await self._evaluate_resource(resource, now, report)
            except Exception as e:
                report.failed += 1
                report.errors.append(f"{resource.domain}: {e}")
                logger.error(
                    "reminder_evaluation_failed",
                    extra={
                        "reminder.id": resource.id,
                        "resource.name": resource.domain,
                        "error.message": str(e),
                    },
                    exc_info=True,
                )

        self._total_delivered += report.delivered
        self._last_report = report
        logger.info(
            "reminders_processed",
            extra={
                "reminders.examined": report.examined,
                "reminders.delivered": report.delivered,
                "reminders.skipped": report.skipped,
                "reminders.failed": report.failed,
            },
        )
        return report

    def get_stats(self) -> dict[str, Any]:
        return {
            "intervals": self.intervals,
            "post_expiry_tag": self._post_expiry_tag.value,
            "passes": self._passes,
            "total_delivered": self._total_delivered,
            "active_locks": len(self._locks),
            "last_report": self._last_report.to_dict() if self._last_report else None,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _evaluate_resource(
        self, resource: TrackedResource, now: datetime, report: EvaluationReport
    ) -> None:
        if resource.expiry_date is None:
            logger.debug(
                "reminder_expiry_unresolved", extra={"reminder.id": resource.id}
            )
            return

        days_remaining = days_until(resource.expiry_date, now)
        for tag in self.due_tags(days_remaining):
            await self._deliver(resource, tag, days_remaining, report)

    async def _deliver(
        self,
        resource: TrackedResource,
        tag: IntervalTag,
        days_remaining: int,
        report: EvaluationReport,
    ) -> None:
        if resource.id is None:
            raise ValueError(f"tracked resource {resource.domain!r} has no id")
        async with self._delivery_lock((resource.id, tag.value)):
            existing = (
                self._store.select(Table.SENT_REMINDERS)
                .eq("reminder_id", resource.id)
                .eq("reminder_type", tag.value)
                .limit(1)
                .resolve()
            )
            if existing.error:
                raise RuntimeError(f"delivery lookup failed: {existing.error}")
            if existing.rows:
                report.skipped += 1
                logger.debug(
                    "reminder_already_sent",
                    extra={"resource.name": resource.domain, "reminder.type": tag.value},
                )
                return

            text = render_reminder(resource.domain, days_remaining)
            receipt = await self._send(resource.wallet_address, text)
            if not receipt.success:
                report.failed += 1
                logger.warning(
                    "reminder_send_failed",
                    extra={
                        "resource.name": resource.domain,
                        "reminder.type": tag.value,
                        "error.message": receipt.error,
                    },
                )
                return

            record = DeliveryRecord(
                reminder_id=resource.id,
                reminder_type=tag.value,
                sent_at=self._clock(),
                message_id=receipt.message_id,
                wallet_address=resource.wallet_address,
                domain=resource.domain,
            )
            inserted = self._store.insert_unique(
                Table.SENT_REMINDERS, record, key=DEDUP_KEY
            )
            report.delivered += 1
            if inserted.error:
                # Sent but unrecorded: the next pass may send it again
                logger.error(
                    "reminder_record_failed",
                    extra={
                        "resource.name": resource.domain,
                        "reminder.type": tag.value,
                        "error.message": str(inserted.error),
                    },
                )
                return

            logger.info(
                "reminder_sent",
                extra={
                    "resource.name": resource.domain,
                    "reminder.type": tag.value,
                    "reminder.days_remaining": days_remaining,
                    "messaging.recipient": resource.wallet_address,
                },
            )
            self._mark_sent(resource, tag)

    @contextlib.asynccontextmanager
    async def _delivery_lock(self, key: tuple[int, str]) -> AsyncIterator[None]:
        """Serialize deliveries for one (resource, tag). Dropped once unused."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _send(self, address: str, text: str) -> DeliveryReceipt:
        try:
            async with asyncio.timeout(self._delivery_timeout):
                return await self._gateway.send(address, text)
        except TimeoutError:
            return DeliveryReceipt.failed(
                f"send timed out after {self._delivery_timeout}s"
            )
        except Exception as e:
            return DeliveryReceipt.failed(str(e))

    def _mark_sent(self, resource: TrackedResource, tag: IntervalTag) -> None:
        sent = sorted({*resource.reminders_sent, tag.value})
        resource.reminders_sent = sent
        result = (
            self._store.update(Table.REMINDERS, {"reminders_sent": sent})
            .eq("id", resource.id)
            .resolve()
        )
        if result.error:
            logger.warning(
                "reminder_cache_update_failed",
                extra={"reminder.id": resource.id, "error.message": str(result.error)},
            )
