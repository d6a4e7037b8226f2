"""Reminder service: owns and wires the store, scheduler, engine and gateway.

Nothing here is a process-wide singleton: whatever hosts the command
interface (the HTTP server, tests) constructs a ReminderService and passes it
around explicitly.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from lapse.config.models import ConfigError, DeliveryConfig, LapseConfig
from lapse.delivery import (
    ConnectableGateway,
    DeliveryGateway,
    InMemoryGateway,
    WebhookGateway,
)
from lapse.reminders import IntervalTag, ReminderCommands, ReminderEngine
from lapse.resolver import ExpiryResolver, RpcExpiryResolver, StaticExpiryResolver
from lapse.scheduling import Scheduler
from lapse.store import RecordStore

logger = logging.getLogger(__name__)


def create_gateway(config: DeliveryConfig) -> DeliveryGateway:
    """Build the delivery gateway selected by ``config.backend``."""
    if config.backend == "webhook":
        if not config.webhook_url:
            raise ConfigError("delivery.webhook_url is required for the webhook backend")
        token = config.webhook_token.get_secret_value() if config.webhook_token else None
        return WebhookGateway(config.webhook_url, token=token, timeout=config.timeout)
    return InMemoryGateway()


def create_resolver(config: LapseConfig) -> ExpiryResolver:
    """Build the resolver selected by ``config.resolver.backend``.

    The "static" backend reads the ``[expiries]`` table.

    Raises:
        ConfigError: If an expiry is not an ISO-8601 timestamp, or the rpc
            backend has no URL.
    """
    settings = config.resolver
    if settings.backend == "rpc":
        if not settings.rpc_url:
            raise ConfigError("resolver.rpc_url is required for the rpc backend")
        return RpcExpiryResolver(
            settings.rpc_url,
            registrar_address=settings.registrar_address,
            timeout=settings.timeout,
        )

    resolver = StaticExpiryResolver()
    for name, value in config.expiries.items():
        try:
            resolver.set_expiry(name, datetime.fromisoformat(value))
        except ValueError as e:
            raise ConfigError(f"Invalid expiry for {name!r}: {value!r}") from e
    return resolver


class ReminderService:
    """Runs the reminder workflow: scheduled evaluation plus owner commands."""

    def __init__(
        self,
        config: LapseConfig,
        store: RecordStore | None = None,
        gateway: DeliveryGateway | None = None,
        resolver: ExpiryResolver | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._store = store or RecordStore()
        self._gateway = gateway or create_gateway(config.delivery)
        self._resolver = resolver or create_resolver(config)
        self._scheduler = scheduler or Scheduler(
            poll_interval=config.scheduler.poll_interval,
            timezone=config.reminders.timezone,
        )
        self._engine = ReminderEngine(
            self._store,
            self._gateway,
            intervals=config.reminders.intervals,
            post_expiry_tag=IntervalTag(config.reminders.post_expiry_tag),
            delivery_timeout=config.delivery.timeout,
        )
        self._commands = ReminderCommands(
            self._store, self._resolver, intervals=config.reminders.intervals
        )
        self._initialized = False

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def gateway(self) -> DeliveryGateway:
        return self._gateway

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def engine(self) -> ReminderEngine:
        return self._engine

    @property
    def commands(self) -> ReminderCommands:
        return self._commands

    @property
    def job_name(self) -> str:
        return self._config.reminders.job_name

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._initialized:
            logger.debug("reminder_service_already_initialized")
            return

        if isinstance(self._gateway, ConnectableGateway):
            await self._gateway.connect()

        reminders = self._config.reminders
        self._scheduler.schedule(
            reminders.job_name,
            reminders.cron,
            self._engine.check_reminders,
            timezone=reminders.timezone,
        )
        if self._config.scheduler.enabled:
            await self._scheduler.start()

        self._initialized = True
        logger.info(
            "reminder_service_initialized",
            extra={
                "job.name": reminders.job_name,
                "job.schedule": reminders.cron,
                "delivery.backend": self._config.delivery.backend,
            },
        )

    async def shutdown(self) -> None:
        if not self._initialized:
            return
        await self._scheduler.stop()
        if isinstance(self._gateway, ConnectableGateway):
            await self._gateway.disconnect()
        self._initialized = False
        logger.info("reminder_service_shutdown")

    async def trigger_reminder_check(self) -> int:
        """Evaluate now, outside the schedule.

        Goes through the scheduler when the job is registered so the
        running guard applies; a call that overlaps a running check returns 0.
        """
        job = self._scheduler.get_job(self.job_name)
        if job is None:
            return await self._engine.check_reminders()

        before = self._engine.get_stats()["total_delivered"]
        ran = await self._scheduler.trigger_job(self.job_name)
        if not ran:
            return 0
        return self._engine.get_stats()["total_delivered"] - before

    def get_stats(self) -> dict[str, Any]:
        gateway_stats = getattr(self._gateway, "get_stats", None)
        return {
            "initialized": self._initialized,
            "delivery_backend": self._config.delivery.backend,
            "resolver_backend": self._config.resolver.backend,
            "engine": self._engine.get_stats(),
            "scheduler": self._scheduler.get_stats(),
            "store": self._store.get_stats(),
            "gateway": gateway_stats() if callable(gateway_stats) else None,
        }
