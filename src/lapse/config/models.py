"""Configuration models using Pydantic."""

import logging
import re
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from lapse.reminders.types import DEFAULT_INTERVALS, IntervalTag
from lapse.resolver.rpc import DEFAULT_REGISTRAR_ADDRESS
from lapse.scheduling.types import validate_cron

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ConfigError(Exception):
    """Configuration error."""

    pass


class ReminderConfig(BaseModel):
    """When reminders go out.

    ``post_expiry_tag`` selects the dedup bucket for the expired notice.
    "day_1" shares the final-notice bucket; "post_expiry" gives the expired
    notice its own record.
    """

    intervals: list[int] = Field(default_factory=lambda: list(DEFAULT_INTERVALS))
    post_expiry_tag: Literal["day_1", "post_expiry"] = "day_1"
    job_name: str = "daily-reminder-check"
    cron: str = "0 9 * * *"
    timezone: str = "UTC"

    @field_validator("intervals")
    @classmethod
    def _validate_intervals(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("at least one reminder interval is required")
        allowed = set(IntervalTag.thresholds())
        unknown = sorted(set(value) - allowed)
        if unknown:
            raise ValueError(
                f"unsupported intervals {unknown}; allowed: {sorted(allowed, reverse=True)}"
            )
        return sorted(set(value), reverse=True)

    @field_validator("cron")
    @classmethod
    def _validate_cron(cls, value: str) -> str:
        validate_cron(value)
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {value}") from e
        return value


class SchedulerConfig(BaseModel):
    """Polling loop settings."""

    enabled: bool = True
    poll_interval: float = Field(default=1.0, gt=0)


class DeliveryConfig(BaseModel):
    """Notification transport.

    "memory" keeps messages in process (development). "webhook" POSTs each
    notification to ``webhook_url``.
    """

    backend: Literal["memory", "webhook"] = "memory"
    webhook_url: str | None = None
    webhook_token: SecretStr | None = None
    timeout: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _require_webhook_url(self) -> "DeliveryConfig":
        if self.backend == "webhook" and not self.webhook_url:
            raise ValueError("delivery.webhook_url is required for the webhook backend")
        return self


class ResolverConfig(BaseModel):
    """Where name expiries come from.

    "static" reads the [expiries] table. "rpc" calls the registrar's
    ``nameExpires`` through the JSON-RPC node at ``rpc_url``.
    """

    backend: Literal["static", "rpc"] = "static"
    rpc_url: str | None = None
    registrar_address: str = DEFAULT_REGISTRAR_ADDRESS
    timeout: float = Field(default=10.0, gt=0)

    @field_validator("registrar_address")
    @classmethod
    def _validate_registrar_address(cls, value: str) -> str:
        if not ADDRESS_PATTERN.match(value):
            raise ValueError(f"not a contract address: {value}")
        return value

    @model_validator(mode="after")
    def _require_rpc_url(self) -> "ResolverConfig":
        if self.backend == "rpc" and not self.rpc_url:
            raise ValueError("resolver.rpc_url is required for the rpc backend")
        return self


class ServerConfig(BaseModel):
    """Configuration for HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080


class LapseConfig(BaseModel):
    """Root configuration model."""

    reminders: ReminderConfig = Field(default_factory=ReminderConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    # Static name -> ISO expiry map for the "static" resolver backend
    expiries: dict[str, str] = Field(default_factory=dict)
