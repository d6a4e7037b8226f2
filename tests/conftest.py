"""Shared test fixtures and factories."""

from datetime import UTC, datetime, timedelta

import pytest

from lapse.config.models import LapseConfig, SchedulerConfig
from lapse.delivery import InMemoryGateway
from lapse.reminders import ReminderCommands, ReminderEngine
from lapse.resolver import StaticExpiryResolver
from lapse.store import RecordStore, Table, TrackedResource

NOW = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)
OWNER = "0xowner1"
OTHER_OWNER = "0xowner2"


# =============================================================================
# Store / Gateway Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> RecordStore:
    return RecordStore(clock=lambda: NOW)


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def engine(store: RecordStore, gateway: InMemoryGateway) -> ReminderEngine:
    return ReminderEngine(store, gateway, clock=lambda: NOW)


@pytest.fixture
def resolver() -> StaticExpiryResolver:
    return StaticExpiryResolver(
        {
            "vitalik.eth": NOW + timedelta(days=200),
            "soon.eth": NOW + timedelta(days=7),
            "lapsed.eth": NOW - timedelta(days=3),
        }
    )


@pytest.fixture
def commands(store: RecordStore, resolver: StaticExpiryResolver) -> ReminderCommands:
    return ReminderCommands(store, resolver, clock=lambda: NOW)


@pytest.fixture
def config() -> LapseConfig:
    """Config with the polling loop disabled so tests drive evaluation."""
    return LapseConfig(scheduler=SchedulerConfig(enabled=False))


@pytest.fixture
def add_resource(store: RecordStore):
    """Factory inserting a tracked resource and returning the stored row."""

    def _add(
        domain: str,
        expiry: datetime | None,
        owner: str = OWNER,
    ) -> TrackedResource:
        result = store.insert(
            Table.REMINDERS,
            TrackedResource(domain=domain, wallet_address=owner, expiry_date=expiry),
        )
        assert result.error is None
        return result.data

    return _add
