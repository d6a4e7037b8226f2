"""Record store types.

Public types:
- Table: Closed set of tables the store knows about
- TrackedResource / DeliveryRecord / Conversation: Typed row schemas
- StoreError: Error value carried on results (never raised)
- QueryResult / MutationResult / StoreResult: Operation results
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

Row = Any
_R = TypeVar("_R")


class Table(StrEnum):
    """Tables held by the record store."""

    REMINDERS = "reminders"
    SENT_REMINDERS = "sent_reminders"
    CONVERSATIONS = "conversations"

    @property
    def row_type(self) -> type:
        return _ROW_TYPES[self]

    @property
    def stamps_updates(self) -> bool:
        return "updated_at" in self.columns

    @property
    def columns(self) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(self.row_type))


@dataclass
class TrackedResource:
    """One owner's interest in one named resource's expiration."""

    domain: str
    wallet_address: str
    expiry_date: datetime | None = None
    # Cache of interval tags already delivered; sent_reminders is authoritative
    reminders_sent: list[str] = field(default_factory=list)
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class DeliveryRecord:
    """Evidence that an interval notification was sent for a tracked resource."""

    reminder_id: int
    reminder_type: str
    sent_at: datetime | None = None
    message_id: str | None = None
    wallet_address: str | None = None
    domain: str | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class Conversation:
    """Conversation metadata for an owner address."""

    wallet_address: str
    conversation_id: str
    peer_address: str | None = None
    is_active: bool = True
    last_message_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None


_ROW_TYPES: dict[Table, type] = {
    Table.REMINDERS: TrackedResource,
    Table.SENT_REMINDERS: DeliveryRecord,
    Table.CONVERSATIONS: Conversation,
}


@dataclass(frozen=True)
class StoreError:
    """Failed store operation. Returned on results, never raised."""

    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass
class QueryResult(Generic[_R]):
    """Rows returned by a resolved query."""

    data: list[_R] | None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rows(self) -> list[_R]:
        return self.data or []


@dataclass
class MutationResult:
    """Outcome of an update or delete."""

    count: int = 0
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class StoreResult(Generic[_R]):
    """Outcome of an insert: the stored row or an error."""

    data: _R | None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def unknown_table(name: object) -> StoreError:
    return StoreError("unknown_table", f"Unknown table: {name}")
