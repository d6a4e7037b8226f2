"""Record store: in-memory tables with a chainable query builder.

Public API:
- RecordStore: insert / insert_unique / select / update / delete
- Query, Mutation: Immutable builders resolved with ``resolve()``

Types:
- Table: Closed set of tables
- TrackedResource, DeliveryRecord, Conversation: Row schemas
- StoreError, QueryResult, MutationResult, StoreResult: Results
"""

from lapse.store.query import Filter, FilterOp, Mutation, Query
from lapse.store.store import RecordStore
from lapse.store.types import (
    Conversation,
    DeliveryRecord,
    MutationResult,
    QueryResult,
    StoreError,
    StoreResult,
    Table,
    TrackedResource,
)

__all__ = [
    "Conversation",
    "DeliveryRecord",
    "Filter",
    "FilterOp",
    "Mutation",
    "MutationResult",
    "Query",
    "QueryResult",
    "RecordStore",
    "StoreError",
    "StoreResult",
    "Table",
    "TrackedResource",
]
