"""Chainable query builders for the record store.

Builders are immutable: every predicate method returns a new builder, so a
partially built query can be shared and extended without side effects.
Nothing touches the store until ``resolve()`` is called.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from lapse.store.types import MutationResult, QueryResult, Table

if TYPE_CHECKING:
    from lapse.store.store import RecordStore


class FilterOp(StrEnum):
    EQ = "eq"
    NEQ = "neq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


_RANGE_OPS: dict[FilterOp, Callable[[Any, Any], bool]] = {
    FilterOp.LT: operator.lt,
    FilterOp.LTE: operator.le,
    FilterOp.GT: operator.gt,
    FilterOp.GTE: operator.ge,
}


@dataclass(frozen=True)
class Filter:
    """A single column predicate."""

    op: FilterOp
    column: str
    value: Any

    def matches(self, row: Any) -> bool:
        actual = getattr(row, self.column)
        if self.op == FilterOp.EQ:
            return actual == self.value
        if self.op == FilterOp.NEQ:
            return actual != self.value
        # Missing values never satisfy a range predicate
        if actual is None or self.value is None:
            return False
        return _RANGE_OPS[self.op](actual, self.value)


@dataclass(frozen=True)
class Ordering:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class Query:
    """Select query over one table.

    Example:
        result = store.select(Table.REMINDERS).eq("wallet_address", addr).order(
            "expiry_date"
        ).resolve()
        if result.error:
            ...
    """

    store: RecordStore
    table: Table | str
    filters: tuple[Filter, ...] = ()
    ordering: Ordering | None = None
    max_rows: int | None = None

    def _where(self, op: FilterOp, column: str, value: Any) -> Query:
        return replace(self, filters=(*self.filters, Filter(op, column, value)))

    def eq(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.EQ, column, value)

    def neq(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.NEQ, column, value)

    def lt(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.LT, column, value)

    def lte(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.LTE, column, value)

    def gt(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.GT, column, value)

    def gte(self, column: str, value: Any) -> Query:
        return self._where(FilterOp.GTE, column, value)

    def order(self, column: str, *, ascending: bool = True) -> Query:
        return replace(self, ordering=Ordering(column, ascending))

    def limit(self, count: int) -> Query:
        return replace(self, max_rows=count)

    def resolve(self) -> QueryResult[Any]:
        """Run the scan. Errors are reported on the result, never raised."""
        return self.store._execute_select(self)


@dataclass(frozen=True)
class Mutation:
    """Update or delete narrowed by equality filters."""

    store: RecordStore
    table: Table | str
    kind: str  # "update" | "delete"
    patch: dict[str, Any] = field(default_factory=dict)
    filters: tuple[Filter, ...] = ()

    def eq(self, column: str, value: Any) -> Mutation:
        return replace(
            self, filters=(*self.filters, Filter(FilterOp.EQ, column, value))
        )

    def resolve(self) -> MutationResult:
        return self.store._execute_mutation(self)
