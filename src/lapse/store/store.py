"""In-memory record store.

Emulates the subset of a remote relational API the reminder engine needs:
table-scoped inserts, filtered selects, equality-filtered updates and
deletes. Every operation reports failures on its result object; callers
must check ``result.error``.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from lapse.store.query import Mutation, Query
from lapse.store.types import (
    MutationResult,
    QueryResult,
    Row,
    StoreError,
    StoreResult,
    Table,
    unknown_table,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RecordStore:
    """Typed in-memory tables with a chainable query surface."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or _utcnow
        self._rows: dict[Table, dict[int, Row]] = {t: {} for t in Table}
        self._next_id: dict[Table, int] = {t: 1 for t in Table}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def insert(self, table: Table | str, row: Row | Mapping[str, Any]) -> StoreResult:
        resolved = _coerce_table(table)
        if resolved is None:
            return StoreResult(None, unknown_table(table))

        built = self._build_row(resolved, row)
        if isinstance(built, StoreError):
            return StoreResult(None, built)
        return StoreResult(self._store_row(resolved, built))

    def insert_unique(
        self,
        table: Table | str,
        row: Row | Mapping[str, Any],
        key: Iterable[str],
    ) -> StoreResult:
        """Insert unless a row with the same values on ``key`` already exists.

        The existence check and the write happen without yielding, so this
        is the atomic conditional insert callers use for dedup records.
        """
        resolved = _coerce_table(table)
        if resolved is None:
            return StoreResult(None, unknown_table(table))

        built = self._build_row(resolved, row)
        if isinstance(built, StoreError):
            return StoreResult(None, built)

        key_columns = tuple(key)
        bad = _unknown_columns(resolved, key_columns)
        if bad:
            return StoreResult(None, bad)

        wanted = {c: getattr(built, c) for c in key_columns}
        for existing in self._rows[resolved].values():
            if all(getattr(existing, c) == v for c, v in wanted.items()):
                logger.debug(
                    "store_insert_duplicate",
                    extra={"store.table": resolved.value, "store.key": str(wanted)},
                )
                return StoreResult(
                    None,
                    StoreError(
                        "duplicate_row",
                        f"Row already exists in {resolved.value} for {wanted}",
                    ),
                )
        return StoreResult(self._store_row(resolved, built))

    def select(self, table: Table | str) -> Query:
        return Query(store=self, table=table)

    def update(self, table: Table | str, patch: Mapping[str, Any]) -> Mutation:
        return Mutation(store=self, table=table, kind="update", patch=dict(patch))

    def delete(self, table: Table | str) -> Mutation:
        return Mutation(store=self, table=table, kind="delete")

    def get_stats(self) -> dict[str, int]:
        return {table.value: len(rows) for table, rows in self._rows.items()}

    def reset(self) -> None:
        for table in Table:
            self._rows[table].clear()
            self._next_id[table] = 1
        logger.info("store_reset")

    # ------------------------------------------------------------------
    # Execution (called by builders)
    # ------------------------------------------------------------------

    def _execute_select(self, query: Query) -> QueryResult[Any]:
        table = _coerce_table(query.table)
        if table is None:
            return QueryResult(None, unknown_table(query.table))

        columns = [f.column for f in query.filters]
        if query.ordering:
            columns.append(query.ordering.column)
        bad = _unknown_columns(table, columns)
        if bad:
            return QueryResult(None, bad)
        if query.max_rows is not None and query.max_rows < 0:
            return QueryResult(
                None,
                StoreError(
                    "invalid_limit", f"limit must be non-negative, got {query.max_rows}"
                ),
            )

        try:
            rows = [
                row
                for row in self._rows[table].values()
                if all(f.matches(row) for f in query.filters)
            ]
            if query.ordering:
                rows = _sort_rows(
                    rows, query.ordering.column, query.ordering.ascending
                )
        except TypeError as e:
            return QueryResult(None, StoreError("invalid_comparison", str(e)))

        if query.max_rows is not None:
            rows = rows[: query.max_rows]

        logger.debug(
            "store_select",
            extra={"store.table": table.value, "store.rows": len(rows)},
        )
        return QueryResult([copy.deepcopy(r) for r in rows])

    def _execute_mutation(self, mutation: Mutation) -> MutationResult:
        table = _coerce_table(mutation.table)
        if table is None:
            return MutationResult(0, unknown_table(mutation.table))
        if not mutation.filters:
            return MutationResult(
                0,
                StoreError(
                    "missing_filter", f"{mutation.kind} requires at least one filter"
                ),
            )

        bad = _unknown_columns(
            table, [f.column for f in mutation.filters] + list(mutation.patch)
        )
        if bad:
            return MutationResult(0, bad)
        if "id" in mutation.patch:
            return MutationResult(
                0, StoreError("invalid_patch", "id cannot be updated")
            )

        rows = self._rows[table]
        matched = [
            row_id
            for row_id, row in rows.items()
            if all(f.matches(row) for f in mutation.filters)
        ]

        if mutation.kind == "delete":
            for row_id in matched:
                del rows[row_id]
        else:
            patch = copy.deepcopy(mutation.patch)
            if table.stamps_updates:
                patch["updated_at"] = self._clock()
            for row_id in matched:
                rows[row_id] = dataclasses.replace(rows[row_id], **patch)

        logger.debug(
            f"store_{mutation.kind}",
            extra={"store.table": table.value, "store.rows": len(matched)},
        )
        return MutationResult(len(matched))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_row(self, table: Table, row: Row | Mapping[str, Any]) -> Row | StoreError:
        row_type = table.row_type
        if isinstance(row, Mapping):
            bad = _unknown_columns(table, row.keys())
            if bad:
                return bad
            try:
                return row_type(**row)
            except TypeError as e:
                return StoreError("invalid_row", str(e))
        if not isinstance(row, row_type):
            return StoreError(
                "invalid_row",
                f"{table.value} expects {row_type.__name__}, got {type(row).__name__}",
            )
        return copy.deepcopy(row)

    def _store_row(self, table: Table, row: Row) -> Row:
        now = self._clock()
        row_id = self._next_id[table]
        self._next_id[table] += 1

        changes: dict[str, Any] = {"id": row_id}
        if row.created_at is None:
            changes["created_at"] = now
        if table.stamps_updates:
            changes["updated_at"] = now
        stored = dataclasses.replace(row, **changes)
        self._rows[table][row_id] = stored

        logger.debug(
            "store_insert",
            extra={"store.table": table.value, "store.row_id": row_id},
        )
        return copy.deepcopy(stored)


def _coerce_table(table: Table | str) -> Table | None:
    if isinstance(table, Table):
        return table
    try:
        return Table(table)
    except ValueError:
        return None


def _unknown_columns(table: Table, columns: Iterable[str]) -> StoreError | None:
    unknown = sorted(set(columns) - table.columns)
    if unknown:
        return StoreError(
            "unknown_column",
            f"Unknown column(s) on {table.value}: {', '.join(unknown)}",
        )
    return None


def _sort_rows(rows: list[Row], column: str, ascending: bool) -> list[Row]:
    # Rows missing the sort value go last in either direction
    present = [r for r in rows if getattr(r, column) is not None]
    missing = [r for r in rows if getattr(r, column) is None]
    present.sort(key=lambda r: getattr(r, column), reverse=not ascending)
    return present + missing
