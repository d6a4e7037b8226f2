"""Tests for the in-memory record store and its query builders."""

from datetime import timedelta

import pytest

from lapse.store import (
    Conversation,
    DeliveryRecord,
    RecordStore,
    Table,
    TrackedResource,
)

from tests.conftest import NOW, OTHER_OWNER, OWNER


class TestInsert:
    """Tests for row insertion."""

    def test_insert_assigns_id_and_timestamps(self, store: RecordStore):
        result = store.insert(
            Table.REMINDERS,
            TrackedResource(domain="alpha.eth", wallet_address=OWNER),
        )

        assert result.ok
        assert result.data.id == 1
        assert result.data.created_at == NOW
        assert result.data.updated_at == NOW

    def test_ids_increase_per_table(self, store: RecordStore):
        first = store.insert(
            Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER}
        )
        second = store.insert(
            Table.REMINDERS, {"domain": "b.eth", "wallet_address": OWNER}
        )
        other = store.insert(
            Table.CONVERSATIONS,
            Conversation(wallet_address=OWNER, conversation_id="conv_1"),
        )

        assert first.data.id == 1
        assert second.data.id == 2
        assert other.data.id == 1

    def test_insert_accepts_table_name_string(self, store: RecordStore):
        result = store.insert("reminders", {"domain": "a.eth", "wallet_address": OWNER})

        assert result.ok
        assert isinstance(result.data, TrackedResource)

    def test_insert_unknown_table_is_error_result(self, store: RecordStore):
        result = store.insert("nope", {"domain": "a.eth"})

        assert result.data is None
        assert result.error is not None
        assert result.error.code == "unknown_table"

    def test_insert_unknown_column_is_error_result(self, store: RecordStore):
        result = store.insert(
            Table.REMINDERS,
            {"domain": "a.eth", "wallet_address": OWNER, "color": "red"},
        )

        assert result.error is not None
        assert result.error.code == "unknown_column"
        assert "color" in result.error.message

    def test_insert_wrong_row_type_is_error_result(self, store: RecordStore):
        result = store.insert(
            Table.REMINDERS,
            Conversation(wallet_address=OWNER, conversation_id="conv_1"),
        )

        assert result.error is not None
        assert result.error.code == "invalid_row"

    def test_stored_row_is_isolated_from_caller(self, store: RecordStore):
        row = TrackedResource(domain="a.eth", wallet_address=OWNER)
        store.insert(Table.REMINDERS, row)
        row.reminders_sent.append("day_7")

        stored = store.select(Table.REMINDERS).resolve().rows[0]
        assert stored.reminders_sent == []


class TestInsertUnique:
    """Tests for the atomic conditional insert."""

    def test_duplicate_key_rejected(self, store: RecordStore):
        key = ("reminder_id", "reminder_type")
        first = store.insert_unique(
            Table.SENT_REMINDERS,
            DeliveryRecord(reminder_id=1, reminder_type="day_7"),
            key,
        )
        second = store.insert_unique(
            Table.SENT_REMINDERS,
            DeliveryRecord(reminder_id=1, reminder_type="day_7"),
            key,
        )

        assert first.ok
        assert second.error is not None
        assert second.error.code == "duplicate_row"
        assert store.get_stats()["sent_reminders"] == 1

    def test_different_key_values_accepted(self, store: RecordStore):
        key = ("reminder_id", "reminder_type")
        store.insert_unique(
            Table.SENT_REMINDERS, DeliveryRecord(reminder_id=1, reminder_type="day_7"), key
        )
        result = store.insert_unique(
            Table.SENT_REMINDERS, DeliveryRecord(reminder_id=1, reminder_type="day_1"), key
        )

        assert result.ok
        assert store.get_stats()["sent_reminders"] == 2

    def test_unknown_key_column(self, store: RecordStore):
        result = store.insert_unique(
            Table.SENT_REMINDERS,
            DeliveryRecord(reminder_id=1, reminder_type="day_7"),
            ("bogus",),
        )

        assert result.error is not None
        assert result.error.code == "unknown_column"


class TestSelect:
    """Tests for filtered selects."""

    @pytest.fixture
    def populated(self, store: RecordStore) -> RecordStore:
        for days, domain, owner in [
            (30, "thirty.eth", OWNER),
            (7, "seven.eth", OWNER),
            (1, "one.eth", OTHER_OWNER),
        ]:
            store.insert(
                Table.REMINDERS,
                TrackedResource(
                    domain=domain,
                    wallet_address=owner,
                    expiry_date=NOW + timedelta(days=days),
                ),
            )
        store.insert(
            Table.REMINDERS,
            TrackedResource(domain="unknown.eth", wallet_address=OWNER),
        )
        return store

    def test_select_all(self, populated: RecordStore):
        result = populated.select(Table.REMINDERS).resolve()

        assert result.ok
        assert len(result.rows) == 4

    def test_eq_filters_compose_with_and(self, populated: RecordStore):
        result = (
            populated.select(Table.REMINDERS)
            .eq("wallet_address", OWNER)
            .eq("domain", "seven.eth")
            .resolve()
        )

        assert [r.domain for r in result.rows] == ["seven.eth"]

    def test_neq(self, populated: RecordStore):
        result = populated.select(Table.REMINDERS).neq("wallet_address", OWNER).resolve()

        assert [r.domain for r in result.rows] == ["one.eth"]

    def test_lt_is_strict(self, populated: RecordStore):
        boundary = NOW + timedelta(days=7)
        result = populated.select(Table.REMINDERS).lt("expiry_date", boundary).resolve()

        assert [r.domain for r in result.rows] == ["one.eth"]

    def test_lte_is_inclusive(self, populated: RecordStore):
        boundary = NOW + timedelta(days=7)
        result = populated.select(Table.REMINDERS).lte("expiry_date", boundary).resolve()

        assert sorted(r.domain for r in result.rows) == ["one.eth", "seven.eth"]

    def test_gt_is_strict(self, populated: RecordStore):
        boundary = NOW + timedelta(days=7)
        result = populated.select(Table.REMINDERS).gt("expiry_date", boundary).resolve()

        assert [r.domain for r in result.rows] == ["thirty.eth"]

    def test_gte_is_inclusive(self, populated: RecordStore):
        boundary = NOW + timedelta(days=7)
        result = populated.select(Table.REMINDERS).gte("expiry_date", boundary).resolve()

        assert sorted(r.domain for r in result.rows) == ["seven.eth", "thirty.eth"]

    def test_range_predicate_never_matches_missing_value(self, populated: RecordStore):
        result = (
            populated.select(Table.REMINDERS)
            .gte("expiry_date", NOW - timedelta(days=365))
            .resolve()
        )

        assert "unknown.eth" not in [r.domain for r in result.rows]

    def test_order_ascending_puts_missing_last(self, populated: RecordStore):
        result = populated.select(Table.REMINDERS).order("expiry_date").resolve()

        assert [r.domain for r in result.rows] == [
            "one.eth",
            "seven.eth",
            "thirty.eth",
            "unknown.eth",
        ]

    def test_order_descending(self, populated: RecordStore):
        result = (
            populated.select(Table.REMINDERS)
            .order("expiry_date", ascending=False)
            .resolve()
        )

        assert [r.domain for r in result.rows][:3] == [
            "thirty.eth",
            "seven.eth",
            "one.eth",
        ]

    def test_limit(self, populated: RecordStore):
        result = (
            populated.select(Table.REMINDERS).order("expiry_date").limit(1).resolve()
        )

        assert [r.domain for r in result.rows] == ["one.eth"]

    def test_negative_limit_is_error_result(self, store: RecordStore):
        result = store.select(Table.REMINDERS).limit(-1).resolve()

        assert not result.ok
        assert result.data is None
        assert result.error.code == "invalid_limit"

    def test_builders_are_immutable(self, populated: RecordStore):
        base = populated.select(Table.REMINDERS).eq("wallet_address", OWNER)
        narrowed = base.eq("domain", "seven.eth")

        assert len(base.resolve().rows) == 3
        assert len(narrowed.resolve().rows) == 1

    def test_unknown_table_is_error_result(self, store: RecordStore):
        result = store.select("missing").resolve()

        assert result.data is None
        assert result.error is not None
        assert result.error.code == "unknown_table"

    def test_unknown_column_is_error_result(self, store: RecordStore):
        result = store.select(Table.REMINDERS).eq("nope", 1).resolve()

        assert result.error is not None
        assert result.error.code == "unknown_column"

    def test_incomparable_values_are_error_result(self, populated: RecordStore):
        result = populated.select(Table.REMINDERS).lt("expiry_date", "tomorrow").resolve()

        assert result.error is not None
        assert result.error.code == "invalid_comparison"

    def test_returned_rows_are_copies(self, populated: RecordStore):
        row = populated.select(Table.REMINDERS).eq("domain", "seven.eth").resolve().rows[0]
        row.reminders_sent.append("day_7")

        again = populated.select(Table.REMINDERS).eq("domain", "seven.eth").resolve()
        assert again.rows[0].reminders_sent == []


class TestMutations:
    """Tests for update and delete."""

    def test_update_returns_count_and_stamps_updated_at(self):
        times = iter([NOW, NOW + timedelta(hours=1)])
        store = RecordStore(clock=lambda: next(times))
        store.insert(Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER})

        result = (
            store.update(Table.REMINDERS, {"reminders_sent": ["day_7"]})
            .eq("domain", "a.eth")
            .resolve()
        )

        assert result.ok
        assert result.count == 1
        row = store.select(Table.REMINDERS).resolve().rows[0]
        assert row.reminders_sent == ["day_7"]
        assert row.updated_at == NOW + timedelta(hours=1)
        assert row.created_at == NOW

    def test_update_no_match_returns_zero(self, store: RecordStore):
        result = (
            store.update(Table.CONVERSATIONS, {"is_active": False})
            .eq("wallet_address", OWNER)
            .resolve()
        )

        assert result.ok
        assert result.count == 0

    def test_update_requires_filter(self, store: RecordStore):
        result = store.update(Table.REMINDERS, {"domain": "x.eth"}).resolve()

        assert result.error is not None
        assert result.error.code == "missing_filter"

    def test_update_cannot_change_id(self, store: RecordStore):
        store.insert(Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER})
        result = store.update(Table.REMINDERS, {"id": 9}).eq("id", 1).resolve()

        assert result.error is not None
        assert result.error.code == "invalid_patch"

    def test_update_unknown_column(self, store: RecordStore):
        result = store.update(Table.REMINDERS, {"nope": 1}).eq("id", 1).resolve()

        assert result.error is not None
        assert result.error.code == "unknown_column"

    def test_delete(self, store: RecordStore):
        store.insert(Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER})
        store.insert(Table.REMINDERS, {"domain": "b.eth", "wallet_address": OWNER})

        result = store.delete(Table.REMINDERS).eq("domain", "a.eth").resolve()

        assert result.count == 1
        assert [r.domain for r in store.select(Table.REMINDERS).resolve().rows] == [
            "b.eth"
        ]

    def test_delete_requires_filter(self, store: RecordStore):
        result = store.delete(Table.REMINDERS).resolve()

        assert result.error is not None
        assert result.error.code == "missing_filter"


class TestStats:
    def test_stats_and_reset(self, store: RecordStore):
        store.insert(Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER})

        assert store.get_stats() == {
            "reminders": 1,
            "sent_reminders": 0,
            "conversations": 0,
        }

        store.reset()
        assert store.get_stats()["reminders"] == 0
        again = store.insert(
            Table.REMINDERS, {"domain": "a.eth", "wallet_address": OWNER}
        )
        assert again.data.id == 1
