"""Tests for MemoryStore and filter matching."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from keyhub_seed.exceptions import (
    DatabaseConnectionError,
    DuplicateKeyError,
    TransactionTimeoutError,
)
from keyhub_seed.store import MemoryStore
from keyhub_seed.store.base import matches, split_lookup

NOW = datetime(2024, 6, 12, tzinfo=timezone.utc)


class TestSplitLookup:
    """Tests for split_lookup()."""

    def test_plain_column(self) -> None:
        assert split_lookup("email") == ("email", "eq")

    def test_lookup_suffix(self) -> None:
        assert split_lookup("expires_at__lt") == ("expires_at", "lt")

    def test_unknown_lookup(self) -> None:
        with pytest.raises(ValueError, match="Unknown lookup"):
            split_lookup("email__like")


class TestMatches:
    """Tests for matches()."""

    ROW = {"email": "a@example.com", "count": 3, "expires_at": None, "tags": "x,y"}

    @pytest.mark.parametrize(
        "where,expected",
        [
            ({}, True),
            ({"email": "a@example.com"}, True),
            ({"email__ne": "a@example.com"}, False),
            ({"count__gte": 3, "count__lt": 4}, True),
            ({"count__in": [1, 2]}, False),
            ({"expires_at__isnull": True}, True),
            ({"expires_at__lt": NOW}, False),
            ({"tags__contains": "y"}, True),
        ],
    )
    def test_lookups(self, where, expected) -> None:
        assert matches(self.ROW, where) is expected


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_insert_generates_id(self, store) -> None:
        row = store.insert("organizations", {"code": "A"})

        assert row["id"]
        assert store.find_one("organizations", {"code": "A"})["id"] == row["id"]

    def test_unique_constraint(self, store) -> None:
        store.insert("users", {"email": "a@example.com"})

        with pytest.raises(DuplicateKeyError) as exc_info:
            store.insert("users", {"email": "a@example.com"})

        assert exc_info.value.columns == ("email",)

    def test_rollback_on_error(self, store) -> None:
        """Test every mutation of a failed transaction is undone."""
        store.insert("users", {"email": "keep@example.com", "name": "Keep"})

        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                tx.insert("users", {"email": "new@example.com"})
                tx.update("users", {"email": "keep@example.com"}, {"name": "Changed"})
                tx.delete("users", {"email": "keep@example.com"})
                raise RuntimeError("abort")

        rows = store.get_data("users")
        assert [(r["email"], r["name"]) for r in rows] == [("keep@example.com", "Keep")]

    def test_commit_counts_transactions(self, store) -> None:
        with store.transaction() as tx:
            tx.insert("users", {"email": "a@example.com"})

        assert store.transactions == 1

    def test_order_by_nulls_last(self, store) -> None:
        store.insert("licenses", {"code": "B", "expires_at": None})
        store.insert("licenses", {"code": "A", "expires_at": NOW + timedelta(days=2)})
        store.insert("licenses", {"code": "C", "expires_at": NOW})

        rows = store.find_many("licenses", order_by="expires_at")

        assert [r["code"] for r in rows] == ["C", "A", "B"]

    def test_limit_and_count(self, store) -> None:
        for i in range(5):
            store.insert("departments", {"name": f"d{i}", "is_active": i % 2 == 0})

        assert len(store.find_many("departments", limit=2)) == 2
        assert store.count("departments", {"is_active": True}) == 3

    def test_update_many_and_delete_many(self, store) -> None:
        store.insert("licenses", {"code": "A", "locked": False})
        store.insert("licenses", {"code": "B", "locked": False})

        assert store.update_many("licenses", {"code": "A"}, {"locked": True}) == 1
        assert store.delete_many("licenses", {"locked": False}) == 1
        assert [r["code"] for r in store.get_data("licenses")] == ["A"]

    def test_offline(self, store) -> None:
        store.online = False

        with pytest.raises(DatabaseConnectionError):
            store.ping()
        with pytest.raises(DatabaseConnectionError):
            store.count("users")

    def test_connection_wait_bound(self, store) -> None:
        """Test a second transaction gives up when the store stays busy."""
        entered = threading.Event()
        release = threading.Event()
        errors: list[Exception] = []

        def hold() -> None:
            with store.transaction():
                entered.set()
                release.wait(5)

        holder = threading.Thread(target=hold)
        holder.start()
        entered.wait(5)

        def wait() -> None:
            try:
                with store.transaction(max_wait=0.05):
                    pass
            except TransactionTimeoutError as e:
                errors.append(e)

        waiter = threading.Thread(target=wait)
        waiter.start()
        waiter.join(5)
        release.set()
        holder.join(5)

        assert len(errors) == 1
        assert errors[0].phase == "connection wait"

    def test_session_closes(self) -> None:
        closed = []

        class ClosingStore(MemoryStore):
            def close(self) -> None:
                closed.append(True)

        with ClosingStore().session() as store:
            store.insert("users", {"email": "a@example.com"})

        assert closed == [True]
