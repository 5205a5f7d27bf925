"""Tests for the PostgreSQL store that need no database server."""

from contextlib import contextmanager

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from keyhub_seed.exceptions import DatabaseConnectionError, TransactionTimeoutError
from keyhub_seed.store.postgres import PostgresStore, build_where


class FailingPool:
    """Stand-in pool whose connections never materialize."""

    def __init__(self, error: Exception):
        self.error = error
        self.closed = False

    @contextmanager
    def connection(self, timeout=None):
        raise self.error
        yield

    def close(self) -> None:
        self.closed = True


class TestBuildWhere:
    """Tests for build_where()."""

    def test_no_filter(self) -> None:
        clause, params = build_where(None)

        assert params == []

    def test_params_in_key_order(self) -> None:
        _, params = build_where(
            {"email": "a@example.com", "count__gte": 2, "expires_at__isnull": True}
        )

        assert params == ["a@example.com", 2]

    def test_null_equality_has_no_param(self) -> None:
        _, params = build_where({"department_id": None})

        assert params == []

    def test_in_passes_list(self) -> None:
        _, params = build_where({"id__in": ("a", "b")})

        assert params == [["a", "b"]]

    def test_contains_wraps_pattern(self) -> None:
        _, params = build_where({"name__contains": "Team"})

        assert params == ["%Team%"]

    def test_unknown_lookup(self) -> None:
        with pytest.raises(ValueError):
            build_where({"name__like": "x"})


class TestPostgresStore:
    """Tests for PostgresStore error translation."""

    def test_ping_unreachable(self) -> None:
        pool = FailingPool(psycopg.OperationalError("connection refused"))
        store = PostgresStore("postgresql://unused", pool=pool)

        with pytest.raises(DatabaseConnectionError, match="connection refused"):
            store.ping()

    def test_pool_timeout(self) -> None:
        store = PostgresStore("postgresql://unused", pool=FailingPool(PoolTimeout()))

        with pytest.raises(TransactionTimeoutError) as exc_info:
            with store.transaction(max_wait=0.1):
                pass

        assert exc_info.value.phase == "connection wait"

    def test_ping_pool_timeout(self) -> None:
        store = PostgresStore("postgresql://unused", pool=FailingPool(PoolTimeout()))

        with pytest.raises(DatabaseConnectionError):
            store.ping()

    def test_close(self) -> None:
        pool = FailingPool(PoolTimeout())

        PostgresStore("postgresql://unused", pool=pool).close()

        assert pool.closed
