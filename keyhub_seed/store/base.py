"""Persistence contract consumed by factories and seeders.

Filters are plain dicts. Keys are column names, optionally suffixed with a
lookup: ``{"email__ne": "admin@example.com", "expires_at__lt": now}``.

Supported lookups: ``eq`` (default), ``ne``, ``lt``, ``lte``, ``gt``, ``gte``,
``in``, ``isnull`` and ``contains``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from keyhub_seed.models import Record

LOOKUPS = ("eq", "ne", "lt", "lte", "gt", "gte", "in", "isnull", "contains")

# Unique constraints of the fixture schema
UNIQUE_CONSTRAINTS: dict[str, list[tuple[str, ...]]] = {
    "organizations": [("code",)],
    "users": [("email",)],
    "licenses": [("code",)],
    "permissions": [("slug",)],
    "role_permissions": [("role_id", "permission_id")],
    "user_roles": [("user_id", "role_id")],
}


def split_lookup(key: str) -> tuple[str, str]:
    """
    Split a filter key into column and lookup.

    Args:
        key: Filter key, e.g. "email" or "expires_at__lt"

    Returns:
        (column, lookup) tuple

    Raises:
        ValueError: If the lookup suffix is unknown
    """
    if "__" in key:
        column, lookup = key.rsplit("__", 1)
        if lookup not in LOOKUPS:
            raise ValueError(
                f"Unknown lookup '{lookup}' in filter '{key}'. "
                f"Available: {', '.join(LOOKUPS)}"
            )
        return column, lookup
    return key, "eq"


def matches(row: Record, where: dict[str, Any] | None) -> bool:
    """Evaluate a filter dict against an in-memory row."""
    if not where:
        return True

    for key, expected in where.items():
        column, lookup = split_lookup(key)
        value = row.get(column)

        if lookup == "eq":
            ok = value == expected
        elif lookup == "ne":
            ok = value != expected
        elif lookup == "isnull":
            ok = (value is None) == bool(expected)
        elif lookup == "in":
            ok = value in expected
        elif lookup == "contains":
            ok = value is not None and str(expected) in str(value)
        elif value is None:
            # NULL never satisfies a comparison, as in SQL
            ok = False
        elif lookup == "lt":
            ok = value < expected
        elif lookup == "lte":
            ok = value <= expected
        elif lookup == "gt":
            ok = value > expected
        else:
            ok = value >= expected

        if not ok:
            return False
    return True


class Reader(ABC):
    """Read operations shared by stores and units of work."""

    @abstractmethod
    def find_many(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """Return rows matching the filter."""

    @abstractmethod
    def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        """Count rows matching the filter."""

    def find_one(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> Record | None:
        rows = self.find_many(table, where, order_by=order_by, limit=1)
        return rows[0] if rows else None

    def exists(self, table: str, where: dict[str, Any]) -> bool:
        return self.find_one(table, where) is not None


class UnitOfWork(Reader):
    """Mutations available inside Store.transaction()."""

    @abstractmethod
    def insert(self, table: str, row: Record) -> Record:
        """Insert a row and return it as stored (with generated columns)."""

    @abstractmethod
    def update(self, table: str, where: dict[str, Any], values: Record) -> int:
        """Update matching rows, returning the affected count."""

    @abstractmethod
    def delete(self, table: str, where: dict[str, Any] | None = None) -> int:
        """Delete matching rows, returning the affected count."""

    def insert_many(self, table: str, rows: list[Record]) -> list[Record]:
        return [self.insert(table, row) for row in rows]


class Store(Reader):
    """
    Transactional create/read contract.

    Every mutation runs inside ``transaction()``; the convenience mutators
    below each open their own transaction.
    """

    @abstractmethod
    def ping(self) -> None:
        """
        Check connectivity.

        Raises:
            DatabaseConnectionError: If the store is unreachable
        """

    @abstractmethod
    def transaction(self, timeout: float | None = None, max_wait: float | None = None):
        """
        Open a scoped unit of work.

        Commits on normal exit, rolls back when the block raises.

        Args:
            timeout: Statement timeout in seconds
            max_wait: Maximum wait for a connection/lock in seconds

        Raises:
            TransactionTimeoutError: If either bound is exceeded
        """

    def close(self) -> None:
        """Release resources held by the store."""

    def insert(self, table: str, row: Record) -> Record:
        with self.transaction() as tx:
            return tx.insert(table, row)

    def update_many(self, table: str, where: dict[str, Any], values: Record) -> int:
        with self.transaction() as tx:
            return tx.update(table, where, values)

    def delete_many(self, table: str, where: dict[str, Any] | None = None) -> int:
        with self.transaction() as tx:
            return tx.delete(table, where)

    @contextmanager
    def session(self) -> Iterator["Store"]:
        """Context manager that closes the store on exit."""
        try:
            yield self
        finally:
            self.close()
