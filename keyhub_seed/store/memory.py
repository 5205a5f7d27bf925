"""In-memory store for seeding without a database."""

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from keyhub_seed.exceptions import (
    DatabaseConnectionError,
    DuplicateKeyError,
    TransactionTimeoutError,
)
from keyhub_seed.models import Record
from keyhub_seed.store.base import UNIQUE_CONSTRAINTS, Store, UnitOfWork, matches


def _sort_key(column: str) -> Callable[[Record], tuple[bool, Any]]:
    # NULLs sort last, as in PostgreSQL ascending order
    return lambda row: (row.get(column) is None, row.get(column))


class MemoryStore(Store):
    """
    In-memory store for tests and offline development.

    Simulates the database behaviour the seeders rely on:
    - Generates ``id`` columns (UUID4 strings) when missing
    - Enforces UNIQUE constraints (raises DuplicateKeyError)
    - Serializes transactions and rolls back on error
    - Honours the connection wait bound (raises TransactionTimeoutError)

    Set ``online = False`` to simulate an unreachable database.
    """

    def __init__(self, unique: dict[str, list[tuple[str, ...]]] | None = None):
        """
        Initialize the store with empty tables.

        Args:
            unique: Unique constraints per table (defaults to the fixture schema)
        """
        self._data: dict[str, list[Record]] = {}
        self._unique = UNIQUE_CONSTRAINTS if unique is None else unique
        self._lock = threading.RLock()
        self.online = True
        self.transactions = 0

    def ping(self) -> None:
        if not self.online:
            raise DatabaseConnectionError("memory store is offline")

    @contextmanager
    def transaction(
        self, timeout: float | None = None, max_wait: float | None = None
    ) -> Iterator["MemoryUnitOfWork"]:
        self.ping()
        acquired = self._lock.acquire(timeout=max_wait if max_wait is not None else -1)
        if not acquired:
            raise TransactionTimeoutError(max_wait, phase="connection wait")

        uow = MemoryUnitOfWork(self)
        try:
            yield uow
        except BaseException:
            uow.rollback()
            raise
        else:
            self.transactions += 1
        finally:
            self._lock.release()

    def find_many(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        self.ping()
        with self._lock:
            rows = [dict(row) for row in self._data.get(table, []) if matches(row, where)]
        if order_by:
            rows.sort(key=_sort_key(order_by))
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        self.ping()
        with self._lock:
            return sum(1 for row in self._data.get(table, []) if matches(row, where))

    def get_data(self, table: str) -> list[Record]:
        """
        Get in-memory data for inspection.

        Args:
            table: Table name

        Returns:
            Copies of the stored rows
        """
        with self._lock:
            return [dict(row) for row in self._data.get(table, [])]

    def clear(self) -> None:
        """Clear all in-memory data."""
        with self._lock:
            self._data.clear()

    def _check_unique(self, table: str, row: Record, ignore: Record | None = None) -> None:
        for columns in self._unique.get(table, []):
            key = tuple(row.get(col) for col in columns)
            if any(v is None for v in key):
                continue
            for existing in self._data.get(table, []):
                if existing is ignore:
                    continue
                if tuple(existing.get(col) for col in columns) == key:
                    raise DuplicateKeyError(table, columns, key[0] if len(key) == 1 else key)


class MemoryUnitOfWork(UnitOfWork):
    """Unit of work bound to a MemoryStore transaction."""

    def __init__(self, store: MemoryStore):
        self._store = store
        self._undo: list[Callable[[], None]] = []

    def insert(self, table: str, row: Record) -> Record:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        self._store._check_unique(table, stored)

        rows = self._store._data.setdefault(table, [])
        rows.append(stored)
        self._undo.append(lambda: rows.remove(stored))
        return dict(stored)

    def update(self, table: str, where: dict[str, Any], values: Record) -> int:
        affected = 0
        for row in self._store._data.get(table, []):
            if not matches(row, where):
                continue
            candidate = {**row, **values}
            self._store._check_unique(table, candidate, ignore=row)
            previous = dict(row)
            row.update(values)
            self._undo.append(lambda r=row, p=previous: (r.clear(), r.update(p)))
            affected += 1
        return affected

    def delete(self, table: str, where: dict[str, Any] | None = None) -> int:
        rows = self._store._data.get(table, [])
        removed = [row for row in rows if matches(row, where)]
        if removed:
            self._store._data[table] = [row for row in rows if not matches(row, where)]
            self._undo.append(lambda: self._store._data.__setitem__(table, rows))
        return len(removed)

    def find_many(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        return self._store.find_many(table, where, order_by=order_by, limit=limit)

    def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        return self._store.count(table, where)

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()
