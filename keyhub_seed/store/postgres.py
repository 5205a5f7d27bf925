"""PostgreSQL store - executes parameterized SQL through a connection pool."""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from keyhub_seed.exceptions import (
    DatabaseConnectionError,
    DuplicateKeyError,
    TransactionTimeoutError,
)
from keyhub_seed.models import Record
from keyhub_seed.store.base import Store, UnitOfWork, split_lookup

logger = logging.getLogger(__name__)

_OPERATORS = {"lt": "<", "lte": "<=", "gt": ">", "gte": ">="}


def build_where(where: dict[str, Any] | None) -> tuple[sql.Composable, list[Any]]:
    """
    Translate a filter dict into a WHERE clause.

    Args:
        where: Filter dict (see keyhub_seed.store.base)

    Returns:
        (clause, params) - clause is empty when there is no filter
    """
    if not where:
        return sql.SQL(""), []

    parts: list[sql.Composable] = []
    params: list[Any] = []

    for key, value in where.items():
        column, lookup = split_lookup(key)
        ident = sql.Identifier(column)

        if lookup == "eq" and value is None:
            parts.append(sql.SQL("{} IS NULL").format(ident))
        elif lookup == "eq":
            parts.append(sql.SQL("{} = %s").format(ident))
            params.append(value)
        elif lookup == "ne":
            parts.append(sql.SQL("{} IS DISTINCT FROM %s").format(ident))
            params.append(value)
        elif lookup == "isnull":
            op = "IS NULL" if value else "IS NOT NULL"
            parts.append(sql.SQL("{} " + op).format(ident))
        elif lookup == "in":
            parts.append(sql.SQL("{} = ANY(%s)").format(ident))
            params.append(list(value))
        elif lookup == "contains":
            parts.append(sql.SQL("{} LIKE %s").format(ident))
            params.append(f"%{value}%")
        else:
            parts.append(sql.SQL("{} " + _OPERATORS[lookup] + " %s").format(ident))
            params.append(value)

    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(parts), params


class _SqlReader:
    """SELECT helpers shared by the store and its units of work."""

    schema: str

    def _table(self, table: str) -> sql.Identifier:
        return sql.Identifier(self.schema, table)

    def _select(
        self,
        conn: psycopg.Connection,
        table: str,
        where: dict[str, Any] | None,
        order_by: str | None,
        limit: int | None,
    ) -> list[Record]:
        clause, params = build_where(where)
        query = sql.SQL("SELECT * FROM {}").format(self._table(table)) + clause
        if order_by:
            query += sql.SQL(" ORDER BY {} NULLS LAST").format(sql.Identifier(order_by))
        if limit is not None:
            query += sql.SQL(" LIMIT {}").format(sql.Literal(limit))
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]

    def _count(self, conn: psycopg.Connection, table: str, where: dict[str, Any] | None) -> int:
        clause, params = build_where(where)
        query = sql.SQL("SELECT COUNT(*) FROM {}").format(self._table(table)) + clause
        with conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchone()[0]


class PostgresStore(_SqlReader, Store):
    """
    Store backed by PostgreSQL via psycopg 3 and psycopg_pool.

    Each transaction borrows one pooled connection (waiting at most
    ``max_wait`` seconds) and sets a server-side ``statement_timeout``.
    """

    def __init__(
        self,
        url: str,
        schema: str = "public",
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 30.0,
        max_wait: float = 5.0,
        pool: ConnectionPool | None = None,
    ):
        """
        Initialize store.

        Args:
            url: PostgreSQL connection URL
            schema: Schema holding the fixture tables
            min_size: Minimum pooled connections
            max_size: Maximum pooled connections
            timeout: Default statement timeout per transaction (seconds)
            max_wait: Default pool wait bound (seconds)
            pool: Existing pool to use instead of creating one
        """
        self.schema = schema
        self.timeout = timeout
        self.max_wait = max_wait
        self.pool = pool or ConnectionPool(
            url, min_size=min_size, max_size=max_size, open=True
        )

    @contextmanager
    def _connection(self, max_wait: float | None = None) -> Iterator[psycopg.Connection]:
        wait = self.max_wait if max_wait is None else max_wait
        try:
            with self.pool.connection(timeout=wait) as conn:
                yield conn
        except PoolTimeout as e:
            raise TransactionTimeoutError(wait, phase="connection wait") from e

    def ping(self) -> None:
        try:
            with self._connection() as conn:
                conn.execute("SELECT 1")
        except (psycopg.OperationalError, TransactionTimeoutError) as e:
            raise DatabaseConnectionError(str(e)) from e

    @contextmanager
    def transaction(
        self, timeout: float | None = None, max_wait: float | None = None
    ) -> Iterator["PostgresUnitOfWork"]:
        statement_timeout = self.timeout if timeout is None else timeout
        try:
            with self._connection(max_wait) as conn:
                with conn.transaction():
                    conn.execute(
                        sql.SQL("SET LOCAL statement_timeout = {}").format(
                            sql.Literal(int(statement_timeout * 1000))
                        )
                    )
                    yield PostgresUnitOfWork(conn, self.schema)
        except errors.QueryCanceled as e:
            raise TransactionTimeoutError(statement_timeout) from e

    def find_many(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        with self._connection() as conn:
            return self._select(conn, table, where, order_by, limit)

    def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        with self._connection() as conn:
            return self._count(conn, table, where)

    def close(self) -> None:
        self.pool.close()


class PostgresUnitOfWork(_SqlReader, UnitOfWork):
    """Unit of work bound to one connection inside an open transaction."""

    def __init__(self, conn: psycopg.Connection, schema: str):
        self.conn = conn
        self.schema = schema

    def insert(self, table: str, row: Record) -> Record:
        values = dict(row)
        values.setdefault("id", str(uuid.uuid4()))
        columns = list(values)

        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            self._table(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )

        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, [values[c] for c in columns])
                return dict(cur.fetchone())
        except errors.UniqueViolation as e:
            constraint = e.diag.constraint_name or "unique"
            raise DuplicateKeyError(table, (constraint,), e.diag.message_detail) from e

    def update(self, table: str, where: dict[str, Any], values: Record) -> int:
        clause, params = build_where(where)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(c)) for c in values
        )
        query = (
            sql.SQL("UPDATE {} SET ").format(self._table(table)) + assignments + clause
        )
        try:
            with self.conn.cursor() as cur:
                cur.execute(query, [*values.values(), *params])
                return cur.rowcount
        except errors.UniqueViolation as e:
            constraint = e.diag.constraint_name or "unique"
            raise DuplicateKeyError(table, (constraint,), e.diag.message_detail) from e

    def delete(self, table: str, where: dict[str, Any] | None = None) -> int:
        clause, params = build_where(where)
        query = sql.SQL("DELETE FROM {}").format(self._table(table)) + clause
        with self.conn.cursor() as cur:
            cur.execute(query, params)
            return cur.rowcount

    def find_many(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        return self._select(self.conn, table, where, order_by, limit)

    def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        return self._count(self.conn, table, where)
