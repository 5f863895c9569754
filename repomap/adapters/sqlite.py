"""SQLite implementation of :class:`Adapter`.

Queries are translated into parametrized statements (``?`` placeholders,
double-quoted identifiers). One re-entrant lock per adapter serializes use of
the underlying connection, so a single adapter can be shared between threads
when the connection was opened with ``check_same_thread=False``.

Example:
    >>> import sqlite3
    >>> adapter = SqliteAdapter(sqlite3.connect(":memory:"))
    >>> adapter.compile_query(users_query.where(name="Ada"))  # doctest: +SKIP
    SqlStatement(sql='SELECT "id", "name" FROM "users" WHERE "name" = ?', params=('Ada',))
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from ..errors import UnsupportedQueryOperationError
from ..mapping.coercer import Record
from ..mapping.registry import CollectionMapping
from ..query.predicates import (
    BETWEEN,
    EQ,
    IN,
    IS_NULL,
    And,
    Comparison,
    Not,
    Or,
    Predicate,
    RawFragment,
)
from ..query.query import Query
from .base import Adapter

logger = logging.getLogger(__name__)

_AGGREGATES = {
    "count": "COUNT(*)",
    "sum": "SUM({column})",
    "avg": "AVG({column})",
    "min": "MIN({column})",
    "max": "MAX({column})",
    "range": "MIN({column}), MAX({column})",
}


def quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


@dataclass(frozen=True)
class SqlStatement:
    sql: str
    params: tuple[Any, ...] = ()


def _compile_predicate(predicate: Predicate, params: list[Any]) -> str:
    if isinstance(predicate, Comparison):
        column = quote(predicate.column)
        if predicate.op == IS_NULL:
            return f"{column} IS NULL"
        if predicate.op == EQ:
            params.append(predicate.value)
            return f"{column} = ?"
        if predicate.op == IN:
            if not predicate.value:
                return "0"
            params.extend(predicate.value)
            return f"{column} IN ({', '.join('?' for _ in predicate.value)})"
        if predicate.op == BETWEEN:
            params.extend(predicate.value)
            return f"{column} BETWEEN ? AND ?"
        raise ValueError(f"Unknown comparison operator {predicate.op!r}")
    if isinstance(predicate, RawFragment):
        params.extend(predicate.params)
        return f"({predicate.sql})"
    if isinstance(predicate, And):
        if not predicate.terms:
            return "1"
        return " AND ".join(f"({_compile_predicate(t, params)})" for t in predicate.terms)
    if isinstance(predicate, Or):
        if not predicate.terms:
            return "0"
        return " OR ".join(f"({_compile_predicate(t, params)})" for t in predicate.terms)
    if isinstance(predicate, Not):
        # NULL comparisons count as false so the negation is a true complement
        return f"NOT COALESCE(({_compile_predicate(predicate.term, params)}), 0)"
    raise TypeError(f"Unsupported predicate {predicate!r}")


class SqliteAdapter(Adapter):
    name: ClassVar[str] = "sqlite"

    def __init__(self, conn: sqlite3.Connection, *, strict_delete: bool = False) -> None:
        super().__init__(strict_delete=strict_delete)
        self._conn = conn
        self._lock = threading.RLock()
        self._conn.execute("PRAGMA foreign_keys = ON;")

    @classmethod
    def connect(cls, database: str, *, strict_delete: bool = False) -> "SqliteAdapter":
        conn = sqlite3.connect(database, check_same_thread=False)
        return cls(conn, strict_delete=strict_delete)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------
    def compile_query(self, query: Query) -> SqlStatement:
        return self._select(query, query.projection)

    def _select(self, query: Query, projection: Optional[tuple[str, ...]]) -> SqlStatement:
        mapping = query.collection
        columns = projection if projection is not None else mapping.columns
        params: list[Any] = []
        sql = f"SELECT {', '.join(quote(c) for c in columns)} FROM {quote(mapping.name)}"
        if query.predicate is not None:
            sql += f" WHERE {_compile_predicate(query.predicate, params)}"
        if query.ordering:
            sql += " ORDER BY " + ", ".join(
                f"{quote(column)} {direction.upper()}" for column, direction in query.ordering
            )
        if query.limit_value is not None or query.offset_value:
            # SQLite only accepts OFFSET after a LIMIT; -1 means unbounded
            sql += " LIMIT ? OFFSET ?"
            params.append(query.limit_value if query.limit_value is not None else -1)
            params.append(query.offset_value)
        return SqlStatement(sql, tuple(params))

    def _aggregate_statement(
        self, query: Query, function: str, column: Optional[str]
    ) -> SqlStatement:
        try:
            template = _AGGREGATES[function]
        except KeyError:
            raise UnsupportedQueryOperationError(function, self.name) from None
        inner = self._select(query, None)
        expression = template.format(column=quote(column) if column else "")
        return SqlStatement(f"SELECT {expression} FROM ({inner.sql}) AS q", inner.params)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def _run(self, statement: SqlStatement) -> sqlite3.Cursor:
        logger.debug("Executing SQL", extra={"sql": statement.sql, "adapter": self.name})
        return self._conn.execute(statement.sql, statement.params)

    def _write(self, statement: SqlStatement) -> sqlite3.Cursor:
        with self._lock:
            cur = self._run(statement)
            self._conn.commit()
            return cur

    def execute(self, query: Query) -> list[Record]:
        statement = self.compile_query(query)
        with self._lock:
            cur = self._run(statement)
            columns = [description[0] for description in cur.description]
            return [dict(zip(columns, row)) for row in cur]

    def aggregate(self, query: Query, function: str, column: Optional[str]) -> Any:
        statement = self._aggregate_statement(query, function, column)
        with self._lock:
            row = self._run(statement).fetchone()
        if function == "range":
            return (row[0], row[1]) if row else (None, None)
        return row[0] if row else None

    def insert(self, collection: CollectionMapping, record: Record) -> Any:
        table = quote(collection.name)
        if record:
            columns = list(record)
            sql = (
                f"INSERT INTO {table} ({', '.join(quote(c) for c in columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})"
            )
            statement = SqlStatement(sql, tuple(record[c] for c in columns))
        else:
            statement = SqlStatement(f"INSERT INTO {table} DEFAULT VALUES")
        cur = self._write(statement)
        identity = record.get(collection.identity_column)
        if identity is not None:
            return identity
        rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError(f"SQLite insert failed: no lastrowid (table: {collection.name})")
        return int(rowid)

    def update(self, collection: CollectionMapping, entity_id: Any, record: Record) -> bool:
        identity = collection.identity_column
        columns = [c for c in record if c != identity]
        table = quote(collection.name)
        if not columns:
            with self._lock:
                cur = self._run(
                    SqlStatement(f"SELECT 1 FROM {table} WHERE {quote(identity)} = ?", (entity_id,))
                )
                return cur.fetchone() is not None
        sql = (
            f"UPDATE {table} SET {', '.join(f'{quote(c)} = ?' for c in columns)} "
            f"WHERE {quote(identity)} = ?"
        )
        params = tuple(record[c] for c in columns) + (entity_id,)
        return self._write(SqlStatement(sql, params)).rowcount > 0

    def _delete(self, collection: CollectionMapping, entity_id: Any) -> bool:
        sql = f"DELETE FROM {quote(collection.name)} WHERE {quote(collection.identity_column)} = ?"
        return self._write(SqlStatement(sql, (entity_id,))).rowcount > 0

    def clear(self, collection: CollectionMapping) -> None:
        self._write(SqlStatement(f"DELETE FROM {quote(collection.name)}"))
