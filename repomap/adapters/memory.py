"""In-process adapter keeping each collection as an ordered list of records.

Handy for tests and prototypes. Null handling follows SQL: comparisons against
a missing value never match, nulls sort first ascending and last descending.
Records keep their dumped storage form, but filters, ordering and ``min`` /
``max`` compare values loaded through the column's coercion, so a ``Decimal``
stored as text still orders numerically.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Optional

from ..errors import UnsupportedQueryOperationError
from ..mapping.coercer import Record
from ..mapping.registry import CollectionMapping
from ..query.predicates import BETWEEN, EQ, IN, IS_NULL, And, Comparison, Not, Or, Predicate
from ..query.query import DESC, Ordering, Query
from .base import QUERY_OPERATIONS, Adapter


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is not None, value)


def _numeric(value: Any) -> Any:
    if isinstance(value, (int, float, Decimal)):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{value!r} is not numeric") from None


@dataclass(frozen=True)
class MemoryPlan:
    """Filter, sort, slice and project steps derived from a :class:`Query`."""

    predicate: Optional[Predicate]
    ordering: Ordering
    limit: Optional[int]
    offset: int
    projection: Optional[tuple[str, ...]]
    mapping: Optional[CollectionMapping] = None

    def load(self, column: str, value: Any) -> Any:
        """Return ``value`` in its attribute type, for comparisons."""
        if self.mapping is None:
            return value
        rule = self.mapping.by_column.get(column)
        return rule.load(value, self.mapping.name) if rule is not None else value

    def matches(self, predicate: Optional[Predicate], record: Record) -> bool:
        if predicate is None:
            return True
        if isinstance(predicate, Comparison):
            column = predicate.column
            value = self.load(column, record.get(column))
            if predicate.op == IS_NULL:
                return value is None
            if value is None:
                return False
            if predicate.op == EQ:
                return bool(value == self.load(column, predicate.value))
            if predicate.op == IN:
                return any(value == self.load(column, member) for member in predicate.value)
            if predicate.op == BETWEEN:
                low, high = (self.load(column, bound) for bound in predicate.value)
                try:
                    return bool(low <= value <= high)
                except TypeError:
                    return False
            raise ValueError(f"Unknown comparison operator {predicate.op!r}")
        if isinstance(predicate, And):
            return all(self.matches(term, record) for term in predicate.terms)
        if isinstance(predicate, Or):
            return any(self.matches(term, record) for term in predicate.terms)
        if isinstance(predicate, Not):
            return not self.matches(predicate.term, record)
        raise UnsupportedQueryOperationError("where_raw", MemoryAdapter.name)

    def run(self, records: list[Record]) -> list[Record]:
        rows = [record for record in records if self.matches(self.predicate, record)]
        # Stable sorts applied from the least to the most significant key
        for column, direction in reversed(self.ordering):
            rows.sort(
                key=lambda r: _sort_key(self.load(column, r.get(column))),
                reverse=direction == DESC,
            )
        end = None if self.limit is None else self.offset + self.limit
        rows = rows[self.offset : end]
        if self.projection is not None:
            rows = [{c: row[c] for c in self.projection if c in row} for row in rows]
        return rows


class MemoryAdapter(Adapter):
    name: ClassVar[str] = "memory"
    supported_operations: ClassVar[frozenset[str]] = QUERY_OPERATIONS - {"where_raw"}

    def __init__(self, *, strict_delete: bool = False) -> None:
        super().__init__(strict_delete=strict_delete)
        self._collections: dict[str, list[Record]] = {}
        self._lock = threading.RLock()

    def _table(self, collection: CollectionMapping) -> list[Record]:
        return self._collections.setdefault(collection.name, [])

    def compile_query(self, query: Query) -> MemoryPlan:
        return MemoryPlan(
            predicate=query.predicate,
            ordering=query.ordering,
            limit=query.limit_value,
            offset=query.offset_value,
            projection=query.projection,
            mapping=query.collection,
        )

    def execute(self, query: Query) -> list[Record]:
        plan = self.compile_query(query)
        with self._lock:
            snapshot = [dict(record) for record in self._table(query.collection)]
        return plan.run(snapshot)

    def aggregate(self, query: Query, function: str, column: Optional[str]) -> Any:
        plan = replace(self.compile_query(query), projection=None)
        with self._lock:
            snapshot = [dict(record) for record in self._table(query.collection)]
        rows = plan.run(snapshot)
        if function == "count":
            return len(rows)
        values = [row.get(column) for row in rows if column is not None]
        values = [value for value in values if value is not None]
        if function == "sum":
            return sum(_numeric(value) for value in values) if values else None
        if function == "avg":
            return float(sum(_numeric(value) for value in values)) / len(values) if values else None
        if function in ("min", "max", "range"):
            if not values:
                return (None, None) if function == "range" else None
            assert column is not None
            loaded = [plan.load(column, value) for value in values]
            if function == "min":
                return min(loaded)
            if function == "max":
                return max(loaded)
            return (min(loaded), max(loaded))
        raise UnsupportedQueryOperationError(function, self.name)

    def insert(self, collection: CollectionMapping, record: Record) -> Any:
        identity = collection.identity_column
        stored = dict(record)
        with self._lock:
            table = self._table(collection)
            if stored.get(identity) is None:
                # Same policy as SQLite rowids: one past the current maximum
                numeric_ids = [
                    row[identity] for row in table if isinstance(row.get(identity), int)
                ]
                stored[identity] = max(numeric_ids, default=0) + 1
            elif any(row.get(identity) == stored[identity] for row in table):
                raise ValueError(
                    f"Duplicate identity {stored[identity]!r} in collection {collection.name!r}"
                )
            for column in collection.columns:
                stored.setdefault(column, None)
            table.append(stored)
            return stored[identity]

    def update(self, collection: CollectionMapping, entity_id: Any, record: Record) -> bool:
        identity = collection.identity_column
        with self._lock:
            for row in self._table(collection):
                if row.get(identity) == entity_id:
                    row.update({k: v for k, v in record.items() if k != identity})
                    return True
        return False

    def _delete(self, collection: CollectionMapping, entity_id: Any) -> bool:
        identity = collection.identity_column
        with self._lock:
            table = self._table(collection)
            for index, row in enumerate(table):
                if row.get(identity) == entity_id:
                    del table[index]
                    return True
        return False

    def clear(self, collection: CollectionMapping) -> None:
        with self._lock:
            self._table(collection).clear()
