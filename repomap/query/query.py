"""Lazy, immutable query over one collection.

Every composition method returns a new :class:`Query`; the receiver is never
modified, so intermediate queries can be kept and reused as building blocks.
Storage is only touched by terminal methods (iteration, ``all``, ``first``,
``last``, ``count``, ``exists`` and the aggregates), and each terminal call
performs exactly one adapter round-trip. Results are never cached.

``limit`` and ``offset`` compose like any other refinement instead of running
the query: ``q.limit(1)`` is still a ``Query`` and is evaluated by iterating
it or calling a terminal.

>>> published = repo._query(lambda q: q.where(published=True))  # doctest: +SKIP
>>> drafts = repo._query().exclude(published)  # doctest: +SKIP
>>> [a.title for a in published.desc("published_at").limit(2)]  # doctest: +SKIP
['Newest', 'Older']
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional

from ..errors import InvalidQueryError, UnsupportedQueryOperationError
from ..mapping.coercer import RecordCoercer
from ..mapping.registry import CollectionMapping
from .predicates import (
    MATCH_ALL,
    Not,
    Predicate,
    RawFragment,
    conditions_to_predicate,
    conjoin,
    disjoin,
)

if TYPE_CHECKING:  # pragma: no cover - import for type checkers only
    from ..adapters.base import Adapter

ASC = "asc"
DESC = "desc"

Ordering = tuple[tuple[str, str], ...]


class Query:
    __slots__ = (
        "_mapping",
        "_adapter",
        "_coercer",
        "_predicate",
        "_ordering",
        "_limit",
        "_offset",
        "_projection",
    )

    def __init__(
        self,
        mapping: CollectionMapping,
        adapter: "Adapter",
        coercer: RecordCoercer,
        *,
        predicate: Optional[Predicate] = None,
        ordering: Ordering = (),
        limit: Optional[int] = None,
        offset: int = 0,
        projection: Optional[tuple[str, ...]] = None,
    ) -> None:
        self._mapping = mapping
        self._adapter = adapter
        self._coercer = coercer
        self._predicate = predicate
        self._ordering = ordering
        self._limit = limit
        self._offset = offset
        self._projection = projection

    # ------------------------------------------------------------------
    # Read-only state used by adapters
    # ------------------------------------------------------------------
    @property
    def collection(self) -> CollectionMapping:
        return self._mapping

    @property
    def predicate(self) -> Optional[Predicate]:
        return self._predicate

    @property
    def ordering(self) -> Ordering:
        return self._ordering

    @property
    def limit_value(self) -> Optional[int]:
        return self._limit

    @property
    def offset_value(self) -> int:
        return self._offset

    @property
    def projection(self) -> Optional[tuple[str, ...]]:
        return self._projection

    def _copy(self, **changes: Any) -> "Query":
        state = {
            "predicate": self._predicate,
            "ordering": self._ordering,
            "limit": self._limit,
            "offset": self._offset,
            "projection": self._projection,
        }
        state.update(changes)
        return Query(self._mapping, self._adapter, self._coercer, **state)

    def _require(self, operation: str) -> None:
        if operation not in self._adapter.supported_operations:
            raise UnsupportedQueryOperationError(operation, self._adapter.name)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------
    def where(self, **conditions: Any) -> "Query":
        """AND the given ``attribute=value`` conditions onto the filter.

        ``None`` matches nulls, a list/tuple/set matches any member and a
        ``range`` matches inclusively from ``start`` to ``stop - 1``.
        """
        self._require("where")
        predicate = conditions_to_predicate(self._mapping, conditions)
        return self._copy(predicate=conjoin(self._predicate, predicate))

    def or_where(self, **conditions: Any) -> "Query":
        """OR the given conditions with the filter accumulated so far."""
        self._require("or_where")
        predicate = conditions_to_predicate(self._mapping, conditions)
        return self._copy(predicate=disjoin(self._predicate, predicate))

    def where_raw(self, fragment: str, *params: Any) -> "Query":
        self._require("where_raw")
        if not fragment.strip():
            raise InvalidQueryError("Raw condition must not be empty")
        return self._copy(predicate=conjoin(self._predicate, RawFragment(fragment, params)))

    def exclude(self, other: "Query") -> "Query":
        """Drop every record ``other`` would match.

        ``other``'s filter is negated, not its rows; ordering, limit and
        offset of ``other`` are ignored.
        """
        self._require("exclude")
        if other.collection.name != self._mapping.name:
            raise InvalidQueryError(
                f"Cannot exclude a {other.collection.name!r} query from {self._mapping.name!r}"
            )
        negated = Not(other.predicate if other.predicate is not None else MATCH_ALL)
        return self._copy(predicate=conjoin(self._predicate, negated))

    def negate(self) -> "Query":
        self._require("exclude")
        return self._copy(
            predicate=Not(self._predicate if self._predicate is not None else MATCH_ALL)
        )

    def order(self, *attributes: str) -> "Query":
        """Order by ``attributes``; a trailing ``"asc"`` or ``"desc"`` sets the direction.

        ``order("published_at", "desc")`` is the same as ``desc("published_at")``.
        """
        direction = ASC
        if len(attributes) > 1 and attributes[-1].lower() in (ASC, DESC):
            direction = attributes[-1].lower()
            attributes = attributes[:-1]
        self._require("order")
        return self._copy(ordering=self._merge_ordering(attributes, direction))

    def asc(self, *attributes: str) -> "Query":
        self._require("order")
        return self._copy(ordering=self._merge_ordering(attributes, ASC))

    def desc(self, *attributes: str) -> "Query":
        self._require("order")
        return self._copy(ordering=self._merge_ordering(attributes, DESC))

    def _merge_ordering(self, attributes: tuple[str, ...], direction: str) -> Ordering:
        # A repeated key takes the new direction but keeps its original priority
        if not attributes:
            raise InvalidQueryError("order requires at least one attribute")
        ordering = list(self._ordering)
        for attribute in attributes:
            column = self._mapping.column_for(attribute)
            for index, (existing, _) in enumerate(ordering):
                if existing == column:
                    ordering[index] = (column, direction)
                    break
            else:
                ordering.append((column, direction))
        return tuple(ordering)

    def limit(self, count: int) -> "Query":
        self._require("limit")
        return self._copy(limit=_non_negative("limit", count))

    def offset(self, count: int) -> "Query":
        self._require("offset")
        return self._copy(offset=_non_negative("offset", count))

    def select(self, *attributes: str) -> "Query":
        """Restrict the loaded columns; the identity column is always kept."""
        self._require("select")
        if not attributes:
            raise InvalidQueryError("select requires at least one attribute")
        columns = [self._mapping.identity_column]
        for attribute in attributes:
            column = self._mapping.column_for(attribute)
            if column not in columns:
                columns.append(column)
        return self._copy(projection=tuple(columns))

    # ------------------------------------------------------------------
    # Terminals
    # ------------------------------------------------------------------
    def all(self) -> list[Any]:
        records = self._adapter.execute(self)
        return self._coercer.to_entities(self._mapping, records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.all())

    def first(self) -> Optional[Any]:
        limit = 1 if self._limit is None else min(self._limit, 1)
        rows = self._copy(limit=limit).all()
        return rows[0] if rows else None

    def last(self) -> Optional[Any]:
        if self._limit is not None or self._offset:
            rows = self.all()
            return rows[-1] if rows else None
        # Ties on the declared keys fall back to identity order
        ordering = self._ordering
        identity = self._mapping.identity_column
        if all(column != identity for column, _ in ordering):
            ordering += ((identity, ASC),)
        flipped = tuple(
            (column, ASC if direction == DESC else DESC) for column, direction in ordering
        )
        rows = self._copy(ordering=flipped, limit=1).all()
        return rows[0] if rows else None

    def count(self) -> int:
        self._require("count")
        return int(self._adapter.aggregate(self, "count", None) or 0)

    def exists(self) -> bool:
        return self.count() > 0

    def sum(self, attribute: str) -> Any:
        return self._aggregate("sum", attribute)

    def average(self, attribute: str) -> Optional[float]:
        return self._aggregate("avg", attribute)

    avg = average

    def min(self, attribute: str) -> Any:
        return self._loaded("min", attribute)

    def max(self, attribute: str) -> Any:
        return self._loaded("max", attribute)

    def range(self, attribute: str) -> tuple[Any, Any]:
        """Return ``(min, max)`` of ``attribute`` in a single round-trip."""
        self._require("range")
        rule = self._mapping.rule(attribute)
        low, high = self._adapter.aggregate(self, "range", rule.column)
        return rule.load(low, self._mapping.name), rule.load(high, self._mapping.name)

    def interval(self, attribute: str) -> Any:
        """Return ``max - min`` of ``attribute``, or ``None`` for an empty result."""
        low, high = self.range(attribute)
        if low is None or high is None:
            return None
        return high - low

    def _aggregate(self, function: str, attribute: str) -> Any:
        self._require(function)
        column = self._mapping.column_for(attribute)
        return self._adapter.aggregate(self, function, column)

    def _loaded(self, function: str, attribute: str) -> Any:
        rule = self._mapping.rule(attribute)
        return rule.load(self._aggregate(function, attribute), self._mapping.name)

    def native(self) -> Any:
        """Return the adapter-native form of this query (e.g. an SQL statement)."""
        return self._adapter.compile_query(self)

    def __repr__(self) -> str:
        return (
            f"<Query {self._mapping.name} where={self._predicate!r} order={self._ordering!r} "
            f"limit={self._limit!r} offset={self._offset!r}>"
        )


def _non_negative(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidQueryError(f"{name} must be a non-negative integer, got {value!r}")
    return value


QueryComposer = Callable[[Query], Query]
