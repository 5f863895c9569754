"""Storage-agnostic filter tree built by :class:`repomap.query.Query`.

Leaves reference storage columns and already-dumped storage values, so each
adapter only has to translate the tree into its own terms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from ..errors import InvalidQueryError
from ..mapping.registry import CollectionMapping

EQ = "eq"
IN = "in"
BETWEEN = "between"
IS_NULL = "is_null"


@dataclass(frozen=True)
class Comparison:
    column: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class RawFragment:
    sql: str
    params: tuple[Any, ...] = ()


@dataclass(frozen=True)
class And:
    terms: tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class Or:
    terms: tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class Not:
    term: "Predicate"


Predicate = Union[Comparison, RawFragment, And, Or, Not]

# Matches every record; ``Not(MATCH_ALL)`` matches none.
MATCH_ALL = And()


def conjoin(left: Predicate | None, right: Predicate) -> Predicate:
    if left is None:
        return right
    left_terms = left.terms if isinstance(left, And) else (left,)
    right_terms = right.terms if isinstance(right, And) else (right,)
    return And(left_terms + right_terms)


def disjoin(left: Predicate | None, right: Predicate) -> Predicate:
    if left is None:
        return right
    left_terms = left.terms if isinstance(left, Or) else (left,)
    return Or(left_terms + (right,))


def comparison_for(mapping: CollectionMapping, attribute: str, value: Any) -> Comparison:
    """Build one leaf from an attribute name and a Python value."""
    rule = mapping.rule(attribute)
    if value is None:
        return Comparison(rule.column, IS_NULL)
    if isinstance(value, range):
        if value.step != 1 or len(value) == 0:
            raise InvalidQueryError(f"Range for {attribute!r} must be non-empty with step 1")
        low = rule.dump(value.start, mapping.name)
        high = rule.dump(value[-1], mapping.name)
        return Comparison(rule.column, BETWEEN, (low, high))
    if isinstance(value, (list, tuple, set, frozenset)):
        values = tuple(rule.dump(item, mapping.name) for item in value)
        return Comparison(rule.column, IN, values)
    return Comparison(rule.column, EQ, rule.dump(value, mapping.name))


def conditions_to_predicate(
    mapping: CollectionMapping, conditions: Mapping[str, Any]
) -> Predicate:
    if not conditions:
        raise InvalidQueryError("At least one condition is required")
    leaves = tuple(comparison_for(mapping, name, value) for name, value in conditions.items())
    return leaves[0] if len(leaves) == 1 else And(leaves)
