"""Composable queries and the filter tree they accumulate."""

from .predicates import MATCH_ALL, And, Comparison, Not, Or, Predicate, RawFragment
from .query import ASC, DESC, Query, QueryComposer

__all__ = [
    "ASC",
    "DESC",
    "MATCH_ALL",
    "And",
    "Comparison",
    "Not",
    "Or",
    "Predicate",
    "Query",
    "QueryComposer",
    "RawFragment",
]
