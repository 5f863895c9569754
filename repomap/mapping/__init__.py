"""Mapping registry, type coercions and the record coercer."""

from .coercer import Record, RecordCoercer
from .coercions import COERCIONS, Coercion, resolve_coercion
from .registry import (
    AttributeRule,
    CollectionBuilder,
    CollectionMapping,
    CompiledMapping,
    MappingRegistry,
)

__all__ = [
    "AttributeRule",
    "COERCIONS",
    "Coercion",
    "CollectionBuilder",
    "CollectionMapping",
    "CompiledMapping",
    "MappingRegistry",
    "Record",
    "RecordCoercer",
    "resolve_coercion",
]
