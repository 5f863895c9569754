"""Mapping registry: collection <-> entity type <-> attribute/column rules.

Declarations are accumulated by :class:`MappingRegistry` during start-up and
frozen into a :class:`CompiledMapping` by :meth:`MappingRegistry.compile`.
The compiled form is built from frozen dataclasses, tuples and read-only
mapping proxies, so it can be shared by any number of threads.

>>> from repomap.domain.entities import Entity
>>> class User(Entity):
...     name: str | None = None
>>> registry = MappingRegistry()
>>> with registry.collection("users") as users:
...     _ = users.entity(User)
...     _ = users.attribute("name", str, column="user_name")
>>> _ = registry.compile()
>>> registry.column_for(User, "name")
'user_name'
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import (
    CoercionError,
    FrozenMappingError,
    MappingError,
    NotCompiledError,
    UnmappedAttributeError,
    UnmappedCollectionError,
)
from .coercions import Coercion, resolve_coercion

DEFAULT_IDENTITY = "id"


@dataclass(frozen=True)
class AttributeRule:
    """How one entity attribute is stored."""

    name: str
    type: Any
    column: str
    coercion: Coercion = field(repr=False, compare=False)

    def load(self, value: Any, collection: Optional[str] = None) -> Any:
        if value is None:
            return None
        try:
            return self.coercion.load(value)
        except (ValueError, TypeError, ArithmeticError):
            raise CoercionError(self.name, self.coercion.name, value, collection) from None

    def dump(self, value: Any, collection: Optional[str] = None) -> Any:
        if value is None:
            return None
        try:
            return self.coercion.dump(value)
        except (ValueError, TypeError, ArithmeticError):
            raise CoercionError(self.name, self.coercion.name, value, collection) from None


@dataclass(frozen=True)
class CollectionMapping:
    """Compiled mapping for a single collection."""

    name: str
    entity_type: type
    identity: str
    attributes: tuple[AttributeRule, ...]
    by_attribute: Mapping[str, AttributeRule] = field(repr=False, compare=False)
    by_column: Mapping[str, AttributeRule] = field(repr=False, compare=False)

    @property
    def identity_column(self) -> str:
        return self.by_attribute[self.identity].column

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(rule.column for rule in self.attributes)

    def rule(self, attribute: str) -> AttributeRule:
        try:
            return self.by_attribute[attribute]
        except KeyError:
            raise UnmappedAttributeError(self.name, attribute) from None

    def column_for(self, attribute: str) -> str:
        return self.rule(attribute).column

    def attribute_for(self, column: str) -> str:
        try:
            return self.by_column[column].name
        except KeyError:
            raise UnmappedAttributeError(self.name, column, kind="column") from None


@dataclass(frozen=True)
class CompiledMapping:
    collections: Mapping[str, CollectionMapping]
    by_entity_type: Mapping[type, CollectionMapping]

    def mapping_for(self, collection: str) -> CollectionMapping:
        try:
            return self.collections[collection]
        except KeyError:
            raise UnmappedCollectionError(collection) from None

    def mapping_for_entity(self, entity_type: type) -> CollectionMapping:
        try:
            return self.by_entity_type[entity_type]
        except KeyError:
            raise UnmappedCollectionError(entity_type) from None


class CollectionBuilder:
    """Accumulates the declarations of one collection.

    Use it as a context manager returned by :meth:`MappingRegistry.collection`.
    """

    def __init__(self, registry: "MappingRegistry", name: str) -> None:
        self._registry = registry
        self.name = name
        self.entity_type: Optional[type] = None
        self.identity_name = DEFAULT_IDENTITY
        self.attributes: list[tuple[str, Any, str]] = []

    def __enter__(self) -> "CollectionBuilder":
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def entity(self, entity_type: type) -> "CollectionBuilder":
        self._registry._ensure_mutable("declare an entity")
        self.entity_type = entity_type
        return self

    def identity(self, attribute: str) -> "CollectionBuilder":
        self._registry._ensure_mutable("declare an identity")
        self.identity_name = attribute
        return self

    def attribute(
        self, name: str, kind: Any, column: Optional[str] = None
    ) -> "CollectionBuilder":
        self._registry._ensure_mutable("declare an attribute")
        self.attributes.append((name, kind, column or name))
        return self

    def build(self) -> CollectionMapping:
        if self.entity_type is None:
            raise MappingError(f"Collection {self.name!r} has no entity type")
        rules: list[AttributeRule] = []
        seen_columns: set[str] = set()
        for name, kind, column in self.attributes:
            if any(rule.name == name for rule in rules):
                raise MappingError(f"Attribute {name!r} declared twice in {self.name!r}")
            if column in seen_columns:
                raise MappingError(f"Column {column!r} mapped twice in {self.name!r}")
            seen_columns.add(column)
            rules.append(AttributeRule(name, kind, column, resolve_coercion(kind)))
        if not any(rule.name == self.identity_name for rule in rules):
            if self.identity_name in seen_columns:
                raise MappingError(
                    f"Identity {self.identity_name!r} clashes with a column in {self.name!r}"
                )
            rules.insert(
                0,
                AttributeRule(self.identity_name, int, self.identity_name, resolve_coercion(int)),
            )
        return CollectionMapping(
            name=self.name,
            entity_type=self.entity_type,
            identity=self.identity_name,
            attributes=tuple(rules),
            by_attribute=MappingProxyType({rule.name: rule for rule in rules}),
            by_column=MappingProxyType({rule.column: rule for rule in rules}),
        )


class MappingRegistry:
    """Builder and holder of the process-wide mapping.

    Declaring collections and compiling belong to the start-up phase and are
    expected to run on one thread. Once compiled the registry is read-only
    and lookups need no locking.
    """

    def __init__(self) -> None:
        self._builders: dict[str, CollectionBuilder] = {}
        self._compiled: Optional[CompiledMapping] = None
        self._lock = threading.Lock()

    @property
    def is_compiled(self) -> bool:
        return self._compiled is not None

    @property
    def compiled(self) -> CompiledMapping:
        compiled = self._compiled
        if compiled is None:
            raise NotCompiledError()
        return compiled

    def _ensure_mutable(self, operation: str) -> None:
        if self._compiled is not None:
            raise FrozenMappingError(operation)

    def collection(self, name: str) -> CollectionBuilder:
        self._ensure_mutable("declare a collection")
        if name in self._builders:
            raise MappingError(f"Collection {name!r} is already declared")
        builder = CollectionBuilder(self, name)
        self._builders[name] = builder
        return builder

    def compile(self) -> CompiledMapping:
        with self._lock:
            self._ensure_mutable("compile")
            collections: dict[str, CollectionMapping] = {}
            by_entity_type: dict[type, CollectionMapping] = {}
            for name, builder in self._builders.items():
                mapping = builder.build()
                if mapping.entity_type in by_entity_type:
                    raise MappingError(
                        f"Entity {mapping.entity_type.__name__} is mapped to both "
                        f"{by_entity_type[mapping.entity_type].name!r} and {name!r}"
                    )
                collections[name] = mapping
                by_entity_type[mapping.entity_type] = mapping
            self._compiled = CompiledMapping(
                collections=MappingProxyType(collections),
                by_entity_type=MappingProxyType(by_entity_type),
            )
            return self._compiled

    def mapping_for(self, collection: str) -> CollectionMapping:
        return self.compiled.mapping_for(collection)

    def mapping_for_entity(self, entity_type: type) -> CollectionMapping:
        return self.compiled.mapping_for_entity(entity_type)

    def column_for(self, entity_type: type, attribute: str) -> str:
        return self.mapping_for_entity(entity_type).column_for(attribute)

    def attribute_for(self, collection: str, column: str) -> str:
        return self.mapping_for(collection).attribute_for(column)
