"""Repository base class.

A repository binds one mapped collection to one adapter. Its public methods
(:class:`repomap.domain.interfaces.PublicRepository`) are the only way callers
should reach storage; query composition stays behind the protected
:meth:`Repository._query` so subclasses expose intention-revealing finders:

>>> class ArticleRepository(Repository[Article]):  # doctest: +SKIP
...     collection = "articles"
...
...     def published(self) -> list[Article]:
...         return self._query(lambda q: q.where(published=True).desc("published_at")).all()
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, Optional, TypeVar

from ..adapters.base import Adapter
from ..domain.interfaces import EntityProtocol
from ..errors import EntityNotFoundError, MissingIdentityError
from ..mapping.coercer import RecordCoercer
from ..mapping.registry import CollectionMapping, MappingRegistry
from ..query.query import Query, QueryComposer

E = TypeVar("E", bound=EntityProtocol)

logger = logging.getLogger(__name__)


class Repository(Generic[E]):
    """Mediates between entities of one collection and their storage."""

    collection: ClassVar[str]

    _default_adapter: ClassVar[Optional[Adapter]] = None
    _default_registry: ClassVar[Optional[MappingRegistry]] = None

    def __init__(
        self,
        adapter: Optional[Adapter] = None,
        registry: Optional[MappingRegistry] = None,
    ) -> None:
        adapter = adapter or type(self)._default_adapter
        registry = registry or type(self)._default_registry
        if adapter is None or registry is None:
            raise RuntimeError(
                f"{type(self).__name__} needs an adapter and a mapping registry; "
                "pass them or call Repository.bind() at start-up"
            )
        self._adapter = adapter
        self._registry = registry
        self._coercer = RecordCoercer(registry)

    @classmethod
    def bind(cls, adapter: Adapter, registry: MappingRegistry) -> None:
        """Set the adapter and registry used by instances created without them."""
        cls._default_adapter = adapter
        cls._default_registry = registry

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    @property
    def _mapping(self) -> CollectionMapping:
        # Raises NotCompiledError until the registry is compiled
        return self._registry.mapping_for(self.collection)

    def _checked(self, entity: E, operation: str) -> CollectionMapping:
        mapping = self._mapping
        if type(entity) is not mapping.entity_type:
            raise TypeError(
                f"{operation} on {mapping.name!r} expects {mapping.entity_type.__name__}, "
                f"got {type(entity).__name__}"
            )
        return mapping

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def persist(self, entity: E) -> E:
        if entity.id is None:
            return self.create(entity)
        return self.update(entity)

    def create(self, entity: E) -> E:
        mapping = self._checked(entity, "create")
        record = self._coercer.to_record(entity)
        entity_id = self._adapter.insert(mapping, record)
        logger.debug(
            "Entity created",
            extra={"collection": mapping.name, "id": entity_id, "operation": "create"},
        )
        return entity.with_id(entity_id)

    def update(self, entity: E) -> E:
        mapping = self._checked(entity, "update")
        if entity.id is None:
            raise MissingIdentityError(mapping.name, "update")
        record = self._coercer.to_record(entity)
        if not self._adapter.update(mapping, entity.id, record):
            raise EntityNotFoundError(mapping.name, entity.id, "update")
        logger.debug(
            "Entity updated",
            extra={"collection": mapping.name, "id": entity.id, "operation": "update"},
        )
        return entity

    def delete(self, entity: E) -> None:
        mapping = self._checked(entity, "delete")
        if entity.id is None:
            raise MissingIdentityError(mapping.name, "delete")
        deleted = self._adapter.delete(mapping, entity.id)
        logger.debug(
            "Entity deleted",
            extra={
                "collection": mapping.name,
                "id": entity.id,
                "operation": "delete",
                "deleted": deleted,
            },
        )

    def clear(self) -> None:
        mapping = self._mapping
        self._adapter.clear(mapping)
        logger.debug("Collection cleared", extra={"collection": mapping.name, "operation": "clear"})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find(self, entity_id: Any) -> E:
        mapping = self._mapping
        entity = self._query().where(**{mapping.identity: entity_id}).first()
        if entity is None:
            raise EntityNotFoundError(mapping.name, entity_id, "find")
        return entity

    def all(self) -> list[E]:
        return self._query().all()

    def first(self) -> Optional[E]:
        return self._query().asc(self._mapping.identity).first()

    def last(self) -> Optional[E]:
        return self._query().asc(self._mapping.identity).last()

    def count(self) -> int:
        return self._query().count()

    def _query(self, compose: Optional[QueryComposer] = None) -> Query:
        """Return a fresh query over this collection, optionally refined by ``compose``."""
        query = Query(self._mapping, self._adapter, self._coercer)
        return compose(query) if compose is not None else query

    def _exclude(self, query: Query) -> Query:
        return self._query().exclude(query)
