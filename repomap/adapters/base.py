"""Adapter interface shared by every storage backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from ..errors import EntityNotFoundError
from ..mapping.coercer import Record
from ..mapping.registry import CollectionMapping
from ..query.query import Query

logger = logging.getLogger(__name__)

QUERY_OPERATIONS = frozenset(
    {
        "where",
        "or_where",
        "where_raw",
        "exclude",
        "order",
        "limit",
        "offset",
        "select",
        "count",
        "sum",
        "avg",
        "min",
        "max",
        "range",
    }
)


class Adapter(ABC):
    """Storage backend consumed by repositories.

    Implementations own their storage resource and guard it with their own
    lock; one adapter instance is normally shared by every repository that
    talks to the same database.

    ``strict_delete`` decides how deleting a missing identity is reported:
    ``False`` (default) treats it as a no-op, ``True`` raises
    :class:`repomap.errors.EntityNotFoundError`.
    """

    name: ClassVar[str] = "adapter"
    supported_operations: ClassVar[frozenset[str]] = QUERY_OPERATIONS

    def __init__(self, *, strict_delete: bool = False) -> None:
        self.strict_delete = strict_delete

    @abstractmethod
    def execute(self, query: Query) -> list[Record]:
        """Run ``query`` and return its matching records."""

    @abstractmethod
    def aggregate(self, query: Query, function: str, column: Optional[str]) -> Any:
        """Compute ``count``, ``sum``, ``avg``, ``min``, ``max`` or ``range`` over ``query``."""

    @abstractmethod
    def insert(self, collection: CollectionMapping, record: Record) -> Any:
        """Store ``record`` and return its identity."""

    @abstractmethod
    def update(self, collection: CollectionMapping, entity_id: Any, record: Record) -> bool:
        """Overwrite the record with ``entity_id``; return ``False`` if it does not exist."""

    @abstractmethod
    def _delete(self, collection: CollectionMapping, entity_id: Any) -> bool:
        """Remove the record with ``entity_id``; return whether one was removed."""

    @abstractmethod
    def clear(self, collection: CollectionMapping) -> None:
        """Remove every record of ``collection``."""

    @abstractmethod
    def compile_query(self, query: Query) -> Any:
        """Translate ``query`` into the backend-native representation."""

    def delete(self, collection: CollectionMapping, entity_id: Any) -> bool:
        deleted = self._delete(collection, entity_id)
        if not deleted:
            logger.debug(
                "Delete of missing record",
                extra={"collection": collection.name, "id": entity_id, "adapter": self.name},
            )
            if self.strict_delete:
                raise EntityNotFoundError(collection.name, entity_id, "delete")
        return deleted
