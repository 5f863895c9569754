"""repomap: repositories, mappings and adapters for plain domain entities.

Typical start-up::

    registry = MappingRegistry()
    with registry.collection("users") as users:
        users.entity(User)
        users.attribute("name", str)
        users.attribute("age", int)
    registry.compile()

    adapter = build_adapter()
    repo = UserRepository(adapter, registry)
"""

from .adapters import Adapter, MemoryAdapter, SqliteAdapter, build_adapter
from .domain.entities import Entity
from .domain.interfaces import EntityProtocol, PublicRepository
from .errors import (
    CoercionError,
    EntityNotFoundError,
    FrozenMappingError,
    InvalidQueryError,
    MappingError,
    MissingIdentityError,
    NotCompiledError,
    RepomapError,
    UnmappedAttributeError,
    UnmappedCollectionError,
    UnsupportedQueryOperationError,
)
from .mapping import Coercion, MappingRegistry, RecordCoercer
from .query import Query
from .repositories import Repository

__all__ = [
    "Adapter",
    "CoercionError",
    "Coercion",
    "Entity",
    "EntityNotFoundError",
    "EntityProtocol",
    "FrozenMappingError",
    "InvalidQueryError",
    "MappingError",
    "MappingRegistry",
    "MemoryAdapter",
    "MissingIdentityError",
    "NotCompiledError",
    "PublicRepository",
    "Query",
    "RecordCoercer",
    "RepomapError",
    "Repository",
    "SqliteAdapter",
    "UnmappedAttributeError",
    "UnmappedCollectionError",
    "UnsupportedQueryOperationError",
    "build_adapter",
]
