"""Exception hierarchy for repomap.

Every error carries the context needed to build an actionable message
(collection, attribute, identity, operation) as plain attributes.
"""

from __future__ import annotations

from typing import Any, Optional


class RepomapError(Exception):
    """Base class for all errors raised by repomap."""


class MappingError(RepomapError):
    """Raised when mapping declarations are invalid."""


class NotCompiledError(RepomapError):
    """Raised when the mapping registry is used before ``compile()``."""

    def __init__(self, operation: str | None = None) -> None:
        self.operation = operation
        message = "Mapping registry is not compiled"
        if operation:
            message += f" (operation: {operation})"
        super().__init__(message)


class FrozenMappingError(RepomapError):
    """Raised on mutation or recompilation of a compiled registry."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Mapping registry is already compiled; cannot {operation}")


class UnmappedCollectionError(RepomapError, LookupError):
    def __init__(self, collection: Any) -> None:
        self.collection = collection
        super().__init__(f"No mapping for collection {collection!r}")


class UnmappedAttributeError(RepomapError, LookupError):
    def __init__(self, collection: str, attribute: str, *, kind: str = "attribute") -> None:
        self.collection = collection
        self.attribute = attribute
        super().__init__(f"Collection {collection!r} has no mapped {kind} {attribute!r}")


class CoercionError(RepomapError, ValueError):
    """Raised when a value cannot be converted to the declared attribute type."""

    def __init__(
        self,
        attribute: str,
        expected: str,
        value: Any,
        collection: Optional[str] = None,
    ) -> None:
        self.attribute = attribute
        self.expected = expected
        self.value = value
        self.collection = collection
        where = f"{collection}.{attribute}" if collection else attribute
        super().__init__(f"Cannot coerce {value!r} to {expected} for attribute {where}")


class UnsupportedQueryOperationError(RepomapError):
    def __init__(self, operation: str, adapter: str) -> None:
        self.operation = operation
        self.adapter = adapter
        super().__init__(f"Query operation {operation!r} is not supported by {adapter}")


class InvalidQueryError(RepomapError, ValueError):
    """Raised when a query operation receives invalid arguments."""


class EntityNotFoundError(RepomapError, LookupError):
    def __init__(self, collection: str, entity_id: Any, operation: str) -> None:
        self.collection = collection
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(f"{operation}: no record with id {entity_id!r} in {collection!r}")


class MissingIdentityError(RepomapError, ValueError):
    """Raised when an operation needs a persisted entity but ``id`` is null."""

    def __init__(self, collection: str, operation: str) -> None:
        self.collection = collection
        self.operation = operation
        super().__init__(f"{operation} on {collection!r} requires an entity with a non-null id")
