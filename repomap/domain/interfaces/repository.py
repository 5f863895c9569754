from __future__ import annotations

from typing import Any, Protocol, TypeVar

from .entity import EntityProtocol

E = TypeVar("E", bound=EntityProtocol)


class PublicRepository(Protocol[E]):
    """Public surface of a repository.

    Query composition is not part of this protocol: repositories build queries
    through their protected ``_query`` method and expose named finders instead.

    >>> repo.persist(User(name="Ada"))  # doctest: +SKIP
    User(id=1, name='Ada')
    """

    def persist(self, entity: E) -> E: ...

    def create(self, entity: E) -> E: ...

    def update(self, entity: E) -> E: ...

    def delete(self, entity: E) -> None: ...

    def find(self, entity_id: Any) -> E: ...

    def all(self) -> list[E]: ...

    def first(self) -> E | None: ...

    def last(self) -> E | None: ...

    def count(self) -> int: ...

    def clear(self) -> None: ...
