from __future__ import annotations

from typing import Any, Mapping, Protocol, TypeVar, runtime_checkable

E = TypeVar("E", bound="EntityProtocol")


@runtime_checkable
class EntityProtocol(Protocol):
    """Capabilities repomap needs from an entity type.

    Any class providing an ``id`` attribute, a ``from_attributes`` constructor
    and a ``with_id`` copy method can be mapped, whether or not it derives from
    :class:`repomap.domain.entities.Entity`.
    """

    @property
    def id(self) -> Any: ...

    @classmethod
    def from_attributes(cls: type[E], attributes: Mapping[str, Any]) -> E: ...

    def with_id(self: E, entity_id: Any) -> E: ...
