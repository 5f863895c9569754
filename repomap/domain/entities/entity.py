from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Identity-bearing domain object.

    Entities are immutable values. Equality is identity based: two entities are
    equal when they share a type and a non-null ``id``; an entity without ``id``
    only equals itself. Unknown keys given to the constructor are ignored.

    >>> class User(Entity):
    ...     name: str | None = None
    >>> User(id=1, name="Ada") == User(id=1, name="Grace")
    True
    >>> User.from_attributes({"name": "Ada", "nickname": "ad"}).id is None
    True
    """

    id: Optional[int] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> "Entity":
        return cls.model_validate(dict(attributes))

    def with_id(self, entity_id: Any) -> "Entity":
        """Return a copy of this entity carrying ``entity_id``."""
        return self.model_copy(update={"id": entity_id})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or type(self) is not type(other):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return bool(self.id == other.id)

    def __hash__(self) -> int:
        if self.id is None:
            return object.__hash__(self)
        return hash((type(self), self.id))
