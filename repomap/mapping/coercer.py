from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from ..errors import CoercionError
from .registry import CollectionMapping, MappingRegistry

Record = dict[str, Any]


class RecordCoercer:
    """Translate storage records to entities and back using the compiled mapping.

    >>> coercer = RecordCoercer(registry)  # doctest: +SKIP
    >>> coercer.to_entity("users", {"id": 1, "name": "Ada", "age": "30"})  # doctest: +SKIP
    User(id=1, name='Ada', age=30)
    """

    def __init__(self, registry: MappingRegistry) -> None:
        self._registry = registry

    def to_entity(self, collection: str | CollectionMapping, record: Mapping[str, Any]) -> Any:
        mapping = self._resolve(collection)
        attributes: dict[str, Any] = {}
        for rule in mapping.attributes:
            if rule.column in record:
                attributes[rule.name] = rule.load(record[rule.column], mapping.name)
        try:
            return mapping.entity_type.from_attributes(attributes)
        except ValidationError as exc:
            # Report the first offending attribute; pydantic lists them in order
            error = exc.errors()[0]
            attribute = str(error["loc"][0]) if error.get("loc") else "<entity>"
            raise CoercionError(
                attribute,
                error.get("type", mapping.entity_type.__name__),
                error.get("input"),
                mapping.name,
            ) from exc

    def to_entities(
        self, collection: str | CollectionMapping, records: Iterable[Mapping[str, Any]]
    ) -> list[Any]:
        """Convert a batch of records; the first coercion failure aborts the batch."""
        mapping = self._resolve(collection)
        return [self.to_entity(mapping, record) for record in records]

    def to_record(self, entity: Any) -> Record:
        mapping = self._registry.mapping_for_entity(type(entity))
        record: Record = {}
        for rule in mapping.attributes:
            value = getattr(entity, rule.name, None)
            if rule.name == mapping.identity and value is None:
                continue
            record[rule.column] = rule.dump(value, mapping.name)
        return record

    def _resolve(self, collection: str | CollectionMapping) -> CollectionMapping:
        if isinstance(collection, CollectionMapping):
            return collection
        return self._registry.mapping_for(collection)
