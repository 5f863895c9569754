from __future__ import annotations

from datetime import date

import pytest

from repomap.domain.entities import Entity
from repomap.errors import CoercionError, NotCompiledError, UnmappedCollectionError
from repomap.mapping import MappingRegistry, RecordCoercer


class User(Entity):
    name: str | None = None
    age: int | None = None
    born_on: date | None = None


class Loose(Entity):
    age: int | None = None


def _registry() -> MappingRegistry:
    registry = MappingRegistry()
    with registry.collection("users") as users:
        users.entity(User)
        users.attribute("name", str, column="user_name")
        users.attribute("age", int)
        users.attribute("born_on", date)
    with registry.collection("loose") as loose:
        loose.entity(Loose)
        # Declared as text on purpose: the entity itself expects an int
        loose.attribute("age", str)
    registry.compile()
    return registry


def test_to_entity_applies_coercions_and_column_names() -> None:
    coercer = RecordCoercer(_registry())
    user = coercer.to_entity(
        "users", {"id": 3, "user_name": "Ada", "age": "30", "born_on": "1990-05-01"}
    )
    assert isinstance(user, User)
    assert user.id == 3
    assert user.name == "Ada"
    assert user.age == 30
    assert user.born_on == date(1990, 5, 1)


def test_missing_columns_use_entity_defaults() -> None:
    user = RecordCoercer(_registry()).to_entity("users", {"id": 1})
    assert user.name is None
    assert user.age is None


def test_unmapped_columns_are_ignored() -> None:
    user = RecordCoercer(_registry()).to_entity("users", {"id": 1, "extra": "x"})
    assert user.id == 1


def test_to_record_uses_columns_and_skips_null_id() -> None:
    coercer = RecordCoercer(_registry())
    record = coercer.to_record(User(name="Ada", age=30, born_on=date(1990, 5, 1)))
    assert record == {"user_name": "Ada", "age": 30, "born_on": "1990-05-01"}

    with_id = coercer.to_record(User(id=9, name="Ada"))
    assert with_id["id"] == 9
    assert with_id["age"] is None


def test_round_trip_preserves_mapped_attributes() -> None:
    coercer = RecordCoercer(_registry())
    for user in [
        User(name="Ada", age=30, born_on=date(1990, 5, 1)),
        User(id=4, name="Grace"),
        User(),
    ]:
        again = coercer.to_entity("users", coercer.to_record(user))
        assert again.model_dump() == user.model_dump()


def test_coercion_failure_names_attribute() -> None:
    coercer = RecordCoercer(_registry())
    with pytest.raises(CoercionError) as exc:
        coercer.to_entity("users", {"id": 1, "age": "thirty"})
    assert exc.value.attribute == "age"
    assert exc.value.value == "thirty"
    assert exc.value.collection == "users"


def test_entity_validation_failure_is_a_coercion_error() -> None:
    coercer = RecordCoercer(_registry())
    with pytest.raises(CoercionError) as exc:
        coercer.to_entity("loose", {"id": 1, "age": "many"})
    assert exc.value.attribute == "age"
    assert exc.value.collection == "loose"


def test_batch_aborts_on_first_failure() -> None:
    coercer = RecordCoercer(_registry())
    records = [{"id": 1, "age": "1"}, {"id": 2, "age": "bad"}, {"id": 3, "age": "3"}]
    with pytest.raises(CoercionError):
        coercer.to_entities("users", records)


def test_requires_compiled_registry_and_known_types() -> None:
    registry = MappingRegistry()
    registry.collection("users").entity(User)
    coercer = RecordCoercer(registry)
    with pytest.raises(NotCompiledError):
        coercer.to_entity("users", {"id": 1})

    registry.compile()

    class Stranger(Entity):
        pass

    with pytest.raises(UnmappedCollectionError):
        coercer.to_record(Stranger())
