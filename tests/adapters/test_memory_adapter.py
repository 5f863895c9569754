# mypy: ignore-errors

from __future__ import annotations

import pytest

from repomap.adapters.memory import MemoryAdapter, MemoryPlan
from repomap.domain.entities import Entity
from repomap.errors import EntityNotFoundError
from repomap.mapping import MappingRegistry, RecordCoercer
from repomap.query import Query


class Task(Entity):
    title: str | None = None
    priority: int | None = None
    done: bool | None = None


def _query(adapter: MemoryAdapter) -> Query:
    registry = MappingRegistry()
    with registry.collection("tasks") as tasks:
        tasks.entity(Task)
        tasks.attribute("title", str)
        tasks.attribute("priority", int)
        tasks.attribute("done", bool)
    registry.compile()
    return Query(registry.mapping_for("tasks"), adapter, RecordCoercer(registry))


def test_insert_assigns_increasing_ids_and_fills_columns() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    assert adapter.insert(q.collection, {"title": "a"}) == 1
    assert adapter.insert(q.collection, {"id": 7, "title": "b"}) == 7
    assert adapter.insert(q.collection, {"title": "c"}) == 8
    assert adapter.execute(q.where(id=1)) == [
        {"id": 1, "title": "a", "priority": None, "done": None}
    ]
    with pytest.raises(ValueError):
        adapter.insert(q.collection, {"id": 7})


def test_records_are_copied_in_and_out() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    record = {"title": "a"}
    adapter.insert(q.collection, record)
    record["title"] = "changed"
    rows = adapter.execute(q)
    rows[0]["title"] = "mutated"
    assert adapter.execute(q)[0]["title"] == "a"


def test_update_delete_and_clear() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    task_id = adapter.insert(q.collection, {"title": "a", "priority": 1})
    assert adapter.update(q.collection, task_id, {"id": task_id, "title": "b"}) is True
    assert adapter.execute(q)[0]["title"] == "b"
    assert adapter.execute(q)[0]["priority"] == 1
    assert adapter.update(q.collection, 99, {"title": "x"}) is False
    assert adapter.delete(q.collection, 99) is False
    assert adapter.delete(q.collection, task_id) is True
    adapter.insert(q.collection, {"title": "c"})
    adapter.clear(q.collection)
    assert adapter.execute(q) == []
    assert q.count() == 0


def test_strict_delete() -> None:
    adapter = MemoryAdapter(strict_delete=True)
    q = _query(adapter)
    with pytest.raises(EntityNotFoundError):
        adapter.delete(q.collection, 1)


def test_sorting_places_nulls_like_sql() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    for title, priority in (("a", 2), ("b", None), ("c", 1), ("d", 2)):
        adapter.insert(q.collection, {"title": title, "priority": priority})
    assert [t.title for t in q.asc("priority", "title")] == ["b", "c", "a", "d"]
    assert [t.title for t in q.desc("priority").asc("title")] == ["a", "d", "c", "b"]
    assert [t.title for t in q.asc("title").offset(1).limit(2)] == ["b", "c"]
    assert [t.title for t in q.asc("title").offset(3)] == ["d"]


def test_filters_follow_sql_null_semantics() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    for title, done in (("a", True), ("b", False), ("c", None)):
        adapter.insert(q.collection, {"title": title, "done": done})
    assert [t.title for t in q.where(done=True)] == ["a"]
    assert [t.title for t in q.where(done=None)] == ["c"]
    assert [t.title for t in q.exclude(q.where(done=True)).asc("title")] == ["b", "c"]
    assert [t.title for t in q.where(done=[True, False]).asc("title")] == ["a", "b"]
    assert [t.title for t in q.where(title="a").or_where(title="c").asc("title")] == ["a", "c"]
    assert list(q.exclude(q)) == []
    assert [t.title for t in q.where(title="a").negate().asc("title")] == ["b", "c"]


def test_projection_loads_partial_entities() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    adapter.insert(q.collection, {"title": "a", "priority": 3})
    task = q.select("title").first()
    assert task.id == 1
    assert task.title == "a"
    assert task.priority is None


def test_compile_query_returns_plan() -> None:
    adapter = MemoryAdapter()
    q = _query(adapter)
    plan = adapter.compile_query(q.where(priority=1).limit(5))
    assert isinstance(plan, MemoryPlan)
    assert plan.run([{"id": 1, "priority": 1}, {"id": 2, "priority": 2}]) == [
        {"id": 1, "priority": 1}
    ]
