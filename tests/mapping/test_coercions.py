from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from repomap.errors import CoercionError, MappingError
from repomap.mapping.coercions import Coercion, resolve_coercion
from repomap.mapping.registry import AttributeRule


def _rule(kind: Any) -> AttributeRule:
    return AttributeRule("field", kind, "field", resolve_coercion(kind))


@pytest.mark.parametrize(
    "kind, raw, expected",
    [
        (int, "30", 30),
        (int, 4.0, 4),
        (int, Decimal("12"), 12),
        (float, "2.5", 2.5),
        (float, 3, 3.0),
        (str, 42, "42"),
        (str, b"abc", "abc"),
        (bool, 1, True),
        (bool, "no", False),
        (Decimal, "1.50", Decimal("1.50")),
        (date, "2024-01-02", date(2024, 1, 2)),
        (date, datetime(2024, 1, 2, 3, 4), date(2024, 1, 2)),
        (datetime, "2024-01-02T03:04:05", datetime(2024, 1, 2, 3, 4, 5)),
        (datetime, date(2024, 1, 2), datetime(2024, 1, 2)),
        (datetime, 0, datetime(1970, 1, 1, tzinfo=timezone.utc)),
        (list, "[1, 2]", [1, 2]),
        (dict, '{"a": 1}', {"a": 1}),
    ],
)
def test_load_converts_raw_values(kind: Any, raw: Any, expected: Any) -> None:
    assert _rule(kind).load(raw) == expected


@pytest.mark.parametrize(
    "kind, value, stored",
    [
        (int, 7, 7),
        (bool, True, True),
        (Decimal, Decimal("1.50"), "1.50"),
        (date, date(2024, 1, 2), "2024-01-02"),
        (datetime, datetime(2024, 1, 2, 3, 4), "2024-01-02T03:04:00"),
        (list, [2, 1], "[2, 1]"),
        (dict, {"b": 1, "a": 2}, '{"a": 2, "b": 1}'),
    ],
)
def test_dump_produces_storage_values(kind: Any, value: Any, stored: Any) -> None:
    assert _rule(kind).dump(value) == stored


def test_none_passes_through() -> None:
    rule = _rule(int)
    assert rule.load(None) is None
    assert rule.dump(None) is None


@pytest.mark.parametrize(
    "kind, raw",
    [
        (int, "abc"),
        (int, 3.5),
        (int, True),
        (float, "x"),
        (bool, "maybe"),
        (Decimal, "one"),
        (date, "2024-13-40"),
        (datetime, object()),
        (list, '{"a": 1}'),
        (dict, "not json"),
    ],
)
def test_bad_values_raise_coercion_error(kind: Any, raw: Any) -> None:
    with pytest.raises(CoercionError) as exc:
        _rule(kind).load(raw, "things")
    assert exc.value.attribute == "field"
    assert exc.value.collection == "things"
    assert exc.value.value is raw
    assert exc.value.expected == resolve_coercion(kind).name


def test_coercion_error_message_names_context() -> None:
    with pytest.raises(CoercionError, match=r"'abc' to int for attribute users.field"):
        _rule(int).load("abc", "users")


def test_custom_coercion_instances_are_accepted() -> None:
    class Upper(Coercion):
        name = "upper"

        def load(self, value: Any) -> str:
            return str(value).upper()

    upper = Upper()
    assert resolve_coercion(upper) is upper
    assert _rule(upper).load("abc") == "ABC"


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(MappingError):
        resolve_coercion(complex)
