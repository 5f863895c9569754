"""Type coercions applied between storage values and entity attributes.

A :class:`Coercion` converts a raw storage value into the declared Python
type (``load``) and a Python value into something every adapter can store
(``dump``). ``None`` passes through untouched in both directions.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from ..errors import MappingError

_TRUE_SET = {"1", "true", "t", "yes", "y", "on"}
_FALSE_SET = {"0", "false", "f", "no", "n", "off"}


class Coercion(ABC):
    """Bidirectional conversion for one attribute type.

    Subclasses raise ``ValueError`` or ``TypeError`` on bad input; the mapping
    layer turns those into :class:`repomap.errors.CoercionError`.
    """

    name: str = "value"

    @abstractmethod
    def load(self, value: Any) -> Any:
        """Convert a non-null raw value to the attribute type."""

    def dump(self, value: Any) -> Any:
        """Convert a non-null attribute value to its storage form."""
        return self.load(value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def _reject_bool(value: Any, name: str) -> None:
    if isinstance(value, bool):
        raise TypeError(f"bool is not a valid {name}")


class IntegerCoercion(Coercion):
    name = "int"

    def load(self, value: Any) -> int:
        _reject_bool(value, self.name)
        if isinstance(value, int):
            return value
        if isinstance(value, (float, Decimal)):
            if value != int(value):
                raise ValueError(f"{value!r} has a fractional part")
            return int(value)
        if isinstance(value, str):
            return int(value.strip())
        raise TypeError(f"unsupported type {type(value).__name__}")


class FloatCoercion(Coercion):
    name = "float"

    def load(self, value: Any) -> float:
        _reject_bool(value, self.name)
        if isinstance(value, (int, float, Decimal)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        raise TypeError(f"unsupported type {type(value).__name__}")


class StringCoercion(Coercion):
    name = "str"

    def load(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8")
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        raise TypeError(f"unsupported type {type(value).__name__}")


class BooleanCoercion(Coercion):
    name = "bool"

    def load(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_SET:
                return True
            if lowered in _FALSE_SET:
                return False
        raise ValueError(f"{value!r} is not a boolean")


class DecimalCoercion(Coercion):
    name = "Decimal"

    def load(self, value: Any) -> Decimal:
        _reject_bool(value, self.name)
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float, str)):
            # ``str`` first so floats keep their shortest repr
            return Decimal(str(value).strip())
        raise TypeError(f"unsupported type {type(value).__name__}")

    def dump(self, value: Any) -> str:
        return str(self.load(value))


class DateCoercion(Coercion):
    name = "date"

    def load(self, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return date.fromisoformat(value.strip()[:10])
        raise TypeError(f"unsupported type {type(value).__name__}")

    def dump(self, value: Any) -> str:
        return self.load(value).isoformat()


class DateTimeCoercion(Coercion):
    name = "datetime"

    def load(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            return datetime.fromisoformat(value.strip())
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        raise TypeError(f"unsupported type {type(value).__name__}")

    def dump(self, value: Any) -> str:
        return self.load(value).isoformat()


class JsonCoercion(Coercion):
    """Stores a ``list`` or ``dict`` attribute as JSON text."""

    def __init__(self, container: type) -> None:
        self.container = container
        self.name = container.__name__

    def load(self, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            value = json.loads(value)
        if isinstance(value, (tuple, set, frozenset)) and self.container is list:
            value = list(value)
        if not isinstance(value, self.container):
            raise TypeError(f"expected {self.name}, got {type(value).__name__}")
        return value

    def dump(self, value: Any) -> str:
        return json.dumps(self.load(value), sort_keys=True, default=str)


COERCIONS: Mapping[type, Coercion] = {
    int: IntegerCoercion(),
    float: FloatCoercion(),
    str: StringCoercion(),
    bool: BooleanCoercion(),
    Decimal: DecimalCoercion(),
    date: DateCoercion(),
    datetime: DateTimeCoercion(),
    list: JsonCoercion(list),
    dict: JsonCoercion(dict),
}


def resolve_coercion(kind: type | Coercion) -> Coercion:
    """Return the coercion for a declared attribute type."""
    if isinstance(kind, Coercion):
        return kind
    try:
        return COERCIONS[kind]
    except (KeyError, TypeError):
        raise MappingError(f"Unsupported attribute type: {kind!r}") from None
