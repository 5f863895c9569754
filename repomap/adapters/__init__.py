"""Storage adapters.

:class:`~repomap.adapters.base.Adapter` defines the interface; the in-memory
and SQLite implementations live in :mod:`repomap.adapters.memory` and
:mod:`repomap.adapters.sqlite`.
"""

from .base import QUERY_OPERATIONS, Adapter
from .factory import build_adapter
from .memory import MemoryAdapter, MemoryPlan
from .sqlite import SqliteAdapter, SqlStatement

__all__ = [
    "QUERY_OPERATIONS",
    "Adapter",
    "MemoryAdapter",
    "MemoryPlan",
    "SqlStatement",
    "SqliteAdapter",
    "build_adapter",
]
