from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .base import Adapter
from .memory import MemoryAdapter
from .sqlite import SqliteAdapter

if TYPE_CHECKING:  # pragma: no cover - import for type checkers only
    from ..config.settings import Settings

logger = logging.getLogger(__name__)


def build_adapter(settings: Optional["Settings"] = None) -> Adapter:
    """Create the adapter selected by ``settings``.

    Called once at start-up; the returned instance is meant to be shared by
    every repository of the process.
    """
    if settings is None:
        # Lazy import so the environment is only read when no settings are given
        from ..config.settings import settings as default_settings

        settings = default_settings

    if settings.adapter == "sqlite":
        adapter: Adapter = SqliteAdapter.connect(
            settings.database, strict_delete=settings.strict_delete
        )
    else:
        adapter = MemoryAdapter(strict_delete=settings.strict_delete)
    logger.info(
        "Adapter configured",
        extra={"adapter": adapter.name, "strict_delete": settings.strict_delete},
    )
    return adapter
