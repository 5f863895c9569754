"""Runtime settings for repomap.

Values come from environment variables, optionally loaded from a ``.env``
file using ``python-dotenv``, and are exposed through an immutable Pydantic
settings object.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Load environment variables from a .env file if present
load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_ADAPTER = "memory"
DEFAULT_DATABASE = ":memory:"
DEFAULT_LOG_FILE = Path("logs/repomap.log")
ADAPTERS = ("memory", "sqlite")
_TRUE_SET = {"1", "true", "yes", "on"}
_FALSE_SET = {"0", "false", "no", "off", ""}


class Settings(BaseModel):
    """Immutable settings object used when wiring adapters and logging."""

    adapter: Literal["memory", "sqlite"] = DEFAULT_ADAPTER
    database: str = DEFAULT_DATABASE
    strict_delete: bool = False
    log_file: Optional[Path] = DEFAULT_LOG_FILE

    model_config = ConfigDict(frozen=True)


def _env_flag(name: str) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUE_SET:
        return True
    if raw in _FALSE_SET:
        return False
    raise RuntimeError(f"{name} must be a boolean flag, got {raw!r}")


def build_settings() -> Settings:
    """Construct a ``Settings`` instance from the current environment."""

    adapter = os.getenv("REPOMAP_ADAPTER", DEFAULT_ADAPTER).strip().lower()
    if adapter not in ADAPTERS:
        raise RuntimeError(
            f"REPOMAP_ADAPTER must be one of {', '.join(ADAPTERS)}; got {adapter!r}"
        )

    database = os.getenv("REPOMAP_DATABASE", DEFAULT_DATABASE)
    if adapter == "sqlite" and not database:
        raise RuntimeError("REPOMAP_DATABASE is required when REPOMAP_ADAPTER=sqlite")

    log_file_raw = os.getenv("REPOMAP_LOG_FILE")
    if log_file_raw is None:
        log_file: Optional[Path] = DEFAULT_LOG_FILE
    elif log_file_raw.strip() == "":
        # Empty value disables the file handler
        log_file = None
    else:
        log_file = Path(log_file_raw)

    return Settings(
        adapter=adapter,
        database=database,
        strict_delete=_env_flag("REPOMAP_STRICT_DELETE"),
        log_file=log_file,
    )


# Public settings instance
settings = build_settings()
