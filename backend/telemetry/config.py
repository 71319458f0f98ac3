from __future__ import annotations

import os
from pathlib import Path

DEFAULT_TELEMETRY_PATH = "data/telemetry/telemetry.duckdb"

_OFF_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw not in _OFF_VALUES


def telemetry_path() -> Path:
    """
    Telemetry database file; relative paths resolve against the working directory,
    like the location store's.
    """
    return Path((os.getenv("QUADCLUSTER_TELEMETRY_PATH") or "").strip() or DEFAULT_TELEMETRY_PATH)


def telemetry_enabled() -> bool:
    return _env_flag("QUADCLUSTER_TELEMETRY", True)
