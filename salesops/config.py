from __future__ import annotations

import os
from pathlib import Path


def default_db_path() -> str:
    return os.environ.get("SALESOPS_DB_PATH", str(Path("data/salesops.sqlite")))


def log_level() -> str:
    return os.environ.get("SALESOPS_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def goals_year() -> int:
    try:
        return int(os.environ.get("SALESOPS_GOALS_YEAR", "2026"))
    except ValueError:
        return 2026
