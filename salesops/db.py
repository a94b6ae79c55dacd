from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any


def connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def sql_rows(db_path: str, sql: str, params: Any = None) -> list[dict[str, Any]]:
    """Simple query returning just a list of row dicts. Accepts list or dict params."""
    if not Path(db_path).exists():
        raise FileNotFoundError(f"SQLite db not found: {db_path}")
    with connect(db_path) as conn:
        cur = conn.execute(sql, params or [])
        return [dict(r) for r in cur.fetchall()]


def execute(db_path: str, sql: str, params: Any = None) -> int:
    if not Path(db_path).exists():
        raise FileNotFoundError(f"SQLite db not found: {db_path}")
    with connect(db_path) as conn:
        cur = conn.execute(sql, params or [])
        conn.commit()
        return cur.rowcount


def execute_script(db_path: str, statements: Iterable[str]) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with connect(db_path) as conn:
        for stmt in statements:
            conn.execute(stmt)
        conn.commit()
