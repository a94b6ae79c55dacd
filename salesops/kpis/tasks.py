from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from salesops.models import IMPORTANT_CATEGORIES, TASK_STATUSES
from salesops.util import iso10


NO_DUE = "9999-12-31"


def tasks_by_status(tasks: Iterable[Mapping[str, Any]]) -> dict[str, list[Mapping[str, Any]]]:
    """Kanban columns; each sorted by due date (undated last), newest first on ties."""
    columns: dict[str, list[Mapping[str, Any]]] = {s: [] for s in TASK_STATUSES}
    for t in tasks:
        status = str(t.get("status") or "em_andamento")
        columns.setdefault(status, []).append(t)

    for status, rows in columns.items():
        # Two stable sorts: secondary key first.
        rows.sort(key=lambda t: str(t.get("created_at") or ""), reverse=True)
        rows.sort(key=lambda t: iso10(t.get("due")) or NO_DUE)
    return columns


def items_by_category(items: Iterable[Mapping[str, Any]]) -> dict[str, list[Mapping[str, Any]]]:
    """Important items grouped by category, newest first; unknown categories fall under "outro"."""
    groups: dict[str, list[Mapping[str, Any]]] = {c: [] for c in IMPORTANT_CATEGORIES}
    for it in items:
        category = str(it.get("category") or "outro")
        groups[category if category in groups else "outro"].append(it)
    for rows in groups.values():
        rows.sort(key=lambda it: str(it.get("created_at") or ""), reverse=True)
    return groups
