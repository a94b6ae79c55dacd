"""SQLite storage for every entity kind.

Each kind exposes the same three operations: ``list`` (filtered, ordered by
its date column descending unless noted), ``upsert`` (insert-or-replace by a
client-generated id) and ``delete``. ``created_at`` is stamped on first insert
and never rewritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from salesops import models
from salesops.db import execute, execute_script, sql_rows
from salesops.util import UTC, iso_ts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityKind:
    name: str
    table: str
    columns: tuple[str, ...]
    order_by: str
    profile_scoped: bool = False
    descending: bool = True


KINDS: dict[str, EntityKind] = {
    "ad_spend": EntityKind(
        name="ad_spend",
        table="ad_spend_entries",
        columns=("profile", "start_date", "end_date", "impressions", "followers", "spend", "clicks"),
        order_by="start_date",
        profile_scoped=True,
    ),
    "daily_funnel": EntityKind(
        name="daily_funnel",
        table="daily_funnel",
        columns=("profile", "day", "contato", "qualificacao", "reuniao", "proposta", "fechado"),
        order_by="day",
        profile_scoped=True,
    ),
    "meeting_leads": EntityKind(
        name="meeting_leads",
        table="meeting_leads",
        columns=(
            "profile", "lead_date", "name", "contact", "instagram", "avg_revenue",
            "status", "notes", "deal_value", "deal_date",
        ),
        order_by="created_at",
        profile_scoped=True,
    ),
    "finance": EntityKind(
        name="finance",
        table="finance_entries",
        columns=("day", "kind", "expense_type", "category", "description", "value"),
        order_by="day",
    ),
    "tasks": EntityKind(
        name="tasks",
        table="ops_tasks",
        columns=("title", "description", "owner", "due", "status"),
        order_by="created_at",
    ),
    "important_items": EntityKind(
        name="important_items",
        table="ops_important_items",
        columns=("category", "title", "description", "url"),
        order_by="created_at",
    ),
    "customers": EntityKind(
        name="customers",
        table="ops_customers",
        columns=(
            "entry_date", "name", "phone", "product", "paid_value",
            "renewal_date", "churned_at", "notes",
        ),
        order_by="renewal_date",
        descending=False,
    ),
    "renewals": EntityKind(
        name="renewals",
        table="ops_customer_renewals",
        columns=("customer_id", "renewal_date", "paid_value", "notes"),
        order_by="renewal_date",
    ),
}

SCHEMA: tuple[str, ...] = (
    """CREATE TABLE IF NOT EXISTS ad_spend_entries (
        id TEXT PRIMARY KEY, created_at TEXT, profile TEXT,
        start_date TEXT, end_date TEXT,
        impressions INTEGER, followers INTEGER, spend REAL, clicks INTEGER
    );""",
    """CREATE TABLE IF NOT EXISTS daily_funnel (
        id TEXT PRIMARY KEY, created_at TEXT, profile TEXT, day TEXT,
        contato INTEGER, qualificacao INTEGER, reuniao INTEGER,
        proposta INTEGER, fechado INTEGER
    );""",
    """CREATE TABLE IF NOT EXISTS meeting_leads (
        id TEXT PRIMARY KEY, created_at TEXT, profile TEXT, lead_date TEXT,
        name TEXT, contact TEXT, instagram TEXT, avg_revenue REAL,
        status TEXT, notes TEXT, deal_value REAL, deal_date TEXT
    );""",
    """CREATE TABLE IF NOT EXISTS finance_entries (
        id TEXT PRIMARY KEY, created_at TEXT, day TEXT, kind TEXT,
        expense_type TEXT, category TEXT, description TEXT, value REAL
    );""",
    """CREATE TABLE IF NOT EXISTS ops_tasks (
        id TEXT PRIMARY KEY, created_at TEXT, title TEXT, description TEXT,
        owner TEXT, due TEXT, status TEXT
    );""",
    """CREATE TABLE IF NOT EXISTS ops_important_items (
        id TEXT PRIMARY KEY, created_at TEXT, category TEXT, title TEXT,
        description TEXT, url TEXT
    );""",
    """CREATE TABLE IF NOT EXISTS ops_customers (
        id TEXT PRIMARY KEY, created_at TEXT, entry_date TEXT, name TEXT,
        phone TEXT, product TEXT, paid_value REAL, renewal_date TEXT,
        churned_at TEXT, notes TEXT
    );""",
    """CREATE TABLE IF NOT EXISTS ops_customer_renewals (
        id TEXT PRIMARY KEY, created_at TEXT, customer_id TEXT,
        renewal_date TEXT, paid_value REAL, notes TEXT
    );""",
)


def init_schema(db_path: str) -> None:
    execute_script(db_path, SCHEMA)
    logger.info("schema ready at %s", db_path)


def get_kind(name: str) -> EntityKind:
    try:
        return KINDS[name]
    except KeyError:
        raise KeyError(f"unknown entity kind: {name}") from None


class Store:
    def __init__(self, db_path: str, *, create: bool = True):
        self.db_path = db_path
        if create and not Path(db_path).exists():
            init_schema(db_path)

    # ── generic ────────────────────────────────────────────────────────────

    def list(
        self,
        kind: str,
        *,
        profile: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[dict[str, Any]]:
        k = get_kind(kind)
        where: list[str] = []
        params: dict[str, Any] = {}

        if k.profile_scoped and profile:
            where.append("profile = :profile")
            params["profile"] = profile

        if start and end:
            if k.name == "ad_spend":
                # Campaign window overlaps the range.
                where.append("start_date <= :end AND end_date >= :start")
                params.update(start=start, end=end)
            elif k.name == "meeting_leads":
                where.append("created_at BETWEEN :start AND :end")
                params.update(start=start, end=f"{end}T23:59:59Z")
            elif k.order_by != "created_at":
                where.append(f"{k.order_by} BETWEEN :start AND :end")
                params.update(start=start, end=end)

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        direction = "DESC" if k.descending else "ASC"
        sql = f"SELECT * FROM {k.table} {where_sql} ORDER BY {k.order_by} {direction}, created_at DESC"
        return sql_rows(self.db_path, sql, params)

    def get(self, kind: str, row_id: str) -> dict[str, Any] | None:
        k = get_kind(kind)
        rows = sql_rows(self.db_path, f"SELECT * FROM {k.table} WHERE id = ?", [row_id])
        return rows[0] if rows else None

    def upsert(self, kind: str, row: dict[str, Any]) -> dict[str, Any]:
        k = get_kind(kind)
        row_id = str(row.get("id") or "").strip()
        if not row_id:
            raise ValueError("id is required; generate one before calling upsert")

        created_at = str(row.get("created_at") or "") or iso_ts(datetime.now(UTC))
        cols = ("id", "created_at") + k.columns
        values = [row_id, created_at] + [row.get(c) for c in k.columns]
        placeholders = ",".join(["?"] * len(cols))
        updates = ",".join(f"{c} = excluded.{c}" for c in k.columns)
        execute(
            self.db_path,
            f"INSERT INTO {k.table} ({','.join(cols)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            values,
        )
        logger.debug("upserted %s %s", kind, row_id)
        stored = self.get(kind, row_id)
        if stored is None:
            raise LookupError(f"{kind} {row_id} vanished after upsert")
        return stored

    def save(self, kind: str, payload: dict[str, Any], today: str | None = None) -> dict[str, Any]:
        """Validate and normalise ``payload`` then upsert it."""
        row = models.normalize(get_kind(kind).name, payload, today=today)
        return self.upsert(kind, row)

    def delete(self, kind: str, row_id: str) -> None:
        k = get_kind(kind)
        execute(self.db_path, f"DELETE FROM {k.table} WHERE id = ?", [row_id])
        logger.debug("deleted %s %s", kind, row_id)

    # ── per kind ───────────────────────────────────────────────────────────

    def list_ad_spend(self, start: str, end: str, profile: str | None = None) -> list[dict[str, Any]]:
        return self.list("ad_spend", profile=profile, start=start, end=end)

    def list_daily_funnel(self, profile: str, start: str, end: str) -> list[dict[str, Any]]:
        return self.list("daily_funnel", profile=profile, start=start, end=end)

    def list_meeting_leads(self, profile: str, start: str, end: str) -> list[dict[str, Any]]:
        return self.list("meeting_leads", profile=profile, start=start, end=end)

    def list_finance(self, start: str, end: str) -> list[dict[str, Any]]:
        return self.list("finance", start=start, end=end)

    def list_tasks(self) -> list[dict[str, Any]]:
        return self.list("tasks")

    def list_important_items(self) -> list[dict[str, Any]]:
        return self.list("important_items")

    def list_customers(self) -> list[dict[str, Any]]:
        return self.list("customers")

    def list_renewals(self) -> list[dict[str, Any]]:
        return self.list("renewals")
