"""Which date decides whether a record counts toward a reporting window.

- daily funnel rows: ``day``
- meeting leads (funnel / leads views): ``lead_date`` -> ``created_at`` -> today
- won sales (revenue views): ``deal_date`` only; a sale without one is dropped
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from salesops.dates import DateRange, in_range
from salesops.util import iso10, today_iso


Row = Mapping[str, Any]


def funnel_date(row: Row) -> str:
    return iso10(row.get("day"))


def lead_date(row: Row, today: str | None = None) -> str:
    return iso10(row.get("lead_date")) or iso10(row.get("created_at")) or (today or today_iso())


def deal_date(row: Row) -> str:
    return iso10(row.get("deal_date"))


def is_sale(row: Row) -> bool:
    return str(row.get("status") or "") == "venda"


def funnel_in_range(rows: Iterable[Row], rng: DateRange) -> list[Row]:
    return [r for r in rows if in_range(funnel_date(r), rng.start, rng.end)]


def leads_in_range(rows: Iterable[Row], rng: DateRange, today: str | None = None) -> list[Row]:
    return [r for r in rows if in_range(lead_date(r, today), rng.start, rng.end)]


def sales_in_range(rows: Iterable[Row], rng: DateRange) -> list[Row]:
    """Won sales closed inside the window; ``lead_date`` plays no part."""
    return [r for r in rows if is_sale(r) and in_range(deal_date(r), rng.start, rng.end)]
