from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Any

from salesops.dates import DateRange, in_range
from salesops.util import iso10, iso_date, round_money, safe_div, to_float


Row = Mapping[str, Any]


def renewal_rate(customers: Iterable[Row], renewals: Iterable[Row], rng: DateRange) -> dict[str, Any]:
    """Share of customers due for renewal in the window that renewed in it."""
    due_ids = {
        str(c.get("id"))
        for c in customers
        if in_range(iso10(c.get("renewal_date")), rng.start, rng.end)
    }
    renewed_ids: set[str] = set()
    for r in renewals:
        if not in_range(iso10(r.get("renewal_date")), rng.start, rng.end):
            continue
        cid = str(r.get("customer_id") or "")
        if cid and cid in due_ids:
            renewed_ids.add(cid)

    if not due_ids:
        return {"pct": None, "base": 0, "renewed": 0}
    return {
        "pct": safe_div(len(renewed_ids) * 100.0, len(due_ids)),
        "base": len(due_ids),
        "renewed": len(renewed_ids),
    }


def renewals_by_customer(renewals: Iterable[Row]) -> dict[str, list[Row]]:
    out: dict[str, list[Row]] = defaultdict(list)
    for r in renewals:
        cid = str(r.get("customer_id") or "")
        if cid:
            out[cid].append(r)
    for rows in out.values():
        rows.sort(key=lambda r: iso10(r.get("renewal_date")), reverse=True)
    return dict(out)


def ltv_by_customer(customers: Iterable[Row], renewals: Iterable[Row]) -> dict[str, float]:
    by_customer = renewals_by_customer(renewals)
    out: dict[str, float] = {}
    for c in customers:
        cid = str(c.get("id"))
        base = to_float(c.get("paid_value"))
        out[cid] = round_money(base + sum(to_float(r.get("paid_value")) for r in by_customer.get(cid, [])))
    return out


def upcoming_renewals(customers: Iterable[Row], today: date, days: int = 30) -> list[Row]:
    window = DateRange(start=iso_date(today), end=iso_date(today + timedelta(days=days)))
    rows = [c for c in customers if window.contains(iso10(c.get("renewal_date")))]
    rows.sort(key=lambda c: iso10(c.get("renewal_date")))
    return rows


def customer_stats(customers: Iterable[Row], renewals: Iterable[Row], today: date) -> dict[str, Any]:
    customers = list(customers)
    renewed_ids = {str(r.get("customer_id")) for r in renewals if r.get("customer_id")}
    cutoff = iso_date(today - timedelta(days=30))

    total = len(customers)
    active = sum(1 for c in customers if not c.get("churned_at"))
    renewed = len(renewed_ids)
    not_renewed = 0
    for c in customers:
        if str(c.get("id")) in renewed_ids:
            continue
        renewal_day = iso10(c.get("renewal_date"))
        # Grace period of 30 days after the renewal date.
        if renewal_day and renewal_day < cutoff:
            not_renewed += 1

    return {
        "total": total,
        "active": active,
        "renewed": renewed,
        "not_renewed": not_renewed,
        "pct_active": round(safe_div(active * 100.0, total), 1),
        "pct_renewed": round(safe_div(renewed * 100.0, total), 1),
        "pct_not_renewed": round(safe_div(not_renewed * 100.0, total), 1),
    }
