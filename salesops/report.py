"""Page-level aggregation passes.

Each pass fans out its storage reads concurrently, waits for all of them, and
only then aggregates. A single failed read abandons the whole pass with a
``FetchError``; nothing is computed from a partial fetch set. ``KpiBoard``
keeps the last good payload per page so a failed refresh degrades to stale
numbers plus a message.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

from salesops.attribution import funnel_in_range, leads_in_range, sales_in_range
from salesops.dates import DateRange, year_to_date
from salesops.kpis.conversion import conversion_rates, conversion_steps
from salesops.kpis.customers import customer_stats, ltv_by_customer, renewal_rate, upcoming_renewals
from salesops.kpis.finance import expenses_by_category, summarize_finance
from salesops.kpis.funnel import FunnelTotals, funnel_totals
from salesops.kpis.goals import (
    DEFAULT_GOALS,
    Goals,
    clamp_pct,
    cost_per_sale,
    delta_label,
    progress_pct,
    ytd_fraction,
)
from salesops.kpis.outcomes import OutcomeCounts, classify_outcomes
from salesops.kpis.sales import cost_per_outcome
from salesops.kpis.spend import SpendTotals, revenue_in_range, spend_by_profile, spend_kpis
from salesops.kpis.tasks import items_by_category, tasks_by_status
from salesops.models import PROFILES
from salesops.store import Store
from salesops.util import iso_date, pct, round_money, to_float, to_int, today_utc

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    def __init__(self, page: str, message: str):
        super().__init__(message)
        self.page = page
        self.message = message


async def fetch_all(page: str, calls: dict[str, Callable[[], list[dict[str, Any]]]]) -> dict[str, list[dict[str, Any]]]:
    names = list(calls)
    try:
        results = await asyncio.gather(*(asyncio.to_thread(calls[n]) for n in names))
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        logger.warning("fetch failed for %s page: %s", page, message)
        raise FetchError(page, message) from exc
    logger.debug("%s page fetched %s", page, {n: len(r) for n, r in zip(names, results)})
    return dict(zip(names, results))


def _profile_fetches(store: Store, rng: DateRange, today: str) -> dict[str, Callable[[], list[dict[str, Any]]]]:
    lead_start, lead_end = rng.lead_query_window(today)
    calls: dict[str, Callable[[], list[dict[str, Any]]]] = {}
    for p in PROFILES:
        calls[f"funnel:{p}"] = lambda p=p: store.list_daily_funnel(p, rng.start, rng.end)
        calls[f"leads:{p}"] = lambda p=p: store.list_meeting_leads(p, lead_start, lead_end)
    return calls


def _funnel_block(funnel_rows: list[dict[str, Any]], lead_rows: list[dict[str, Any]], rng: DateRange, today: str) -> tuple[FunnelTotals, OutcomeCounts, list[dict[str, Any]]]:
    funnel = funnel_totals(funnel_in_range(funnel_rows, rng))
    leads = leads_in_range(lead_rows, rng, today)
    return funnel, classify_outcomes(leads), leads


def _leads_payload(funnel: FunnelTotals, outcomes: OutcomeCounts, lead_count: int) -> dict[str, Any]:
    return {
        "funnel": funnel.as_dict(),
        "outcomes": outcomes.as_dict(),
        "leads": lead_count,
        "rates": conversion_rates(funnel, outcomes),
        "steps": conversion_steps(funnel, outcomes),
    }


def _sales_payload(
    spend: SpendTotals,
    funnel: FunnelTotals,
    outcomes: OutcomeCounts,
    lead_rows: list[dict[str, Any]],
    rng: DateRange,
) -> dict[str, Any]:
    closed = sales_in_range(lead_rows, rng)
    revenue = revenue_in_range(lead_rows, rng)
    out = spend_kpis(spend, revenue)
    out["sales_closed"] = len(closed)
    out["sales_in_funnel"] = outcomes.sales
    out.update(cost_per_outcome(spend.spend, funnel, outcomes.sales).as_dict())
    return out


async def build_leads_report(store: Store, rng: DateRange, today: date | None = None) -> dict[str, Any]:
    t = iso_date(today or today_utc())
    data = await fetch_all("leads", _profile_fetches(store, rng, t))

    profiles: dict[str, Any] = {}
    total_funnel, total_outcomes, total_leads = FunnelTotals(), OutcomeCounts(), 0
    for p in PROFILES:
        funnel, outcomes, leads = _funnel_block(data[f"funnel:{p}"], data[f"leads:{p}"], rng, t)
        profiles[p] = _leads_payload(funnel, outcomes, len(leads))
        total_funnel += funnel
        total_outcomes += outcomes
        total_leads += len(leads)

    return {
        "page": "leads",
        "range": rng.as_dict(),
        "profiles": profiles,
        "total": _leads_payload(total_funnel, total_outcomes, total_leads),
    }


async def build_sales_report(store: Store, rng: DateRange, today: date | None = None) -> dict[str, Any]:
    t = iso_date(today or today_utc())
    calls = _profile_fetches(store, rng, t)
    calls["ad_spend"] = lambda: store.list_ad_spend(rng.start, rng.end)
    data = await fetch_all("sales", calls)

    spend = spend_by_profile(data["ad_spend"])
    profiles: dict[str, Any] = {}
    for p in PROFILES:
        funnel, outcomes, _ = _funnel_block(data[f"funnel:{p}"], data[f"leads:{p}"], rng, t)
        profiles[p] = _sales_payload(spend[p], funnel, outcomes, data[f"leads:{p}"], rng)

    all_leads = [r for p in PROFILES for r in data[f"leads:{p}"]]
    all_funnel = [r for p in PROFILES for r in data[f"funnel:{p}"]]
    funnel, outcomes, _ = _funnel_block(all_funnel, all_leads, rng, t)
    total_spend = SpendTotals()
    for p in PROFILES:
        total_spend += spend[p]

    return {
        "page": "sales",
        "range": rng.as_dict(),
        "profiles": profiles,
        "total": _sales_payload(total_spend, funnel, outcomes, all_leads, rng),
    }


async def build_overview_report(store: Store, rng: DateRange, today: date | None = None) -> dict[str, Any]:
    t = iso_date(today or today_utc())
    calls = _profile_fetches(store, rng, t)
    calls["ad_spend"] = lambda: store.list_ad_spend(rng.start, rng.end)
    data = await fetch_all("overview", calls)

    spend = spend_by_profile(data["ad_spend"])
    profiles: dict[str, Any] = {}
    total_outcomes = OutcomeCounts()
    for p in PROFILES:
        funnel, outcomes, leads = _funnel_block(data[f"funnel:{p}"], data[f"leads:{p}"], rng, t)
        block = _leads_payload(funnel, outcomes, len(leads))
        block["sales"] = _sales_payload(spend[p], funnel, outcomes, data[f"leads:{p}"], rng)
        profiles[p] = block
        total_outcomes += outcomes

    revenue = sum(profiles[p]["sales"]["revenue"] or 0.0 for p in PROFILES)
    total_spend = sum(spend[p].spend for p in PROFILES)
    return {
        "page": "overview",
        "range": rng.as_dict(),
        "profiles": profiles,
        "total": {
            "spend": round_money(total_spend),
            "revenue": round_money(revenue),
            "sales_closed": sum(profiles[p]["sales"]["sales_closed"] for p in PROFILES),
            "show_rate": total_outcomes.show_rate_label,
        },
    }


async def build_finance_report(store: Store, rng: DateRange, today: date | None = None) -> dict[str, Any]:
    data = await fetch_all("finance", {"finance": lambda: store.list_finance(rng.start, rng.end)})
    rows = data["finance"]
    return {
        "page": "finance",
        "range": rng.as_dict(),
        "summary": summarize_finance(rows).as_dict(),
        "expenses_by_category": expenses_by_category(rows),
        "entries": len(rows),
    }


async def build_goals_report(
    store: Store,
    year: int,
    month: int,
    today: date | None = None,
    goals: Goals = DEFAULT_GOALS,
) -> dict[str, Any]:
    today = today or today_utc()
    t = iso_date(today)
    month_rng = DateRange.month(year, month)
    year_rng = DateRange(start=f"{year}-01-01", end=f"{year}-12-31")
    ytd = year_to_date(year, t)
    lead_start, lead_end = year_rng.lead_query_window(t)

    calls: dict[str, Callable[[], list[dict[str, Any]]]] = {
        "customers": store.list_customers,
        "renewals": store.list_renewals,
        "ad_spend:month": lambda: store.list_ad_spend(month_rng.start, month_rng.end),
        "ad_spend:year": lambda: store.list_ad_spend(year_rng.start, year_rng.end),
    }
    for p in PROFILES:
        calls[f"leads:{p}"] = lambda p=p: store.list_meeting_leads(p, lead_start, lead_end)
        calls[f"funnel:{p}"] = lambda p=p: store.list_daily_funnel(p, year_rng.start, year_rng.end)
    data = await fetch_all("goals", calls)

    frac = ytd_fraction(year, ytd)
    all_leads = [r for p in PROFILES for r in data[f"leads:{p}"]]
    all_funnel = [r for p in PROFILES for r in data[f"funnel:{p}"]]

    def period(rng: DateRange, spend_rows: list[dict[str, Any]]) -> dict[str, Any]:
        spend = spend_by_profile(spend_rows)
        sales = {p: sales_in_range(data[f"leads:{p}"], rng) for p in PROFILES}
        sales_qty = sum(len(s) for s in sales.values())
        spend_total = sum(s.spend for s in spend.values())
        booked = sum(to_int(r.get("reuniao")) for r in funnel_in_range(all_funnel, rng))
        outcomes = classify_outcomes(leads_in_range(all_leads, rng, t))
        renewals = renewal_rate(data["customers"], data["renewals"], rng)
        cps = {p: cost_per_sale(spend[p].spend, len(sales[p])) for p in PROFILES}
        cps["total"] = cost_per_sale(spend_total, sales_qty)
        return {
            "range": rng.as_dict(),
            "sales_qty": sales_qty,
            "sales_value": round_money(revenue_in_range(all_leads, rng)),
            "meetings_booked": booked,
            "meetings_realized": outcomes.realized,
            "show_rate": outcomes.show_rate_label,
            "show_rate_value": outcomes.show_rate,
            "renewals": renewals,
            "cost_per_sale": {k: round_money(v) for k, v in cps.items()},
        }

    month_block = period(month_rng, data["ad_spend:month"])
    ytd_block = period(ytd, data["ad_spend:year"])

    month_targets = {
        "sales": goals.month_sales,
        "revenue": goals.month_revenue,
        "meetings_booked": goals.meetings_booked_monthly,
        "meetings_realized": goals.month_meetings_realized,
    }
    ytd_targets = {
        "sales": goals.companies_annual * frac,
        "revenue": goals.revenue_annual * frac,
        "meetings_booked": goals.annual_meetings_booked * frac,
        "meetings_realized": goals.annual_meetings_realized * frac,
    }
    month_block["targets"] = {k: round(v, 2) for k, v in month_targets.items()}
    month_block["deltas"] = {
        "sales": delta_label(month_block["sales_qty"], round(month_targets["sales"])),
        "revenue": delta_label(month_block["sales_value"] or 0.0, month_targets["revenue"]),
        "meetings_booked": delta_label(month_block["meetings_booked"], month_targets["meetings_booked"]),
        "meetings_realized": delta_label(month_block["meetings_realized"], month_targets["meetings_realized"]),
    }
    ytd_block["targets"] = {k: round(v, 2) for k, v in ytd_targets.items()}
    ytd_block["deltas"] = {
        "sales": delta_label(ytd_block["sales_qty"], round(ytd_targets["sales"])),
        "revenue": delta_label(ytd_block["sales_value"] or 0.0, ytd_targets["revenue"]),
        "meetings_booked": delta_label(ytd_block["meetings_booked"], ytd_targets["meetings_booked"]),
        "meetings_realized": delta_label(ytd_block["meetings_realized"], ytd_targets["meetings_realized"]),
    }

    # One sale is one company served.
    companies = ytd_block["sales_qty"]
    return {
        "page": "goals",
        "year": year,
        "month": month,
        "ytd_fraction": round(frac, 4),
        "goals": {
            "revenue_annual": goals.revenue_annual,
            "companies_annual": goals.companies_annual,
            "cost_per_sale": goals.cost_per_sale,
            "show_rate_pct": goals.show_rate_pct,
            "meetings_booked_monthly": goals.meetings_booked_monthly,
            "renewals_pct": goals.renewals_pct,
        },
        "progress": {
            "revenue": pct(progress_pct(ytd_block["sales_value"] or 0.0, goals.revenue_annual)),
            "companies": pct(progress_pct(companies, goals.companies_annual)),
            "show_rate_vs_goal": pct(clamp_pct(ytd_block["show_rate_value"])),
        },
        "month": month_block,
        "ytd": ytd_block,
    }


async def build_ops_report(store: Store, today: date | None = None) -> dict[str, Any]:
    today = today or today_utc()
    data = await fetch_all(
        "ops",
        {
            "tasks": store.list_tasks,
            "items": store.list_important_items,
            "customers": store.list_customers,
            "renewals": store.list_renewals,
        },
    )
    upcoming = upcoming_renewals(data["customers"], today)
    return {
        "page": "ops",
        "kanban": tasks_by_status(data["tasks"]),
        "important_items": items_by_category(data["items"]),
        "customers": customer_stats(data["customers"], data["renewals"], today),
        "ltv": ltv_by_customer(data["customers"], data["renewals"]),
        "upcoming_renewals": upcoming,
        "upcoming_total": round_money(sum(to_float(c.get("paid_value")) for c in upcoming)),
    }


RANGE_PAGES: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {
    "leads": build_leads_report,
    "sales": build_sales_report,
    "overview": build_overview_report,
    "finance": build_finance_report,
}


class KpiBoard:
    """Last successful payload per page view plus the latest fetch error.

    A view is a page plus the key of its inputs (the range, or year and
    month). Every refresh of a view takes a generation number; a pass that
    resolves after a newer one of the same view was started still answers
    its own caller but does not overwrite the newer payload.
    """

    def __init__(self) -> None:
        self._payloads: dict[tuple[str, str], dict[str, Any]] = {}
        self._errors: dict[tuple[str, str], str | None] = {}
        self._generation: dict[tuple[str, str], int] = defaultdict(int)

    async def refresh(
        self,
        page: str,
        build: Callable[[], Awaitable[dict[str, Any]]],
        key: str = "",
    ) -> dict[str, Any]:
        view = (page, key)
        self._generation[view] += 1
        generation = self._generation[view]
        try:
            payload = await build()
        except FetchError as exc:
            if generation == self._generation[view]:
                self._errors[view] = exc.message
                return self.snapshot(page, key)
            return {"page": page, "data": self._payloads.get(view), "error": exc.message, "stale": view in self._payloads}

        if generation != self._generation[view]:
            logger.debug("not caching superseded %s pass (generation %s)", page, generation)
            return {"page": page, "data": payload, "error": None, "stale": False}

        self._payloads[view] = payload
        self._errors[view] = None
        return self.snapshot(page, key)

    def snapshot(self, page: str, key: str = "") -> dict[str, Any]:
        view = (page, key)
        payload = self._payloads.get(view)
        error = self._errors.get(view)
        return {
            "page": page,
            "data": payload,
            "error": error,
            "stale": bool(error) and payload is not None,
        }
