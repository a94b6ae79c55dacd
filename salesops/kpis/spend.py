from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from salesops.attribution import sales_in_range
from salesops.dates import DateRange
from salesops.models import PROFILES
from salesops.util import pct, round_money, safe_div, to_float, to_int


@dataclass(frozen=True)
class SpendTotals:
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    followers: int = 0

    def __add__(self, other: "SpendTotals") -> "SpendTotals":
        return SpendTotals(
            spend=self.spend + other.spend,
            impressions=self.impressions + other.impressions,
            clicks=self.clicks + other.clicks,
            followers=self.followers + other.followers,
        )

    @property
    def ctr(self) -> float:
        return safe_div(self.clicks * 100.0, self.impressions)

    @property
    def cost_per_follower(self) -> float:
        return safe_div(self.spend, self.followers)


def spend_totals(rows: Iterable[Mapping[str, Any]]) -> SpendTotals:
    spend = 0.0
    impressions = clicks = followers = 0
    for r in rows:
        spend += to_float(r.get("spend"))
        impressions += to_int(r.get("impressions"))
        clicks += to_int(r.get("clicks"))
        followers += to_int(r.get("followers"))
    return SpendTotals(spend=spend, impressions=impressions, clicks=clicks, followers=followers)


def spend_by_profile(rows: Iterable[Mapping[str, Any]]) -> dict[str, SpendTotals]:
    buckets: dict[str, list[Mapping[str, Any]]] = {p: [] for p in PROFILES}
    for r in rows:
        profile = str(r.get("profile") or "")
        # Rows saved before profiles existed belong to the first profile.
        buckets.setdefault(profile if profile in buckets else PROFILES[0], []).append(r)
    return {p: spend_totals(rs) for p, rs in buckets.items()}


def deal_value(row: Mapping[str, Any]) -> float:
    return to_float(row.get("deal_value"))


def revenue_in_range(leads: Iterable[Mapping[str, Any]], rng: DateRange) -> float:
    """Sum of deal values for sales closed inside the window."""
    return sum(deal_value(r) for r in sales_in_range(leads, rng))


def roi(revenue: float, spend: float) -> float:
    if spend == 0:
        return 0.0
    return (revenue - spend) / spend * 100.0


def roi_label(revenue: float, spend: float) -> str:
    if spend == 0:
        return "0%"
    return pct(roi(revenue, spend))


def spend_kpis(totals: SpendTotals, revenue: float) -> dict[str, Any]:
    return {
        "spend": round_money(totals.spend),
        "impressions": totals.impressions,
        "clicks": totals.clicks,
        "followers": totals.followers,
        "revenue": round_money(revenue),
        "ctr": pct(totals.ctr),
        "cost_per_follower": round_money(totals.cost_per_follower),
        "roi": round(roi(revenue, totals.spend), 2),
        "roi_label": roi_label(revenue, totals.spend),
    }
