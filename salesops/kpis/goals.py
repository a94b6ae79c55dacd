"""Annual targets and how far along the year's numbers are.

Year-to-date targets scale the annual ones by the fraction of the year that
has elapsed; monthly targets are flat twelfths (meetings have their own
monthly figure).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from salesops.dates import DateRange, day_of_year, days_in_year
from salesops.util import safe_div


@dataclass(frozen=True)
class Goals:
    revenue_annual: float = 1_000_000.0
    companies_annual: int = 125
    cost_per_sale: float = 1_000.0
    show_rate_pct: float = 60.0
    meetings_booked_monthly: int = 80
    renewals_pct: float = 70.0

    @property
    def month_sales(self) -> float:
        return self.companies_annual / 12

    @property
    def month_revenue(self) -> float:
        return self.revenue_annual / 12

    @property
    def month_meetings_realized(self) -> int:
        return round(self.meetings_booked_monthly * (self.show_rate_pct / 100))

    @property
    def annual_meetings_booked(self) -> int:
        return self.meetings_booked_monthly * 12

    @property
    def annual_meetings_realized(self) -> float:
        return self.annual_meetings_booked * (self.show_rate_pct / 100)


DEFAULT_GOALS = Goals()


def ytd_fraction(year: int, ytd: DateRange) -> float:
    return safe_div(day_of_year(ytd.end), days_in_year(year))


def clamp_pct(value: float | None) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return min(100.0, max(0.0, value))


def delta_pct(real: float, target: float) -> float | None:
    if not math.isfinite(target) or target == 0:
        return None
    return safe_div((real - target) * 100.0, target)


def delta_label(real: float, target: float) -> str:
    d = delta_pct(real, target)
    if d is None:
        return "—"
    sign = "+" if d >= 0 else ""
    return f"{sign}{d:.1f}%"


def progress_pct(real: float, annual_target: float) -> float:
    return clamp_pct(safe_div(real * 100.0, annual_target))


def cost_per_sale(spend: float, sales: int) -> float | None:
    return safe_div(spend, sales) if sales > 0 else None
