from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from salesops.util import pct_of, round_money, to_float


@dataclass(frozen=True)
class FinanceSummary:
    revenue: float = 0.0
    fixed_cost: float = 0.0
    variable_cost: float = 0.0

    @property
    def total_cost(self) -> float:
        return self.fixed_cost + self.variable_cost

    @property
    def profit(self) -> float:
        return self.revenue - self.total_cost

    @property
    def margin(self) -> str:
        return pct_of(self.profit, self.revenue)

    def as_dict(self) -> dict[str, Any]:
        return {
            "revenue": round_money(self.revenue),
            "fixed_cost": round_money(self.fixed_cost),
            "variable_cost": round_money(self.variable_cost),
            "total_cost": round_money(self.total_cost),
            "profit": round_money(self.profit),
            "margin": self.margin,
        }


def summarize_finance(rows: Iterable[Mapping[str, Any]]) -> FinanceSummary:
    revenue = fixed = variable = 0.0
    for r in rows:
        kind = str(r.get("kind") or "")
        value = to_float(r.get("value"))
        if kind == "receita":
            revenue += value
        elif kind == "despesa":
            expense_type = str(r.get("expense_type") or "")
            if expense_type == "fixa":
                fixed += value
            elif expense_type == "variavel":
                variable += value
    return FinanceSummary(revenue=revenue, fixed_cost=fixed, variable_cost=variable)


def expenses_by_category(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    totals: dict[str, float] = defaultdict(float)
    for r in rows:
        if str(r.get("kind") or "") != "despesa":
            continue
        totals[str(r.get("category") or "outros")] += to_float(r.get("value"))
    out = [{"category": c, "value": round_money(v)} for c, v in totals.items()]
    out.sort(key=lambda r: r["value"] or 0.0, reverse=True)
    return out
