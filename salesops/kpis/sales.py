from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from salesops.kpis.funnel import FunnelTotals
from salesops.util import round_money, safe_div


@dataclass(frozen=True)
class CostPerOutcome:
    per_conversation: float
    per_booked_meeting: float
    per_sale: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "cost_per_conversation": round_money(self.per_conversation),
            "cost_per_booked_meeting": round_money(self.per_booked_meeting),
            "cost_per_sale": round_money(self.per_sale),
        }


def cost_per_outcome(spend: float, funnel: FunnelTotals, sale_count: int) -> CostPerOutcome:
    """Spend divided by the funnel-dated counts of the same profile and window.

    No sales yet means a cost per sale of 0, not an unbounded one.
    """
    return CostPerOutcome(
        per_conversation=safe_div(spend, funnel.contato),
        per_booked_meeting=safe_div(spend, funnel.reuniao),
        per_sale=safe_div(spend, sale_count) if sale_count > 0 else 0.0,
    )
