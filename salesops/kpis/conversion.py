from __future__ import annotations

from typing import Any

from salesops.kpis.funnel import FunnelTotals
from salesops.kpis.outcomes import OutcomeCounts
from salesops.util import pct_of


STAGE_CHAIN: tuple[str, ...] = ("contato", "qualificacao", "reuniao", "realizada", "venda")

STAGE_LABELS: dict[str, str] = {
    "contato": "Contato",
    "qualificacao": "Qualificação",
    "reuniao": "Reunião marcada",
    "realizada": "Reunião realizada",
    "venda": "Venda",
}

# Keys for each adjacent (from, to) pair of STAGE_CHAIN.
RATE_KEYS: tuple[str, ...] = (
    "q_from_c",
    "r_from_q",
    "realized_from_booked",
    "sale_from_realized",
)


def conversion_rate(to_count: float, from_count: float) -> str:
    return pct_of(to_count, from_count)


def stage_counts(funnel: FunnelTotals, outcomes: OutcomeCounts) -> dict[str, int]:
    return {
        "contato": funnel.contato,
        "qualificacao": funnel.qualificacao,
        "reuniao": funnel.reuniao,
        "realizada": outcomes.realized,
        "venda": outcomes.sales,
    }


def conversion_rates(funnel: FunnelTotals, outcomes: OutcomeCounts) -> dict[str, str]:
    counts = stage_counts(funnel, outcomes)
    out: dict[str, str] = {}
    for key, frm, to in zip(RATE_KEYS, STAGE_CHAIN, STAGE_CHAIN[1:]):
        out[key] = conversion_rate(counts[to], counts[frm])
    return out


def conversion_steps(funnel: FunnelTotals, outcomes: OutcomeCounts) -> list[dict[str, Any]]:
    counts = stage_counts(funnel, outcomes)
    rates = conversion_rates(funnel, outcomes)
    steps: list[dict[str, Any]] = []
    for i, stage in enumerate(STAGE_CHAIN):
        steps.append(
            {
                "key": stage,
                "label": STAGE_LABELS[stage],
                "count": counts[stage],
                "step_rate": rates[RATE_KEYS[i - 1]] if i > 0 else None,
            }
        )
    return steps
