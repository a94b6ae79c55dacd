from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from salesops.util import to_int


FUNNEL_FIELDS: tuple[str, ...] = ("contato", "qualificacao", "reuniao")


@dataclass(frozen=True)
class FunnelTotals:
    contato: int = 0
    qualificacao: int = 0
    reuniao: int = 0

    def __add__(self, other: "FunnelTotals") -> "FunnelTotals":
        return FunnelTotals(
            contato=self.contato + other.contato,
            qualificacao=self.qualificacao + other.qualificacao,
            reuniao=self.reuniao + other.reuniao,
        )

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def funnel_totals(rows: Iterable[Mapping[str, Any]]) -> FunnelTotals:
    """Element-wise sum of the manual stage counters.

    A corrupt counter contributes 0 for that field only.
    """
    sums = dict.fromkeys(FUNNEL_FIELDS, 0)
    for r in rows:
        for f in FUNNEL_FIELDS:
            sums[f] += to_int(r.get(f))
    return FunnelTotals(**sums)
