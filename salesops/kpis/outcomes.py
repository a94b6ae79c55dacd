"""Derived stage membership from meeting-lead status.

A won sale (``venda``) is also a realized meeting, so it counts in both
buckets; ``realized >= sales`` holds for any input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from salesops.util import pct_of


def _status(value: Any) -> str:
    return str(value or "").strip()


def is_sale_status(status: Any) -> bool:
    return _status(status) == "venda"


def is_no_show_status(status: Any) -> bool:
    return _status(status) == "no_show"


def is_realized_status(status: Any) -> bool:
    # reuniao_realizada: older rows written before the rename.
    return _status(status) in ("realizou", "reuniao_realizada")


def is_show_status(status: Any) -> bool:
    return is_realized_status(status) or is_sale_status(status)


@dataclass(frozen=True)
class OutcomeCounts:
    realized: int = 0
    sales: int = 0
    no_show: int = 0

    @property
    def show_rate(self) -> float | None:
        denom = self.realized + self.no_show
        if denom == 0:
            return None
        return self.realized * 100.0 / denom

    @property
    def show_rate_label(self) -> str:
        if self.realized + self.no_show == 0:
            return "—"
        return pct_of(self.realized, self.realized + self.no_show)

    def __add__(self, other: "OutcomeCounts") -> "OutcomeCounts":
        return OutcomeCounts(
            realized=self.realized + other.realized,
            sales=self.sales + other.sales,
            no_show=self.no_show + other.no_show,
        )

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = asdict(self)
        out["show_rate"] = self.show_rate_label
        return out


def classify_outcomes(rows: Iterable[Mapping[str, Any]]) -> OutcomeCounts:
    realized = sales = no_show = 0
    for r in rows:
        status = r.get("status")
        if is_show_status(status):
            realized += 1
        if is_sale_status(status):
            sales += 1
        if is_no_show_status(status):
            no_show += 1
    return OutcomeCounts(realized=realized, sales=sales, no_show=no_show)


def realized_count(rows: Iterable[Mapping[str, Any]]) -> int:
    return classify_outcomes(rows).realized


def sales_count(rows: Iterable[Mapping[str, Any]]) -> int:
    return classify_outcomes(rows).sales
