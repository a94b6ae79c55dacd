from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone
from typing import Any


UTC = timezone.utc


def parse_iso_date(value: str) -> date:
    return date.fromisoformat(value)


def iso_ts(dt: datetime) -> str:
    return dt.astimezone(UTC).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def iso_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def today_utc() -> date:
    # created_at is stamped in UTC; "today" must use the same clock.
    return datetime.now(UTC).date()


def today_iso() -> str:
    return iso_date(today_utc())


def iso10(value: Any) -> str:
    """First ten characters of a date/timestamp value, "" when absent."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return iso_date(value)
    if isinstance(value, date):
        return iso_date(value)
    return str(value).strip()[:10]


def new_id() -> str:
    return str(uuid.uuid4())


def to_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    s = str(value).strip()
    if s == "":
        return default
    try:
        f = float(s)
    except ValueError:
        return default
    return int(f) if math.isfinite(f) else default


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else default
    s = str(value).strip()
    if s == "":
        return default
    try:
        f = float(s)
    except ValueError:
        return default
    return f if math.isfinite(f) else default


def safe_div(n: float, d: float) -> float:
    # Zero denominators and non-finite results collapse to 0.
    if d == 0:
        return 0.0
    out = n / d
    return out if math.isfinite(out) else 0.0


def pct(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return "0%"
    return f"{value:.1f}%"


def pct_of(n: float, d: float) -> str:
    """Percentage label of n/d, "0%" when the denominator is zero."""
    if d == 0:
        return "0%"
    return pct(safe_div(n * 100.0, d))


def round_money(value: float | None) -> float | None:
    if value is None:
        return None
    return float(f"{value:.2f}")


def brl(value: float) -> str:
    # pt-BR grouping: "." for thousands, "," for decimals.
    v = to_float(value)
    sign = "-" if v < 0 else ""
    grouped = f"{abs(v):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {grouped}"
