#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import random
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from salesops.models import FINANCE_CATEGORIES, PROFILES
from salesops.store import Store, init_schema


UTC = timezone.utc

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elisa", "Fabio", "Gabi", "Hugo", "Iara", "Joao"]
PRODUCTS = ["Mentoria", "Consultoria", "Assessoria"]


def _iso_ts(dt: datetime) -> str:
    return dt.astimezone(UTC).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def _iso_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def _daterange(start: date, end: date) -> Iterable[date]:
    if end < start:
        raise ValueError("end_date must be >= start_date")
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _rand_ts(rng: random.Random, day: date) -> str:
    t = time(hour=rng.randint(8, 20), minute=rng.randint(0, 59), second=rng.randint(0, 59), tzinfo=UTC)
    return _iso_ts(datetime.combine(day, t))


def generate_dummy_data(*, start_date: date, end_date: date, seed: int, sqlite_path: Path) -> dict[str, Any]:
    rng = random.Random(seed)
    if sqlite_path.exists():
        sqlite_path.unlink()
    init_schema(str(sqlite_path))
    store = Store(str(sqlite_path))
    counts: dict[str, int] = {}

    def save(kind: str, payload: dict[str, Any], today: str | None = None) -> None:
        store.save(kind, payload, today=today)
        counts[kind] = counts.get(kind, 0) + 1

    days = list(_daterange(start_date, end_date))

    # --- Ads: weekly campaign windows per profile ---
    for profile in PROFILES:
        for week_start in days[::7]:
            week_end = min(week_start + timedelta(days=6), end_date)
            impressions = rng.randint(4_000, 25_000)
            clicks = int(impressions * rng.uniform(0.008, 0.03))
            save(
                "ad_spend",
                {
                    "profile": profile,
                    "start_date": _iso_date(week_start),
                    "end_date": _iso_date(week_end),
                    "impressions": impressions,
                    "clicks": clicks,
                    "followers": int(clicks * rng.uniform(0.1, 0.4)),
                    "spend": round(rng.uniform(150, 900), 2),
                },
            )

    # --- Daily funnel + meeting leads ---
    for profile in PROFILES:
        for day in days:
            contato = rng.randint(5, 40)
            qualificacao = int(contato * rng.uniform(0.2, 0.6))
            reuniao = int(qualificacao * rng.uniform(0.1, 0.5))
            save(
                "daily_funnel",
                {"profile": profile, "day": _iso_date(day), "contato": contato, "qualificacao": qualificacao, "reuniao": reuniao},
            )

            for _ in range(reuniao):
                status = rng.choices(["realizou", "no_show", "venda"], weights=[5, 3, 2])[0]
                lead: dict[str, Any] = {
                    "profile": profile,
                    "created_at": _rand_ts(rng, day),
                    "lead_date": _iso_date(day) if rng.random() > 0.1 else "",
                    "name": rng.choice(FIRST_NAMES),
                    "contact": f"+55 11 9{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}",
                    "instagram": f"@lead{rng.randint(100, 999)}",
                    "avg_revenue": round(rng.uniform(10_000, 80_000), 2),
                    "status": status,
                    "notes": "",
                }
                deal_day = _iso_date(day)
                if status == "venda":
                    # Deals close some days after the meeting.
                    deal_day = _iso_date(min(day + timedelta(days=rng.randint(0, 20)), end_date))
                    lead["deal_value"] = round(rng.uniform(3_000, 15_000), 2)
                    lead["deal_date"] = deal_day
                save("meeting_leads", lead, today=deal_day)

    # --- Finance ---
    for day in days[::3]:
        save(
            "finance",
            {"day": _iso_date(day), "kind": "receita", "category": "outros", "description": "Recebimento", "value": round(rng.uniform(2_000, 12_000), 2)},
        )
        expense_type = rng.choice(["fixa", "variavel"])
        save(
            "finance",
            {
                "day": _iso_date(day),
                "kind": "despesa",
                "expense_type": expense_type,
                "category": rng.choice(FINANCE_CATEGORIES),
                "description": "Despesa",
                "value": round(rng.uniform(300, 4_000), 2),
            },
        )

    # --- Ops ---
    for i in range(8):
        due = rng.choice(days + [None])
        save(
            "tasks",
            {
                "title": f"Tarefa {i + 1}",
                "owner": rng.choice(FIRST_NAMES),
                "due": _iso_date(due) if due else None,
                "status": rng.choice(["pausado", "em_andamento", "feito", "arquivado"]),
            },
        )

    for category, title, url in [
        ("login", "CRM", "https://crm.example.com"),
        ("link", "Agenda comercial", "https://cal.example.com"),
        ("procedimento", "Checklist de onboarding", ""),
    ]:
        save("important_items", {"category": category, "title": title, "url": url})

    for i in range(12):
        entry = rng.choice(days)
        customer = store.save(
            "customers",
            {
                "name": f"Cliente {i + 1}",
                "entry_date": _iso_date(entry),
                "product": rng.choice(PRODUCTS),
                "paid_value": round(rng.uniform(2_000, 10_000), 2),
                "renewal_date": _iso_date(entry + timedelta(days=rng.randint(15, 120))),
                "churned_at": _iso_date(entry + timedelta(days=60)) if rng.random() < 0.15 else None,
            },
        )
        counts["customers"] = counts.get("customers", 0) + 1
        if rng.random() < 0.5:
            save(
                "renewals",
                {"customer_id": customer["id"], "renewal_date": customer["renewal_date"], "paid_value": customer["paid_value"]},
            )

    return {
        "seed": seed,
        "date_range": {"start": _iso_date(start_date), "end": _iso_date(end_date)},
        "paths": {"sqlite": str(sqlite_path)},
        "row_counts": counts,
        "notes": ["All data is synthetic (dummy) and not business truth."],
    }


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic dashboard demo data (SQLite).")
    parser.add_argument("--start-date", type=str, default="", help="YYYY-MM-DD (default: 60 days ago)")
    parser.add_argument("--end-date", type=str, default="", help="YYYY-MM-DD (default: today)")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--sqlite-path", type=str, default="data/salesops.sqlite")
    args = parser.parse_args(argv)

    today = date.today()
    start = today - timedelta(days=60) if not args.start_date else date.fromisoformat(args.start_date)
    end = today if not args.end_date else date.fromisoformat(args.end_date)

    result = generate_dummy_data(start_date=start, end_date=end, seed=args.seed, sqlite_path=Path(args.sqlite_path))
    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
