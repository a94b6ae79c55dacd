from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from salesops.config import default_db_path, goals_year, log_level
from salesops.dates import DateRange
from salesops.report import RANGE_PAGES, FetchError, build_goals_report, build_ops_report
from salesops.store import KINDS, Store, init_schema
from salesops.util import today_utc


def _print(obj: object) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="salesops", description="Sales/marketing KPI engine (funnel, ads, finance).")
    parser.add_argument("--db", type=str, default=default_db_path(), help="SQLite db path (default: data/salesops.sqlite)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db", help="Create the tables if they do not exist.")

    report = sub.add_parser("report", help="Compute a KPI page as JSON.")
    report.add_argument("page", type=str, choices=sorted([*RANGE_PAGES, "goals", "ops"]))
    report.add_argument("--start-date", type=str, default="")
    report.add_argument("--end-date", type=str, default="")
    report.add_argument("--year", type=int, default=goals_year())
    report.add_argument("--month", type=int, default=today_utc().month)

    lst = sub.add_parser("list", help="List stored rows of one kind.")
    lst.add_argument("kind", type=str, choices=sorted(KINDS))
    lst.add_argument("--profile", type=str, default="")
    lst.add_argument("--start-date", type=str, default="")
    lst.add_argument("--end-date", type=str, default="")

    args = parser.parse_args(argv)
    logging.basicConfig(level=log_level(), stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")
    db_path = args.db

    if args.cmd == "init-db":
        init_schema(db_path)
        _print({"ok": True, "db": db_path})
        return 0

    store = Store(db_path)

    if args.cmd == "list":
        _print(
            store.list(
                args.kind,
                profile=args.profile or None,
                start=args.start_date or None,
                end=args.end_date or None,
            )
        )
        return 0

    if args.cmd == "report":
        try:
            if args.page == "goals":
                payload = asyncio.run(build_goals_report(store, args.year, args.month))
            elif args.page == "ops":
                payload = asyncio.run(build_ops_report(store))
            else:
                rng = DateRange.resolve(args.start_date, args.end_date)
                payload = asyncio.run(RANGE_PAGES[args.page](store, rng))
        except FetchError as exc:
            raise SystemExit(f"{exc.page}: {exc.message}") from exc
        _print(payload)
        return 0

    return 1


def _entrypoint() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
