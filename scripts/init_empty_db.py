#!/usr/bin/env python3
"""Create an empty SQLite database with the correct schema (no demo data)."""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from salesops.store import init_schema


def init_db(db_path: str) -> None:
    p = Path(db_path)
    if p.exists():
        p.unlink()
    init_schema(db_path)
    print(f"Empty database created at {db_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--sqlite-path", default="data/salesops.sqlite")
    args = parser.parse_args()
    init_db(args.sqlite_path)
