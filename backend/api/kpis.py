"""KPI pages.

Endpoints:
  GET /api/kpis/{leads,sales,overview,finance}  : range pages (default: current month)
  GET /api/kpis/goals                            : annual goals for a month of the goals year
  GET /api/kpis/ops                              : kanban + customer success

A failed fetch answers with the last good payload for the page flagged
``stale``; with nothing to fall back on it is a 502.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from backend.api.auth import require_finance_unlocked
from salesops.config import default_db_path, goals_year
from salesops.dates import DateRange
from salesops.report import (
    RANGE_PAGES,
    KpiBoard,
    build_goals_report,
    build_ops_report,
)
from salesops.store import Store
from salesops.util import today_utc

router = APIRouter()
board = KpiBoard()


def _store() -> Store:
    return Store(os.environ.get("SALESOPS_DB_PATH", default_db_path()))


def _respond(snapshot: dict):
    if snapshot["data"] is None:
        raise HTTPException(status_code=502, detail=snapshot["error"] or "no data for this page yet")
    if snapshot["error"]:
        return JSONResponse(content={**snapshot["data"], "error": snapshot["error"], "stale": True})
    return {**snapshot["data"], "error": None, "stale": False}


async def _range_page(page: str, start_date: str, end_date: str):
    rng = DateRange.resolve(start_date, end_date)
    store = _store()
    snapshot = await board.refresh(page, lambda: RANGE_PAGES[page](store, rng), key=f"{rng.start}:{rng.end}")
    return _respond(snapshot)


@router.get("/leads")
async def leads_page(start_date: str = Query(default=""), end_date: str = Query(default="")):
    return await _range_page("leads", start_date, end_date)


@router.get("/sales")
async def sales_page(start_date: str = Query(default=""), end_date: str = Query(default="")):
    return await _range_page("sales", start_date, end_date)


@router.get("/overview")
async def overview_page(start_date: str = Query(default=""), end_date: str = Query(default="")):
    return await _range_page("overview", start_date, end_date)


@router.get("/finance", dependencies=[Depends(require_finance_unlocked)])
async def finance_page(start_date: str = Query(default=""), end_date: str = Query(default="")):
    return await _range_page("finance", start_date, end_date)


@router.get("/goals")
async def goals_page(month: int = Query(default=0, ge=0, le=12), year: int = Query(default=0)):
    store = _store()
    year = year or goals_year()
    month = month or today_utc().month
    snapshot = await board.refresh("goals", lambda: build_goals_report(store, year, month), key=f"{year}-{month:02d}")
    return _respond(snapshot)


@router.get("/ops")
async def ops_page():
    store = _store()
    snapshot = await board.refresh("ops", lambda: build_ops_report(store))
    return _respond(snapshot)
