"""CRUD over every stored kind.

Endpoints:
  GET    /api/entries/{kind}        : list, filtered by profile / start_date / end_date
  POST   /api/entries/{kind}        : validate + upsert (id generated when absent)
  DELETE /api/entries/{kind}/{id}   : delete by id
"""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Request

from backend.api.auth import require_finance_unlocked
from salesops.config import default_db_path
from salesops.models import PROFILES, ValidationError
from salesops.store import KINDS, Store

router = APIRouter()

GATED_KINDS = {"finance"}


def _store() -> Store:
    return Store(os.environ.get("SALESOPS_DB_PATH", default_db_path()))


def _check_kind(kind: str, request: Request) -> None:
    if kind not in KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown kind: {kind}")
    if kind in GATED_KINDS:
        require_finance_unlocked(request)


@router.get("/{kind}")
async def list_entries(
    kind: str,
    request: Request,
    profile: str = Query(default=""),
    start_date: str = Query(default=""),
    end_date: str = Query(default=""),
):
    _check_kind(kind, request)
    if KINDS[kind].profile_scoped and profile and profile not in PROFILES:
        raise HTTPException(status_code=422, detail={"field": "profile", "message": f"profile must be one of: {', '.join(PROFILES)}"})

    rows = _store().list(
        kind,
        profile=profile or None,
        start=start_date or None,
        end=end_date or None,
    )
    return {"kind": kind, "rows": rows, "count": len(rows)}


@router.post("/{kind}")
async def save_entry(kind: str, request: Request, payload: dict[str, Any] = Body(...)):
    _check_kind(kind, request)
    try:
        row = _store().save(kind, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.as_dict()) from exc
    return {"ok": True, "row": row}


@router.delete("/{kind}/{row_id}")
async def delete_entry(kind: str, row_id: str, request: Request):
    _check_kind(kind, request)
    _store().delete(kind, row_id)
    return {"ok": True, "id": row_id}
