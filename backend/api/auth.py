"""Shared-password gate in front of the finance views (unlock only, no users).

Unlocking sets a cookie holding ``finance:<expiry>:<hmac>``; the finance
routes check the signature and the expiry.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import time

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

router = APIRouter()

AUTH_COOKIE_NAME = "salesops_finance"
FINANCE_SCOPE = "finance"


class UnlockRequest(BaseModel):
    password: str


def _finance_password() -> str:
    return os.environ.get("FINANCE_PASSWORD", "")


def _auth_secret() -> str:
    return os.environ.get("AUTH_SECRET_KEY", "").strip()


def _ttl_seconds() -> int:
    try:
        hours = int(os.environ.get("AUTH_SESSION_TTL_HOURS", "12"))
    except ValueError:
        hours = 12
    return max(hours, 1) * 60 * 60


def _cookie_secure() -> bool:
    return os.environ.get("AUTH_COOKIE_SECURE", "").strip().lower() in {"1", "true", "yes", "on"}


def is_gate_enabled() -> bool:
    return bool(_finance_password())


def _sign(message: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_token(now: int | None = None) -> str:
    secret = _auth_secret()
    if not secret:
        raise HTTPException(status_code=500, detail="AUTH_SECRET_KEY is required when FINANCE_PASSWORD is set")
    expires = (now if now is not None else int(time.time())) + _ttl_seconds()
    message = f"{FINANCE_SCOPE}:{expires}"
    return f"{message}:{_sign(message, secret)}"


def token_is_valid(token: str, now: int | None = None) -> bool:
    secret = _auth_secret()
    parts = str(token or "").strip().split(":")
    if not secret or len(parts) != 3 or parts[0] != FINANCE_SCOPE:
        return False
    message = f"{parts[0]}:{parts[1]}"
    if not hmac.compare_digest(parts[2], _sign(message, secret)):
        return False
    try:
        expires = int(parts[1])
    except ValueError:
        return False
    return expires > (now if now is not None else int(time.time()))


def is_unlocked(request: Request) -> bool:
    if not is_gate_enabled():
        return True
    return token_is_valid(request.cookies.get(AUTH_COOKIE_NAME, ""))


def require_finance_unlocked(request: Request) -> None:
    """Route dependency: 401 unless the finance gate is open for this client."""
    if not is_unlocked(request):
        raise HTTPException(status_code=401, detail="Finance area is locked")


@router.post("/unlock")
async def unlock(body: UnlockRequest, response: Response):
    if not is_gate_enabled():
        raise HTTPException(status_code=400, detail="Finance gate is disabled")

    if not hmac.compare_digest(body.password.encode("utf-8"), _finance_password().encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid password")

    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=issue_token(),
        httponly=True,
        secure=_cookie_secure(),
        samesite="lax",
        max_age=_ttl_seconds(),
        path="/",
    )
    return {"ok": True, "unlocked": True, "expires_in": _ttl_seconds()}


@router.post("/lock")
async def lock(response: Response):
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")
    return {"ok": True, "unlocked": False}


@router.get("/status")
async def status(request: Request):
    return {"gate_enabled": is_gate_enabled(), "unlocked": is_unlocked(request)}
