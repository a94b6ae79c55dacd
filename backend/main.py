from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add repo root so salesops and backend resolve when run from backend/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from salesops.config import default_db_path, log_level
from salesops.store import init_schema

from backend.api.auth import router as auth_router
from backend.api.entries import router as entries_router
from backend.api.kpis import router as kpis_router

logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("salesops.backend")


def _db() -> str:
    return os.environ.get("SALESOPS_DB_PATH", default_db_path())


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = _db()
    if not Path(db).exists():
        logger.warning("DB not found at %s, creating an empty one", db)
    init_schema(db)
    yield

app = FastAPI(title="SalesOps Dashboard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(entries_router, prefix="/api/entries", tags=["entries"])
app.include_router(kpis_router, prefix="/api/kpis", tags=["kpis"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "db": _db()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
