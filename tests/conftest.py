from __future__ import annotations

import pytest

from salesops.store import Store


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "salesops_test.sqlite")


@pytest.fixture
def store(db_path):
    return Store(db_path)


@pytest.fixture
def client(db_path, monkeypatch):
    from fastapi.testclient import TestClient

    from backend.api import kpis
    from backend.main import app
    from salesops.report import KpiBoard

    monkeypatch.setenv("SALESOPS_DB_PATH", db_path)
    monkeypatch.delenv("FINANCE_PASSWORD", raising=False)
    monkeypatch.setattr(kpis, "board", KpiBoard())
    with TestClient(app) as c:
        yield c
