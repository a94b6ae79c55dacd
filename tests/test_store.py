import pytest

from salesops.models import ValidationError
from salesops.store import Store


def _lead(**overrides):
    payload = {
        "id": "lead-1",
        "profile": "harley",
        "name": "Ana",
        "status": "venda",
        "lead_date": "2024-01-30",
        "deal_value": 1500,
        "deal_date": "2024-02-02",
        "created_at": "2024-01-30T12:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestUpsert:
    def test_round_trip(self, store):
        saved = store.save("meeting_leads", _lead())
        fetched = store.get("meeting_leads", "lead-1")
        assert fetched == saved
        assert fetched["deal_value"] == 1500.0
        assert fetched["deal_date"] == "2024-02-02"
        assert fetched["lead_date"] == "2024-01-30"

    def test_same_id_is_idempotent(self, store):
        store.save("meeting_leads", _lead())
        store.save("meeting_leads", _lead())
        assert len(store.list("meeting_leads")) == 1

    def test_update_keeps_created_at(self, store):
        first = store.save("tasks", {"id": "t1", "title": "Ligar cliente"})
        second = store.save("tasks", {"id": "t1", "title": "Ligar cliente", "status": "feito", "created_at": "1999-01-01T00:00:00Z"})
        assert second["status"] == "feito"
        assert second["created_at"] == first["created_at"]
        assert len(store.list_tasks()) == 1

    def test_generated_id(self, store):
        row = store.save("tasks", {"title": "Sem id"})
        assert row["id"]
        assert store.get("tasks", row["id"])["title"] == "Sem id"

    def test_upsert_requires_id(self, store):
        with pytest.raises(ValueError):
            store.upsert("tasks", {"title": "x"})

    def test_invalid_payload_is_not_stored(self, store):
        with pytest.raises(ValidationError):
            store.save("meeting_leads", _lead(status="marcou"))
        assert store.list("meeting_leads") == []

    def test_unknown_kind(self, store):
        with pytest.raises(KeyError):
            store.list("orders")

    def test_delete(self, store):
        store.save("meeting_leads", _lead())
        store.delete("meeting_leads", "lead-1")
        assert store.get("meeting_leads", "lead-1") is None


class TestFilters:
    def test_ad_spend_overlaps_range(self, store):
        store.save("ad_spend", {"id": "a", "profile": "harley", "start_date": "2024-01-25", "end_date": "2024-02-05", "spend": 100})
        store.save("ad_spend", {"id": "b", "profile": "harley", "start_date": "2024-02-10", "end_date": "2024-02-12", "spend": 50})
        store.save("ad_spend", {"id": "c", "profile": "giovanni", "start_date": "2024-03-01", "end_date": "2024-03-10", "spend": 70})

        rows = store.list_ad_spend("2024-02-01", "2024-02-29")
        assert [r["id"] for r in rows] == ["b", "a"]
        assert store.list_ad_spend("2024-02-01", "2024-02-29", profile="giovanni") == []

    def test_funnel_by_profile_and_day(self, store):
        store.save("daily_funnel", {"id": "f1", "profile": "harley", "day": "2024-02-01", "contato": 5})
        store.save("daily_funnel", {"id": "f2", "profile": "harley", "day": "2024-03-01", "contato": 5})
        store.save("daily_funnel", {"id": "f3", "profile": "giovanni", "day": "2024-02-03", "contato": 5})

        rows = store.list_daily_funnel("harley", "2024-02-01", "2024-02-29")
        assert [r["id"] for r in rows] == ["f1"]

    def test_leads_filtered_by_creation_time(self, store):
        store.save("meeting_leads", _lead(id="in", created_at="2024-02-29T22:00:00Z"))
        store.save("meeting_leads", _lead(id="out", created_at="2024-03-01T00:00:01Z"))

        rows = store.list_meeting_leads("harley", "2024-02-01", "2024-02-29")
        assert [r["id"] for r in rows] == ["in"]

    def test_finance_by_day(self, store):
        store.save("finance", {"id": "r", "day": "2024-02-03", "kind": "receita", "value": 10})
        store.save("finance", {"id": "x", "day": "2024-01-31", "kind": "receita", "value": 10})
        assert [r["id"] for r in store.list_finance("2024-02-01", "2024-02-29")] == ["r"]

    def test_customers_ordered_by_renewal(self, store):
        store.save("customers", {"id": "late", "name": "B", "renewal_date": "2024-05-01"})
        store.save("customers", {"id": "soon", "name": "A", "renewal_date": "2024-03-01"})
        assert [c["id"] for c in store.list_customers()] == ["soon", "late"]


def test_store_creates_missing_db(tmp_path):
    path = tmp_path / "nested" / "new.sqlite"
    Store(str(path))
    assert path.exists()
