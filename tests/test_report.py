import asyncio
import sqlite3
from datetime import date

import pytest

from salesops.dates import DateRange
from salesops.report import (
    FetchError,
    KpiBoard,
    build_finance_report,
    build_goals_report,
    build_leads_report,
    build_ops_report,
    build_overview_report,
    build_sales_report,
)

FEB = DateRange.month(2024, 2)
TODAY = date(2024, 2, 20)


@pytest.fixture
def seeded(store):
    store.save("daily_funnel", {"id": "f1", "profile": "harley", "day": "2024-02-05", "contato": 10, "qualificacao": 5, "reuniao": 4})
    store.save("daily_funnel", {"id": "f0", "profile": "harley", "day": "2024-01-31", "contato": 99})

    def lead(row_id, lead_date, status, **extra):
        payload = {
            "id": row_id,
            "profile": "harley",
            "name": row_id,
            "status": status,
            "lead_date": lead_date,
            "created_at": f"{lead_date}T09:00:00Z",
        }
        payload.update(extra)
        store.save("meeting_leads", payload)

    lead("a", "2024-02-06", "realizou")
    lead("b", "2024-02-07", "venda", deal_value=3000, deal_date="2024-02-10")
    lead("c", "2024-02-08", "no_show")
    # Booked in January, closed in February.
    lead("d", "2024-01-30", "venda", deal_value=1000, deal_date="2024-02-02")

    store.save("ad_spend", {
        "id": "s1", "profile": "harley", "start_date": "2024-02-01", "end_date": "2024-02-29",
        "spend": 800, "impressions": 1000, "clicks": 50, "followers": 8,
    })
    return store


def test_leads_report(seeded):
    out = asyncio.run(build_leads_report(seeded, FEB, today=TODAY))
    harley = out["profiles"]["harley"]

    assert harley["funnel"] == {"contato": 10, "qualificacao": 5, "reuniao": 4}
    assert harley["leads"] == 3
    assert harley["outcomes"] == {"realized": 2, "sales": 1, "no_show": 1, "show_rate": "66.7%"}
    assert harley["rates"] == {
        "q_from_c": "50.0%",
        "r_from_q": "80.0%",
        "realized_from_booked": "50.0%",
        "sale_from_realized": "50.0%",
    }
    assert out["profiles"]["giovanni"]["rates"]["q_from_c"] == "0%"
    assert out["total"]["funnel"] == harley["funnel"]
    assert out["range"] == {"start_date": "2024-02-01", "end_date": "2024-02-29"}


def test_sales_report_uses_deal_dates(seeded):
    out = asyncio.run(build_sales_report(seeded, FEB, today=TODAY))
    harley = out["profiles"]["harley"]

    assert harley["sales_closed"] == 2
    assert harley["revenue"] == 4000.0
    assert harley["sales_in_funnel"] == 1
    assert harley["spend"] == 800.0
    assert harley["roi"] == 400.0
    assert harley["roi_label"] == "400.0%"
    assert harley["ctr"] == "5.0%"
    assert harley["cost_per_conversation"] == 80.0
    assert harley["cost_per_booked_meeting"] == 200.0
    assert harley["cost_per_sale"] == 800.0

    giovanni = out["profiles"]["giovanni"]
    assert giovanni["spend"] == 0.0
    assert giovanni["roi_label"] == "0%"
    assert out["total"]["revenue"] == 4000.0


def test_overview_report(seeded):
    out = asyncio.run(build_overview_report(seeded, FEB, today=TODAY))
    assert out["total"] == {"spend": 800.0, "revenue": 4000.0, "sales_closed": 2, "show_rate": "66.7%"}


def test_finance_report(store):
    store.save("finance", {"day": "2024-02-03", "kind": "receita", "value": 5000})
    store.save("finance", {"day": "2024-02-04", "kind": "despesa", "expense_type": "fixa", "category": "pessoas", "value": 1000})
    store.save("finance", {"day": "2024-02-05", "kind": "despesa", "expense_type": "variavel", "category": "marketing", "value": 500})
    store.save("finance", {"day": "2024-03-01", "kind": "receita", "value": 999})

    out = asyncio.run(build_finance_report(store, FEB))
    assert out["summary"]["profit"] == 3500.0
    assert out["summary"]["margin"] == "70.0%"
    assert out["expenses_by_category"] == [
        {"category": "pessoas", "value": 1000.0},
        {"category": "marketing", "value": 500.0},
    ]
    assert out["entries"] == 3


def test_goals_report(seeded):
    out = asyncio.run(build_goals_report(seeded, 2024, 2, today=TODAY))
    month = out["month"]

    assert month["sales_qty"] == 2
    assert month["sales_value"] == 4000.0
    assert month["meetings_booked"] == 4
    assert month["show_rate"] == "66.7%"
    assert month["cost_per_sale"] == {"harley": 400.0, "giovanni": None, "total": 400.0}
    assert month["targets"]["meetings_booked"] == 80
    assert month["meetings_realized"] == 2
    assert month["targets"]["meetings_realized"] == 48
    assert month["deltas"]["meetings_realized"] == "-95.8%"
    assert out["ytd"]["range"] == {"start_date": "2024-01-01", "end_date": "2024-02-20"}
    assert out["ytd_fraction"] == round(51 / 366, 4)


def test_ops_report(store):
    store.save("tasks", {"id": "t1", "title": "Onboarding", "status": "pausado"})
    store.save("customers", {"id": "c1", "name": "Loja", "paid_value": 1200, "renewal_date": "2024-03-01"})
    store.save("renewals", {"customer_id": "c1", "renewal_date": "2024-03-02", "paid_value": 1200})

    out = asyncio.run(build_ops_report(store, today=TODAY))
    assert [t["id"] for t in out["kanban"]["pausado"]] == ["t1"]
    assert out["ltv"] == {"c1": 2400.0}
    assert [c["id"] for c in out["upcoming_renewals"]] == ["c1"]
    assert out["upcoming_total"] == 1200.0
    assert out["customers"]["renewed"] == 1


def test_failed_fetch_abandons_pass(seeded, monkeypatch):
    def broken(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(seeded, "list_ad_spend", broken)
    with pytest.raises(FetchError) as exc:
        asyncio.run(build_sales_report(seeded, FEB, today=TODAY))
    assert exc.value.page == "sales"
    assert "locked" in exc.value.message


class TestKpiBoard:
    def test_failure_keeps_last_good_payload(self):
        board = KpiBoard()

        async def ok():
            return {"value": 1}

        async def broken():
            raise FetchError("leads", "timeout")

        first = asyncio.run(board.refresh("leads", ok))
        assert first == {"page": "leads", "data": {"value": 1}, "error": None, "stale": False}

        second = asyncio.run(board.refresh("leads", broken))
        assert second["data"] == {"value": 1}
        assert second["error"] == "timeout"
        assert second["stale"] is True

    def test_failure_without_payload_is_not_stale(self):
        board = KpiBoard()

        async def broken():
            raise FetchError("ops", "boom")

        snap = asyncio.run(board.refresh("ops", broken))
        assert snap["data"] is None
        assert snap["stale"] is False
        assert snap["error"] == "boom"

    def test_superseded_pass_answers_its_caller_without_caching(self):
        board = KpiBoard()

        async def scenario():
            gate = asyncio.Event()

            async def slow():
                await gate.wait()
                return {"value": "old"}

            async def fast():
                return {"value": "new"}

            pending = asyncio.create_task(board.refresh("sales", slow))
            await asyncio.sleep(0)
            await board.refresh("sales", fast)
            gate.set()
            return await pending

        snap = asyncio.run(scenario())
        assert snap["data"] == {"value": "old"}
        assert snap["stale"] is False
        assert board.snapshot("sales")["data"] == {"value": "new"}

    def test_overlapping_ranges_get_their_own_payload(self, seeded):
        board = KpiBoard()
        jan = DateRange.month(2024, 1)

        async def scenario():
            gate = asyncio.Event()

            async def january():
                await gate.wait()
                return await build_leads_report(seeded, jan, today=TODAY)

            async def february():
                return await build_leads_report(seeded, FEB, today=TODAY)

            pending = asyncio.create_task(board.refresh("leads", january, key="2024-01"))
            await asyncio.sleep(0)
            feb_snap = await board.refresh("leads", february, key="2024-02")
            gate.set()
            return await pending, feb_snap

        jan_snap, feb_snap = asyncio.run(scenario())
        assert jan_snap["data"]["range"] == {"start_date": "2024-01-01", "end_date": "2024-01-31"}
        assert feb_snap["data"]["range"] == {"start_date": "2024-02-01", "end_date": "2024-02-29"}
        assert board.snapshot("leads", "2024-01")["data"]["range"]["start_date"] == "2024-01-01"

    def test_pending_view_does_not_leak_into_another(self):
        board = KpiBoard()

        async def scenario():
            gate = asyncio.Event()

            async def slow():
                await gate.wait()
                return {"value": "second"}

            async def first():
                return {"value": "first"}

            pending = asyncio.create_task(board.refresh("leads", slow, key="b"))
            await asyncio.sleep(0)
            snap = await board.refresh("leads", first, key="a")
            gate.set()
            await pending
            return snap

        snap = asyncio.run(scenario())
        assert snap["data"] == {"value": "first"}


def test_late_evening_leads_are_fetched(store):
    # 22:30 in UTC-3 is already the next day in UTC.
    store.save("meeting_leads", {
        "id": "r", "profile": "harley", "name": "Rita", "status": "realizou",
        "lead_date": "2026-10-16", "created_at": "2026-10-17T01:30:00Z",
    })
    store.save("meeting_leads", {
        "id": "v", "profile": "harley", "name": "Vera", "status": "venda",
        "lead_date": "2026-10-16", "deal_date": "2026-10-16", "deal_value": 900,
        "created_at": "2026-10-17T01:30:00Z",
    })
    rng = DateRange.of("2026-10-01", "2026-10-16")
    today = date(2026, 10, 16)

    leads = asyncio.run(build_leads_report(store, rng, today=today))
    assert leads["profiles"]["harley"]["leads"] == 2
    assert leads["profiles"]["harley"]["outcomes"]["realized"] == 2

    sales = asyncio.run(build_sales_report(store, rng, today=today))
    assert sales["profiles"]["harley"]["revenue"] == 900.0
