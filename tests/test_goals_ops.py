from datetime import date

from salesops.dates import DateRange, year_to_date
from salesops.kpis.customers import customer_stats, ltv_by_customer, renewal_rate, upcoming_renewals
from salesops.kpis.goals import DEFAULT_GOALS, clamp_pct, cost_per_sale, delta_label, delta_pct, progress_pct, ytd_fraction
from salesops.kpis.tasks import items_by_category, tasks_by_status


class TestGoals:
    def test_monthly_targets(self):
        assert DEFAULT_GOALS.month_meetings_realized == 48
        assert round(DEFAULT_GOALS.month_revenue, 2) == 83333.33
        assert DEFAULT_GOALS.annual_meetings_booked == 960

    def test_ytd_fraction(self):
        assert ytd_fraction(2026, year_to_date(2026, "2026-12-31")) == 1.0
        assert round(ytd_fraction(2026, year_to_date(2026, "2026-01-01")), 5) == round(1 / 365, 5)

    def test_delta(self):
        assert delta_pct(110, 100) == 10
        assert delta_pct(5, 0) is None
        assert delta_label(90, 100) == "-10.0%"
        assert delta_label(100, 100) == "+0.0%"
        assert delta_label(1, 0) == "—"

    def test_progress_is_clamped(self):
        assert progress_pct(250_000, 1_000_000) == 25.0
        assert progress_pct(2_000_000, 1_000_000) == 100.0
        assert progress_pct(-5, 100) == 0.0
        assert clamp_pct(None) == 0.0

    def test_cost_per_sale(self):
        assert cost_per_sale(1000, 4) == 250
        assert cost_per_sale(1000, 0) is None


class TestCustomers:
    customers = [
        {"id": "c1", "paid_value": 1000, "renewal_date": "2026-03-10"},
        {"id": "c2", "paid_value": 2000, "renewal_date": "2026-03-20", "churned_at": "2026-03-25"},
        {"id": "c3", "paid_value": 500, "renewal_date": "2026-01-05"},
        {"id": "c4", "paid_value": 800, "renewal_date": None},
    ]
    renewals = [
        {"customer_id": "c1", "renewal_date": "2026-03-12", "paid_value": 1000},
        {"customer_id": "c1", "renewal_date": "2025-03-12", "paid_value": 900},
        {"customer_id": "c3", "renewal_date": "2026-02-01", "paid_value": 500},
    ]

    def test_renewal_rate(self):
        march = DateRange.month(2026, 3)
        assert renewal_rate(self.customers, self.renewals, march) == {"pct": 50.0, "base": 2, "renewed": 1}

    def test_renewal_rate_without_due_customers(self):
        rng = DateRange.month(2026, 7)
        assert renewal_rate(self.customers, self.renewals, rng)["pct"] is None

    def test_ltv(self):
        ltv = ltv_by_customer(self.customers, self.renewals)
        assert ltv == {"c1": 2900.0, "c2": 2000.0, "c3": 1000.0, "c4": 800.0}

    def test_upcoming(self):
        rows = upcoming_renewals(self.customers, date(2026, 3, 1))
        assert [r["id"] for r in rows] == ["c1", "c2"]

    def test_stats(self):
        stats = customer_stats(self.customers, self.renewals, date(2026, 5, 1))
        assert stats["total"] == 4
        assert stats["active"] == 3
        assert stats["renewed"] == 2
        # c2 renewal date is older than 30 days and it never renewed
        assert stats["not_renewed"] == 1
        assert stats["pct_active"] == 75.0


def test_tasks_by_status_orders_columns():
    tasks = [
        {"id": "a", "status": "feito", "due": None, "created_at": "2026-01-01T00:00:00Z"},
        {"id": "b", "status": "feito", "due": "2026-02-01", "created_at": "2026-01-02T00:00:00Z"},
        {"id": "c", "status": "feito", "due": "2026-02-01", "created_at": "2026-01-05T00:00:00Z"},
        {"id": "d", "status": None, "due": "2026-01-10"},
    ]
    columns = tasks_by_status(tasks)
    assert list(columns)[:4] == ["pausado", "em_andamento", "feito", "arquivado"]
    assert [t["id"] for t in columns["feito"]] == ["c", "b", "a"]
    assert [t["id"] for t in columns["em_andamento"]] == ["d"]
    assert columns["pausado"] == []


def test_items_by_category():
    items = [
        {"id": "a", "category": "login", "created_at": "2026-01-01T00:00:00Z"},
        {"id": "b", "category": "login", "created_at": "2026-02-01T00:00:00Z"},
        {"id": "c", "category": "legacy"},
    ]
    groups = items_by_category(items)
    assert list(groups) == ["login", "link", "material", "procedimento", "outro"]
    assert [it["id"] for it in groups["login"]] == ["b", "a"]
    assert [it["id"] for it in groups["outro"]] == ["c"]
