from salesops.attribution import deal_date, funnel_in_range, lead_date, leads_in_range, sales_in_range
from salesops.dates import DateRange

FEB = DateRange.of("2024-02-01", "2024-02-28")


def test_lead_date_precedence():
    assert lead_date({"lead_date": "2024-02-03", "created_at": "2024-01-01T10:00:00Z"}) == "2024-02-03"
    assert lead_date({"lead_date": "", "created_at": "2024-01-01T10:00:00Z"}) == "2024-01-01"
    assert lead_date({"lead_date": None, "created_at": None}, today="2024-02-15") == "2024-02-15"


def test_lead_without_any_date_is_counted_as_today():
    rows = [{"status": "realizou"}]
    assert leads_in_range(rows, FEB, today="2024-02-10") == rows
    assert leads_in_range(rows, FEB, today="2024-03-10") == []


def test_sale_without_deal_date_is_dropped_from_revenue_views():
    rows = [{"status": "venda", "deal_date": None, "lead_date": "2024-02-10"}]
    assert deal_date(rows[0]) == ""
    assert sales_in_range(rows, FEB) == []


def test_scenario_d_lead_and_deal_dates_attribute_independently():
    lead = {
        "status": "venda",
        "lead_date": "2024-01-05",
        "deal_date": "2024-02-10",
        "deal_value": 5000,
        "created_at": "2024-01-05T12:00:00Z",
    }
    assert leads_in_range([lead], FEB) == []
    assert sales_in_range([lead], FEB) == [lead]


def test_changing_lead_date_never_changes_sales_membership():
    base = {"status": "venda", "deal_date": "2024-02-10"}
    for ld in ("2023-12-01", "2024-02-10", "2024-05-30", None):
        assert len(sales_in_range([{**base, "lead_date": ld}], FEB)) == 1
    outside = {"status": "venda", "deal_date": "2024-03-01", "lead_date": "2024-02-10"}
    assert sales_in_range([outside], FEB) == []


def test_non_sale_statuses_are_never_sales():
    rows = [{"status": "realizou", "deal_date": "2024-02-10"}]
    assert sales_in_range(rows, FEB) == []


def test_funnel_in_range_uses_day():
    rows = [{"day": "2024-02-01"}, {"day": "2024-01-31"}, {"day": ""}]
    assert funnel_in_range(rows, FEB) == [{"day": "2024-02-01"}]
