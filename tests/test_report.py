import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from laundry.domain import OrderPatch
from laundry.errors import ValidationError
from laundry.service import LaundryApp
from laundry.store import MemoryStore
from Report_Service.report import breakdown, build_report, by_date, by_range, summarize

orders = (
    {"id": 1, "customer_id": 1, "weight": 2.5, "total": 30000, "status": "received",
     "created_at": "2024-05-01T09:00:00"},
    {"id": 2, "customer_id": 2, "weight": 2, "total": 20000, "status": "done",
     "created_at": "2024-05-01T15:30:00"},
    {"id": 3, "customer_id": 1, "weight": 1, "total": 12000, "status": "received",
     "created_at": "2024-05-02T08:00:00"},
    {"id": 4, "customer_id": 1, "weight": 4, "total": 48000, "status": "picked",
     "created_at": "2024-05-04T12:00:00"},
)


def test_summarize_empty():
    assert summarize(()) == {"count": 0, "total_revenue": 0, "total_weight": 0}


def test_summarize_sums():
    summary = summarize(orders)
    assert summary["count"] == 4
    assert summary["total_revenue"] == 110000
    assert summary["total_weight"] == 9.5


def test_by_date_prefix_match():
    found = by_date(orders, "2024-05-01")
    assert [o["id"] for o in found] == [1, 2]
    assert all(o["created_at"].startswith("2024-05-01") for o in found)


def test_by_range_inclusive():
    assert [o["id"] for o in by_range(orders, "2024-05-02", "2024-05-04")] == [3, 4]
    assert by_range(orders, "2024-06-01", "2024-06-30") == ()


def test_breakdown_keeps_first_occurrence_order():
    groups = breakdown(orders)
    assert [g["status"] for g in groups] == ["received", "done", "picked"]
    received = groups[0]
    assert received == {"status": "received", "count": 2, "sum_total": 42000}


def test_breakdown_groups_cover_all_orders():
    assert sum(g["count"] for g in breakdown(orders)) == len(orders)
    assert breakdown(()) == []


def test_build_report_joins_customers_oldest_first():
    customers = {1: {"id": 1, "name": "Budi", "phone": "08123"}}
    report = build_report(tuple(reversed(orders[:2])), customers, {"date": "2024-05-01"})

    assert report["meta"] == {"date": "2024-05-01"}
    assert [o["id"] for o in report["orders"]] == [1, 2]
    assert report["orders"][0]["customer_name"] == "Budi"
    assert report["orders"][1]["customer_name"] is None


@pytest.fixture
def laundry():
    stamps = iter(["2024-04-30T10:00:00", "2024-05-01T09:00:00", "2024-05-01T11:00:00",
                   "2024-05-01T12:00:00", "2024-05-01T13:00:00", "2024-05-01T14:00:00"])
    return LaundryApp(MemoryStore(), clock=lambda: next(stamps, "2024-05-03T10:00:00"))


def test_daily_report_scenario(laundry):
    """Два заказа за 2024-05-01: 30000 received и 20000 done"""
    budi = laundry.customers.create("Budi", "08123")
    laundry.orders.create(budi.id, 2.5, 12000)
    second = laundry.orders.create(budi.id, 2, 10000)
    laundry.orders.update(second.id, OrderPatch(status="done"))

    report = laundry.reports.daily("2024-05-01")

    assert report["summary"]["count"] == 2
    assert report["summary"]["total_revenue"] == 50000
    assert [g["count"] for g in report["breakdown"]] == [1, 1]
    assert report["orders"][0]["customer_name"] == "Budi"


def test_period_report_requires_bounds(laundry):
    with pytest.raises(ValidationError):
        laundry.reports.period("2024-05-01", None)
    with pytest.raises(ValidationError):
        laundry.reports.period("", "2024-05-31")


def test_period_report(laundry):
    budi = laundry.customers.create("Budi")
    laundry.orders.create(budi.id, 1, 1000)
    laundry.orders.create(budi.id, 2, 1000)

    report = laundry.reports.period("2024-05-01", "2024-05-31")
    assert report["meta"] == {"start": "2024-05-01", "end": "2024-05-31"}
    assert report["summary"]["total_weight"] == 3
