from datetime import datetime

import pytest

from mtracker.domain import BudgetPlan, Totals, Transaction
from mtracker.events import EventBus
from mtracker.services import (
    BudgetService,
    LiveSummary,
    ReportService,
    default_calculators,
)
from mtracker.stores import Session, TransactionStore

NOW = datetime(2025, 1, 15, 12, 0)


def make_tx(id, amount, created_at):
    return Transaction(id=id, amount=amount, title="Food", category_id="food",
                       category_type="income" if amount > 0 else "expense",
                       created_at=created_at, updated_at=created_at)


RECORDS = (
    make_tx("t1", 50000, "2025-01-10T09:00:00"),
    make_tx("t2", -20000, "2025-01-12T09:00:00"),
    make_tx("t3", -5000, "2024-12-30T09:00:00"),
)


def test_report_service_month():
    svc = ReportService(default_calculators(recent_limit=1, activity_limit=7))
    rpt = svc.period_report("month", RECORDS, NOW)

    assert rpt["period"] == "month"
    result = rpt["result"]
    assert result["totals"] == Totals(income=50000, expenses=-20000, balance=30000)
    assert result["count"] == 2
    assert result["income_usage"].percent == 40
    assert [t.id for t in result["recent"]] == ["t2"]
    assert [b.transaction.id for b in result["activity"]] == ["t2"]
    assert [s["calculator"] for s in rpt["steps"]] == ["totals_calculator", "income_usage_calculator",
                                                     "recent", "activity"]


def test_report_service_custom_calculator_sees_accumulator():
    def c_count(period, now, records, acc):
        return {"n": len(records)}

    def c_double(period, now, records, acc):
        return {"double": acc["n"] * 2}

    rpt = ReportService([c_count, c_double]).period_report("all", RECORDS, NOW)
    assert rpt["result"] == {"n": 3, "double": 6}
    assert rpt["steps"][1]["output"] == {"double": 6}


def test_budget_service_with_budget():
    budgets = {"2025-01": BudgetPlan("2025-01", 100000)}
    rpt = BudgetService().monthly_report("2025-01", RECORDS, budgets)

    assert rpt["month"] == "2025-01"
    assert rpt["validation"][0]["messages"] == []
    assert rpt["result"]["spent_abs"] == 20000
    status = rpt["result"]["status"]
    assert status.ratio == 0.2
    assert status.remaining == 80000


def test_budget_service_without_budget():
    rpt = BudgetService().monthly_report("2024-12", RECORDS, {})
    assert rpt["validation"][0]["messages"] == ["No budget set for 2024-12"]
    assert rpt["result"]["spent"] == -5000
    assert rpt["result"]["status"] is None


def test_budget_service_validator_error_is_reported():
    def broken(month_key, records, budget):
        raise KeyError("x")

    rpt = BudgetService(validators=[broken]).monthly_report("2025-01", RECORDS, {})
    assert rpt["validation"][0]["messages"][0].startswith("validator_error")


def test_live_summary_follows_snapshots():
    bus = EventBus()
    session = Session(bus)
    session.sign_in("u1")
    store = TransactionStore(bus, session)
    summary = LiveSummary(bus, store.snapshot(), clock=lambda: NOW)

    assert summary.result["count"] == 0

    for tx in RECORDS:
        store.add(tx)
    assert summary.result["count"] == 2
    assert summary.result["totals"].balance == 30000

    summary.select_period("all")
    assert summary.result["count"] == 3
    assert summary.result["totals"].balance == 25000

    summary.close()
    store.reset()
    assert summary.result["count"] == 3


def test_live_summary_rejects_unknown_period():
    summary = LiveSummary(EventBus(), clock=lambda: NOW)
    with pytest.raises(ValueError):
        summary.select_period("decade")
    assert summary.period == "month"
