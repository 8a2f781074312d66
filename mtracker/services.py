import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from mtracker.aggregation import (
    compute_budget_status,
    compute_income_usage,
    compute_totals,
    filter_by_period,
    recent_transactions,
    spending_activity,
    spent_in_month,
)
from mtracker.domain import PERIODS, BudgetPlan, Period
from mtracker.events import TRANSACTIONS_CHANGED, Event, EventBus

logger = logging.getLogger(__name__)

Calculator = Callable[..., Dict[str, Any]]


def totals_calculator(period, now, records, acc):
    return {"totals": compute_totals(records), "count": len(records)}


def income_usage_calculator(period, now, records, acc):
    totals = acc.get("totals") or compute_totals(records)
    return {"income_usage": compute_income_usage(totals)}


def recent_calculator(limit: int) -> Calculator:
    def recent(period, now, records, acc):
        return {"recent": recent_transactions(records, limit)}
    return recent


def activity_calculator(limit: int) -> Calculator:
    def activity(period, now, records, acc):
        return {"activity": spending_activity(records, limit)}
    return activity


def default_calculators(recent_limit: int = 5, activity_limit: int = 7) -> list:
    return [
        totals_calculator,
        income_usage_calculator,
        recent_calculator(recent_limit),
        activity_calculator(activity_limit),
    ]


class ReportService:
    """Facade for period reports built by injected calculators.

    calculators: functions taking (period, now, records, acc) -> dict; the
    records are already filtered to the period and `acc` holds the merged
    output of the calculators that ran before.
    """

    def __init__(self, calculators: Sequence[Calculator]):
        self.calculators = calculators

    def period_report(self, period: str, records: Sequence, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        selected = filter_by_period(records, period, now)
        report = {"period": period, "now": now, "steps": [], "result": {}}

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(period, now, selected, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report


def has_budget_validator(month_key, records, budget):
    if budget is None:
        return [f"No budget set for {month_key}"]
    return []


def spent_calculator(month_key, records, budget, acc):
    spent = spent_in_month(records, month_key)
    return {"spent": spent, "spent_abs": abs(spent)}


def status_calculator(month_key, records, budget, acc):
    if budget is None:
        return {"status": None}
    spent_abs = acc.get("spent_abs", abs(spent_in_month(records, month_key)))
    return {"status": compute_budget_status(budget, spent_abs)}


class BudgetService:
    """Facade for budget-related operations using injected validators and calculators.

    validators: functions taking (month_key, records, budget) -> Sequence[str]
    calculators: functions taking (month_key, records, budget, acc) -> dict
    """

    def __init__(
        self,
        validators: Sequence[Callable[..., Sequence[str]]] = (has_budget_validator,),
        calculators: Sequence[Calculator] = (spent_calculator, status_calculator),
    ):
        self.validators = validators
        self.calculators = calculators

    def monthly_report(self, month_key: str, records: Iterable, budgets: Mapping[str, BudgetPlan]) -> Dict[str, Any]:
        """Run validators and calculators and return an aggregated report with intermediate steps."""
        records = list(records)
        budget = budgets.get(month_key)
        report = {
            "month": month_key,
            "budget": budget,
            "validation": [],
            "steps": [],
            "result": {}
        }

        for v in self.validators:
            try:
                msgs = v(month_key, records, budget)
            except Exception as e:
                logger.exception("Validator %s failed", getattr(v, "__name__", v))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(month_key, records, budget, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report


class LiveSummary:
    """Keeps a period report in step with the latest transaction snapshot."""

    def __init__(
        self,
        bus: EventBus,
        snapshot: Sequence = (),
        reports: Optional[ReportService] = None,
        period: str = Period.MONTH,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._reports = reports or ReportService(default_calculators())
        self._clock = clock
        self._period = period
        self._snapshot = tuple(snapshot)
        self.report = self._recompute()
        self._unsubscribe = bus.subscribe(TRANSACTIONS_CHANGED, self._on_snapshot)

    @property
    def period(self) -> str:
        return self._period

    @property
    def result(self) -> Dict[str, Any]:
        return self.report["result"]

    def select_period(self, period: str) -> Dict[str, Any]:
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period!r}")
        self._period = period
        self.report = self._recompute()
        return self.report

    def close(self) -> None:
        self._unsubscribe()

    def _recompute(self) -> Dict[str, Any]:
        return self._reports.period_report(self._period, self._snapshot, self._clock())

    def _on_snapshot(self, event: Event, payload: dict) -> dict:
        self._snapshot = tuple(payload.get("snapshot", ()))
        self.report = self._recompute()
        return {"period": self._period, "count": self.result.get("count", 0)}
