"""Pure aggregation over a snapshot of transaction records.

Every function takes the snapshot (and any "now" it depends on) as an
argument and returns fresh values. Records may be `Transaction` instances
or camelCase document dicts.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from mtracker.coerce import (
    as_number,
    parse_timestamp,
    read_field,
    record_amount,
    record_timestamp,
    round_half_up,
)
from mtracker.domain import (
    ActivityBar,
    BudgetPlan,
    BudgetStatus,
    DayGroup,
    Period,
    Totals,
)

UNKNOWN_DAY = "Unknown"
MIN_BAR_WIDTH = 0.18


def compute_totals(records: Iterable[Any]) -> Totals:
    income = 0
    expenses = 0
    for r in records:
        amount = record_amount(r)
        if amount > 0:
            income += amount
        elif amount < 0:
            expenses += amount
    return Totals(income=income, expenses=expenses, balance=income + expenses)


def compute_month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def day_key(record: Any) -> str:
    ts = record_timestamp(record)
    return ts.date().isoformat() if ts is not None else UNKNOWN_DAY


def day_title(key: str, today: date) -> str:
    if key == UNKNOWN_DAY:
        return "Unknown date"
    if key == today.isoformat():
        return "Today"
    if key == (today - timedelta(days=1)).isoformat():
        return "Yesterday"
    return date.fromisoformat(key).strftime("%x")


def _newest_first_key(record: Any):
    ts = record_timestamp(record)
    return (ts is not None, ts or datetime.min)


def newest_first(records: Iterable[Any]) -> List[Any]:
    """Sort by timestamp, newest first; undated records go last in input order."""
    return sorted(records, key=_newest_first_key, reverse=True)


def group_by_day(records: Iterable[Any], now: Optional[datetime] = None) -> List[DayGroup]:
    """Partition records into calendar-day sections, newest day first."""
    today = _as_now(now).date()
    groups: Dict[str, list] = defaultdict(list)
    for r in records:
        groups[day_key(r)].append(r)

    return [
        DayGroup(key=key, title=day_title(key, today), items=tuple(newest_first(groups[key])))
        for key in sorted(groups, reverse=True)
    ]


def _as_now(now: Any) -> datetime:
    if now is None:
        return datetime.now()
    parsed = parse_timestamp(now)
    if parsed is None:
        raise ValueError(f"Invalid reference time: {now!r}")
    return parsed


def period_start(period: str, now: datetime) -> Optional[datetime]:
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == Period.MONTH:
        return midnight.replace(day=1)
    if period == Period.WEEK:
        # weeks start on Sunday; weekday() counts from Monday == 0
        return midnight - timedelta(days=(midnight.weekday() + 1) % 7)
    if period == Period.ALL:
        return None
    raise ValueError(f"Unknown period: {period!r}")


def filter_by_period(records: Sequence[Any], period: str, now: Any = None) -> List[Any]:
    """Keep the records dated inside `period`, bounds inclusive at both ends.

    `all` returns every record, undated ones included; `week` and `month`
    drop records whose date cannot be parsed.
    """
    current = _as_now(now)
    start = period_start(period, current)
    if start is None:
        return list(records)

    kept = []
    for r in records:
        ts = record_timestamp(r)
        if ts is not None and start <= ts <= current:
            kept.append(r)
    return kept


def _usage(target, spent) -> BudgetStatus:
    if target > 0:
        ratio = min(1, spent / target)
        percent = round_half_up(spent / target * 100)
    else:
        ratio = 0
        percent = 0
    remaining = target - spent
    return BudgetStatus(ratio=ratio, percent=percent, remaining=remaining, over=remaining < 0)


def compute_budget_status(budget: Any, spent_abs: Any) -> BudgetStatus:
    """Consumption of a monthly plan.

    `ratio` is clamped to 1 for the progress bar while `percent` keeps
    growing past 100 when the month is overspent.
    """
    return _usage(as_number(read_field(budget, "total_budget")), as_number(spent_abs))


def compute_income_usage(totals: Totals) -> BudgetStatus:
    """Share of income already spent, with the same clamping as budgets."""
    return _usage(as_number(totals.income), abs(as_number(totals.expenses)))


def spent_in_month(records: Iterable[Any], month_key: str):
    total = 0
    for r in records:
        ts = record_timestamp(r)
        if ts is None:
            continue
        amount = record_amount(r)
        if amount < 0 and compute_month_key(ts) == month_key:
            total += amount
    return total


def recent_transactions(records: Iterable[Any], limit: int = 5) -> List[Any]:
    return newest_first(records)[: max(0, limit)]


def spending_activity(records: Iterable[Any], limit: int = 7) -> List[ActivityBar]:
    expenses = [r for r in newest_first(records) if record_amount(r) < 0][: max(0, limit)]
    if not expenses:
        return []
    max_abs = max([abs(record_amount(r)) for r in expenses] + [1])
    bars = []
    for r in expenses:
        ratio = abs(record_amount(r)) / max_abs
        bars.append(ActivityBar(transaction=r, ratio=ratio, width=max(MIN_BAR_WIDTH, ratio)))
    return bars


def previous_budgets(budgets: Mapping[str, BudgetPlan], current_month_key: str) -> List[BudgetPlan]:
    return [budgets[k] for k in sorted(budgets, reverse=True) if k != current_month_key]
