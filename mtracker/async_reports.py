import asyncio
from typing import Any, Dict, List, Mapping, Sequence

from mtracker.aggregation import compute_budget_status, spent_in_month
from mtracker.domain import BudgetPlan


async def budget_history(budgets: Mapping[str, BudgetPlan], records: Sequence) -> List[Dict[str, Any]]:
    """Spent amount and status for every stored monthly plan, newest month first.

    Months are computed in parallel; each task only reads the shared snapshot.
    """
    async def month_report(month_key: str, plan: BudgetPlan) -> Dict[str, Any]:
        spent_abs = abs(spent_in_month(records, month_key))
        await asyncio.sleep(0)  # cooperate
        return {
            "month_key": month_key,
            "budget": plan,
            "spent_abs": spent_abs,
            "status": compute_budget_status(plan, spent_abs),
        }

    keys = sorted(budgets, reverse=True)
    return list(await asyncio.gather(*(month_report(k, budgets[k]) for k in keys)))
