import json
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from mtracker.coerce import as_number
from mtracker.domain import EXPENSE, INCOME, BudgetPlan, Category, Transaction

_TX_FIELDS = (
    ("id", "id"),
    ("amount", "amount"),
    ("title", "title"),
    ("category_id", "categoryId"),
    ("category_type", "categoryType"),
    ("note", "note"),
    ("image_uri", "imageUri"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
    ("date", "date"),
)


def slugify(label: str) -> str:
    return re.sub(r"\s+", "-", label.strip().lower())


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def replace_transaction(
    trans: Tuple[Transaction, ...], tx_id: str, t: Transaction
) -> Tuple[Transaction, ...]:
    return tuple(t if x.id == tx_id else x for x in trans)


def remove_transaction(
    trans: Tuple[Transaction, ...], tx_id: str
) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda x: x.id != tx_id, trans))


def add_category(
    cats: Tuple[Category, ...], kind: str, name: str
) -> Tuple[Tuple[Category, ...], Optional[Category]]:
    """Append a category unless its label is blank or already present.

    Labels are compared case-insensitively; ids are not checked.
    """
    label = (name or "").strip()
    if not label:
        return cats, None
    if any(c.label.lower() == label.lower() for c in cats):
        return cats, None
    cat = Category(id=slugify(label), label=label, type=INCOME if kind == INCOME else EXPENSE)
    return cats + (cat,), cat


def merge_budget(
    budgets: Mapping[str, BudgetPlan], month_key: str, total_budget, now_iso: str
) -> Dict[str, BudgetPlan]:
    previous = budgets.get(month_key)
    plan = BudgetPlan(
        month_key=month_key,
        total_budget=total_budget,
        active=True,
        created_at=(previous.created_at if previous else "") or now_iso,
        updated_at=now_iso,
    )
    return {**budgets, month_key: plan}


def transaction_from_dict(data: Mapping[str, Any]) -> Transaction:
    values = {}
    for attr, key in _TX_FIELDS:
        if key in data:
            values[attr] = data[key]
        elif attr in data:
            values[attr] = data[attr]
    values.setdefault("id", "")
    values.setdefault("amount", 0)
    values.setdefault("title", "")
    values.setdefault("category_id", "")
    values.setdefault("category_type", EXPENSE if as_number(values["amount"]) < 0 else INCOME)
    return Transaction(**values)


def transaction_to_dict(t: Transaction) -> Dict[str, Any]:
    """Document form of a transaction; unset optional fields are dropped."""
    return {key: getattr(t, attr) for attr, key in _TX_FIELDS if getattr(t, attr) is not None}


def budget_from_dict(month_key: str, data: Mapping[str, Any]) -> BudgetPlan:
    return BudgetPlan(
        month_key=data.get("monthKey", month_key),
        total_budget=data.get("totalBudget", 0),
        active=data.get("active", True),
        created_at=data.get("createdAt", ""),
        updated_at=data.get("updatedAt", ""),
    )


def budget_to_dict(b: BudgetPlan) -> Dict[str, Any]:
    return {
        "monthKey": b.month_key,
        "totalBudget": b.total_budget,
        "active": b.active,
        "createdAt": b.created_at,
        "updatedAt": b.updated_at,
    }


def load_seed(
    path: str,
) -> Tuple[Tuple[Transaction, ...], Dict[str, BudgetPlan]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = tuple(transaction_from_dict(t) for t in data.get("transactions", []))
    budgets = {k: budget_from_dict(k, b) for k, b in data.get("budgets", {}).items()}

    return transactions, budgets
