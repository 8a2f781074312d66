from pathlib import Path

from mtracker.domain import DEFAULT_EXPENSE_CATEGORIES, BudgetPlan, Transaction
from mtracker.transforms import (
    add_category,
    add_transaction,
    budget_to_dict,
    load_seed,
    merge_budget,
    remove_transaction,
    replace_transaction,
    slugify,
    transaction_from_dict,
    transaction_to_dict,
)

SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


def make_tx(id, amount):
    return Transaction(id=id, amount=amount, title="Food", category_id="food",
                       category_type="expense", created_at="2025-01-01T00:00:00")


def test_add_transaction_immutability():
    t1 = make_tx("t1", -10)
    transactions = (t1,)
    new_transactions = add_transaction(transactions, make_tx("t2", -20))

    assert new_transactions is not transactions
    assert len(new_transactions) == 2
    assert len(transactions) == 1


def test_replace_and_remove_transaction():
    trans = (make_tx("t1", -10), make_tx("t2", -20))
    replaced = replace_transaction(trans, "t2", make_tx("t2", -25))
    assert [t.amount for t in replaced] == [-10, -25]
    assert [t.id for t in remove_transaction(trans, "t1")] == ["t2"]


def test_slugify():
    assert slugify("Side Hustle") == "side-hustle"
    assert slugify("  Pet   Care ") == "pet-care"


def test_add_category_dedupes_by_label():
    cats, cat = add_category(DEFAULT_EXPENSE_CATEGORIES, "expense", "  Pet Care ")
    assert cat.id == "pet-care"
    assert cat.label == "Pet Care"
    assert len(cats) == len(DEFAULT_EXPENSE_CATEGORIES) + 1

    same, dup = add_category(cats, "expense", "pet care")
    assert dup is None
    assert same is cats

    _, blank = add_category(cats, "expense", "   ")
    assert blank is None


def test_merge_budget_preserves_created_at():
    budgets = merge_budget({}, "2025-01", 1000, "2025-01-01T08:00:00")
    assert budgets["2025-01"].created_at == "2025-01-01T08:00:00"

    updated = merge_budget(budgets, "2025-01", 2000, "2025-01-20T08:00:00")
    plan = updated["2025-01"]
    assert plan.total_budget == 2000
    assert plan.created_at == "2025-01-01T08:00:00"
    assert plan.updated_at == "2025-01-20T08:00:00"
    assert budgets["2025-01"].total_budget == 1000


def test_transaction_dict_conversion():
    tx = transaction_from_dict({
        "id": "1", "amount": -50, "title": "Food", "categoryId": "food",
        "createdAt": "2025-01-10T09:00:00",
    })
    assert tx.category_id == "food"
    assert tx.category_type == "expense"
    assert tx.note is None

    doc = transaction_to_dict(tx)
    assert doc["categoryId"] == "food"
    assert "note" not in doc
    assert "imageUri" not in doc


def test_budget_to_dict():
    doc = budget_to_dict(BudgetPlan("2025-01", 500, created_at="a", updated_at="b"))
    assert doc == {"monthKey": "2025-01", "totalBudget": 500, "active": True,
                   "createdAt": "a", "updatedAt": "b"}


def test_load_seed():
    transactions, budgets = load_seed(str(SEED))

    assert len(transactions) >= 5
    assert all(isinstance(t, Transaction) for t in transactions)
    assert budgets["2025-01"].total_budget == 100000
