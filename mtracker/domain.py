from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

Number = Union[int, float]

EXPENSE = "expense"
INCOME = "income"


class Period:
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


PERIODS = (Period.MONTH, Period.WEEK, Period.ALL)


@dataclass(frozen=True)
class Category:
    id: str          # slug of the label
    label: str
    type: str        # "expense" or "income"


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Number           # + for income, - for expense
    title: str               # category label at creation time
    category_id: str         # loose reference, may dangle
    category_type: str
    note: Optional[str] = None
    image_uri: Optional[str] = None
    created_at: str = ""     # ISO-8601, e.g. "2025-01-10T09:30:00"
    updated_at: str = ""
    date: Optional[str] = None  # legacy field, read when created_at is empty


# One plan per month, keyed by "YYYY-MM"
@dataclass(frozen=True)
class BudgetPlan:
    month_key: str
    total_budget: Number
    active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    label: str


@dataclass(frozen=True)
class Totals:
    income: Number = 0
    expenses: Number = 0
    balance: Number = 0


@dataclass(frozen=True)
class DayGroup:
    key: str
    title: str
    items: Tuple[object, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BudgetStatus:
    ratio: float      # clamped to [0, 1] for the progress bar
    percent: int      # not clamped, can go past 100
    remaining: Number
    over: bool


@dataclass(frozen=True)
class ActivityBar:
    transaction: object
    ratio: float
    width: float


DEFAULT_EXPENSE_CATEGORIES = (
    Category("food", "Food", EXPENSE),
    Category("transport", "Transport", EXPENSE),
    Category("bills", "Bills", EXPENSE),
    Category("shopping", "Shopping", EXPENSE),
    Category("entertainment", "Entertainment", EXPENSE),
    Category("other-expense", "Other", EXPENSE),
)

DEFAULT_INCOME_CATEGORIES = (
    Category("salary", "Salary", INCOME),
    Category("freelance", "Freelance", INCOME),
    Category("bonus", "Bonus", INCOME),
    Category("investment", "Investment", INCOME),
    Category("other-income", "Other income", INCOME),
)

CURRENCIES = (
    Currency("NGN", "₦", "₦ Nigerian Naira"),
    Currency("USD", "$", "$ US Dollar"),
    Currency("EUR", "€", "€ Euro"),
    Currency("GBP", "£", "£ British Pound"),
)
