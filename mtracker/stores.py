"""In-memory providers for records, budgets, currency and the session.

Each store keeps per-user state and publishes a full snapshot on the
`EventBus` after every change, the same way a realtime document listener
would deliver it.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple

from mtracker.aggregation import newest_first
from mtracker.domain import (
    CURRENCIES,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    INCOME,
    BudgetPlan,
    Category,
    Currency,
    Transaction,
)
from mtracker.errors import NotSignedInError, TransactionNotFoundError
from mtracker.events import (
    BUDGETS_CHANGED,
    CATEGORIES_CHANGED,
    CURRENCY_CHANGED,
    SESSION_CHANGED,
    TRANSACTIONS_CHANGED,
    Event,
    EventBus,
)
from mtracker.functional import Either, new_transaction_id, validate_budget_amount
from mtracker.transforms import (
    add_category,
    add_transaction,
    merge_budget,
    remove_transaction,
    replace_transaction,
)

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, bus: EventBus):
        self._bus = bus
        self._user_id: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        uid = (user_id or "").strip()
        if not uid:
            raise ValueError("User id must not be blank")
        self._user_id = uid
        logger.info("Signed in as %s", uid)
        self._bus.publish(SESSION_CHANGED, {"user_id": uid})

    def sign_out(self) -> None:
        logger.info("Signed out %s", self._user_id)
        self._user_id = None
        self._bus.publish(SESSION_CHANGED, {"user_id": None})

    def require_user_id(self) -> str:
        if not self._user_id:
            raise NotSignedInError()
        return self._user_id


class TransactionStore:
    def __init__(self, bus: EventBus, session: Session):
        self._bus = bus
        self._session = session
        self._records: Dict[str, Tuple[Transaction, ...]] = {}
        self._expense_categories: Tuple[Category, ...] = DEFAULT_EXPENSE_CATEGORIES
        self._income_categories: Tuple[Category, ...] = DEFAULT_INCOME_CATEGORIES
        bus.subscribe(SESSION_CHANGED, self._on_session_changed)

    @property
    def expense_categories(self) -> Tuple[Category, ...]:
        return self._expense_categories

    @property
    def income_categories(self) -> Tuple[Category, ...]:
        return self._income_categories

    def categories(self, kind: str) -> Tuple[Category, ...]:
        return self._income_categories if kind == INCOME else self._expense_categories

    def snapshot(self) -> Tuple[Transaction, ...]:
        """Current user's records, newest first. Empty when signed out."""
        uid = self._session.user_id
        if not uid:
            return ()
        return tuple(newest_first(self._records.get(uid, ())))

    def get(self, tx_id: str) -> Optional[Transaction]:
        return next((t for t in self.snapshot() if t.id == tx_id), None)

    def seed(self, user_id: str, transactions: Iterable[Transaction]) -> None:
        self._records[user_id] = tuple(transactions)
        if user_id == self._session.user_id:
            self._publish()

    def add(self, tx: Transaction) -> Transaction:
        uid = self._session.require_user_id()
        if not tx.id:
            tx = replace(tx, id=new_transaction_id(datetime.now()))
        current = self._records.get(uid, ())
        # same id overwrites, like a document write
        self._records[uid] = add_transaction(remove_transaction(current, tx.id), tx)
        logger.debug("Added transaction %s (%s)", tx.id, tx.amount)
        self._publish()
        return tx

    def update(self, tx_id: str, tx: Transaction) -> Transaction:
        uid = self._session.require_user_id()
        existing = self.get(tx_id)
        if existing is None:
            logger.warning("Update of unknown transaction %s", tx_id)
            raise TransactionNotFoundError(tx_id)
        updated = replace(tx, id=tx_id, created_at=existing.created_at or tx.created_at)
        self._records[uid] = replace_transaction(self._records[uid], tx_id, updated)
        logger.debug("Updated transaction %s", tx_id)
        self._publish()
        return updated

    def delete(self, tx_id: str) -> None:
        uid = self._session.require_user_id()
        if self.get(tx_id) is None:
            logger.warning("Delete of unknown transaction %s", tx_id)
            raise TransactionNotFoundError(tx_id)
        self._records[uid] = remove_transaction(self._records[uid], tx_id)
        logger.debug("Deleted transaction %s", tx_id)
        self._publish()

    def reset(self) -> None:
        uid = self._session.require_user_id()
        self._records[uid] = ()
        logger.info("Cleared all transactions for %s", uid)
        self._publish()

    def add_category(self, kind: str, name: str) -> Optional[Category]:
        if kind == INCOME:
            self._income_categories, cat = add_category(self._income_categories, kind, name)
        else:
            self._expense_categories, cat = add_category(self._expense_categories, kind, name)
        if cat is None:
            return None
        logger.debug("Added %s category %s", cat.type, cat.id)
        self._bus.publish(CATEGORIES_CHANGED, {
            "expense": self._expense_categories,
            "income": self._income_categories,
        })
        return cat

    def _publish(self) -> None:
        self._bus.publish(TRANSACTIONS_CHANGED, {
            "user_id": self._session.user_id,
            "snapshot": self.snapshot(),
        })

    def _on_session_changed(self, event: Event, payload: dict) -> dict:
        self._publish()
        return {"user_id": payload.get("user_id")}


class BudgetStore:
    def __init__(self, bus: EventBus, session: Session):
        self._bus = bus
        self._session = session
        self._plans: Dict[str, Dict[str, BudgetPlan]] = {}
        bus.subscribe(SESSION_CHANGED, self._on_session_changed)

    def budgets(self) -> Dict[str, BudgetPlan]:
        uid = self._session.user_id
        if not uid:
            return {}
        return dict(self._plans.get(uid, {}))

    def get_budget_for_month(self, month_key: str) -> Optional[BudgetPlan]:
        return self.budgets().get(month_key)

    def seed(self, user_id: str, plans: Mapping[str, BudgetPlan]) -> None:
        self._plans[user_id] = dict(plans)
        if user_id == self._session.user_id:
            self._publish()

    def set_monthly_budget(
        self, month_key: str, total_budget, now: Optional[datetime] = None
    ) -> Either[dict, BudgetPlan]:
        """Create the month's plan or update its amount, keeping `created_at`."""
        uid = self._session.require_user_id()
        now_iso = (now or datetime.now()).isoformat(timespec="seconds")
        saved = validate_budget_amount(total_budget).map(
            lambda amount: self._save(uid, month_key, amount, now_iso)
        )
        if saved.is_left():
            logger.warning("Rejected budget %r for %s", total_budget, month_key)
        return saved

    def _save(self, uid: str, month_key: str, amount, now_iso: str) -> BudgetPlan:
        self._plans[uid] = merge_budget(self._plans.get(uid, {}), month_key, amount, now_iso)
        logger.debug("Saved budget for %s", month_key)
        self._publish()
        return self._plans[uid][month_key]

    def _publish(self) -> None:
        self._bus.publish(BUDGETS_CHANGED, {
            "user_id": self._session.user_id,
            "snapshot": self.budgets(),
        })

    def _on_session_changed(self, event: Event, payload: dict) -> dict:
        self._publish()
        return {"user_id": payload.get("user_id")}


class CurrencyStore:
    def __init__(self, bus: EventBus, code: str = "NGN"):
        self._bus = bus
        self._code = code

    @property
    def currencies(self) -> Tuple[Currency, ...]:
        return CURRENCIES

    @property
    def code(self) -> str:
        return self._code

    @property
    def currency(self) -> Currency:
        return next((c for c in CURRENCIES if c.code == self._code), CURRENCIES[0])

    def set_code(self, code: str) -> Currency:
        self._code = code
        logger.debug("Currency set to %s", code)
        self._bus.publish(CURRENCY_CHANGED, {"code": code, "currency": self.currency})
        return self.currency
