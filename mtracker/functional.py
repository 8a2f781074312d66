from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from mtracker.coerce import as_number
from mtracker.domain import EXPENSE, Category, Transaction

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Right carries a value, Left carries an error dict for the UI."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def safe_category(cats: Iterable[Category], cat_id: Optional[str]) -> Maybe[Category]:
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def require_category(cat_id: Optional[str]) -> Either[dict, str]:
    if not cat_id:
        return Left({"error": "category_required", "message": "Please choose a category."})
    return Right(cat_id)


def _parse_positive(value: Any, error: str, message: str) -> Either[dict, float]:
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        parsed = as_number(text) if text else 0
    else:
        parsed = as_number(value)
    if parsed <= 0:
        return Left({"error": error, "message": message, "value": value})
    return Right(parsed)


def parse_amount(value: Any) -> Either[dict, float]:
    """Parse form input such as "1500" or "12,50" into a positive number."""
    return _parse_positive(value, "invalid_amount", "Please enter a valid amount greater than 0.")


def validate_budget_amount(value: Any) -> Either[dict, float]:
    return _parse_positive(value, "invalid_budget", "Enter a valid budget amount greater than 0.")


def new_transaction_id(now: datetime) -> str:
    return str(int(now.timestamp() * 1000))


def build_transaction(
    kind: str,
    category_id: Optional[str],
    amount_text: Any,
    categories: Iterable[Category],
    note: Optional[str] = None,
    image_uri: Optional[str] = None,
    existing: Optional[Transaction] = None,
    now: Optional[datetime] = None,
) -> Either[dict, Transaction]:
    """Turn add/edit form input into a Transaction.

    The sign of the amount comes from `kind`; the title is a snapshot of the
    category label. When `existing` is given its id and creation time are
    kept and only `updated_at` moves.
    """
    now = now or datetime.now()
    stamp = now.isoformat(timespec="seconds")
    title = safe_category(categories, category_id).map(lambda c: c.label).get_or_else("Uncategorized")

    def to_transaction(magnitude: float) -> Transaction:
        magnitude = abs(magnitude)
        return Transaction(
            id=existing.id if existing else new_transaction_id(now),
            amount=-magnitude if kind == EXPENSE else magnitude,
            title=title,
            category_id=category_id,
            category_type=kind,
            note=(note or "").strip() or None,
            image_uri=image_uri or None,
            created_at=(existing.created_at if existing else "") or stamp,
            updated_at=stamp,
        )

    return (
        require_category(category_id)
        .bind(lambda _: parse_amount(amount_text))
        .map(to_transaction)
    )
