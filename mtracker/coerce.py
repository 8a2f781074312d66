"""Lenient readers for loosely-typed record fields.

Snapshots come from an external document store, so amounts and dates are
not guaranteed to be well formed. Nothing here raises on bad input.
"""
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional

# attribute name -> document key
_DOCUMENT_KEYS = {
    "amount": "amount",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "date": "date",
    "total_budget": "totalBudget",
    "month_key": "monthKey",
}


def read_field(record: Any, attr: str) -> Any:
    """Read `attr` from a dataclass record or a camelCase document dict."""
    if isinstance(record, Mapping):
        key = _DOCUMENT_KEYS.get(attr, attr)
        if key in record:
            return record[key]
        return record.get(attr)
    return getattr(record, attr, None)


def as_number(value: Any):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        n = value
        try:
            float(n)
        except OverflowError:
            # ints past the float range cannot be divided or rounded
            return 0
    else:
        try:
            n = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0
    if isinstance(n, float) and not math.isfinite(n):
        return 0
    return n


def round_half_up(x) -> int:
    # Math.round semantics: halves go towards +infinity
    return int(math.floor(as_number(x) + 0.5))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 value into a naive local datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def record_amount(record: Any):
    return as_number(read_field(record, "amount"))


def record_timestamp(record: Any) -> Optional[datetime]:
    raw = read_field(record, "created_at") or read_field(record, "date")
    return parse_timestamp(raw)
