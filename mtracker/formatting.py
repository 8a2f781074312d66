"""Display helpers for amounts and times.

The currency symbol and sign are chosen by the caller; `format_number`
only renders the magnitude.
"""
from typing import Any

from mtracker.coerce import as_number, parse_timestamp, round_half_up


def format_number(n: Any = 0) -> str:
    """Absolute value, rounded to an integer, with thousands separators.

    >>> format_number(-1234567.5)
    '1,234,567'
    >>> format_number("oops")
    '0'
    """
    return f"{abs(round_half_up(as_number(n))):,}"


def format_amount(amount: Any, symbol: str) -> str:
    """Signed transaction amount, e.g. '+₦50,000' or '-₦1,200'."""
    sign = "+" if as_number(amount) > 0 else "-"
    return f"{sign}{symbol}{format_number(amount)}"


def format_money(value: Any, symbol: str) -> str:
    sign = "-" if as_number(value) < 0 else ""
    return f"{sign}{symbol}{format_number(value)}"


def format_time(ts: Any) -> str:
    parsed = parse_timestamp(ts)
    if parsed is None:
        return ""
    return parsed.strftime("%H:%M")
