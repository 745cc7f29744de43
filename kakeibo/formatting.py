"""Display helpers for the single supported locale (ja-JP, JPY)."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Tuple, Union

__all__ = [
    "format_currency",
    "format_date_ja",
    "last_saturday",
    "memo_counter",
    "previous_month",
    "today",
    "truncate_memo",
    "yesterday",
]

MEMO_PREVIEW_LENGTH = 30
MEMO_WARNING_LENGTH = 80


def today() -> date:
    """Local calendar date."""
    return date.today()


def yesterday(reference: Optional[date] = None) -> date:
    return (reference or today()) - timedelta(days=1)


def last_saturday(reference: Optional[date] = None) -> date:
    """Most recent Saturday strictly before ``reference``."""
    reference = reference or today()
    # date.weekday(): Monday == 0 ... Saturday == 5, Sunday == 6.
    days_back = (reference.weekday() - 5) % 7 or 7
    return reference - timedelta(days=days_back)


def previous_month(reference: date) -> Tuple[int, int]:
    """(year, month) of the calendar month before ``reference``."""
    if reference.month == 1:
        return reference.year - 1, 12
    return reference.year, reference.month - 1


def format_currency(amount: int) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}￥{abs(amount):,}"


def format_date_ja(value: Union[date, str]) -> str:
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value.year}年{value.month}月{value.day}日"


def truncate_memo(memo: str, limit: int = MEMO_PREVIEW_LENGTH) -> str:
    if len(memo) <= limit:
        return memo
    return memo[:limit] + "..."


def memo_counter(memo: str, limit: int = 100) -> Tuple[str, str]:
    """Counter label and its level: normal, warning or error."""
    length = len(memo)
    if length > limit:
        level = "error"
    elif length > MEMO_WARNING_LENGTH:
        level = "warning"
    else:
        level = "normal"
    return f"{length}/{limit}文字", level
