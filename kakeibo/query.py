"""Derive the visible expense list from the stored collection and settings.

Stages run in a fixed order: period, category, text search, then sort.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import cmp_to_key
from typing import Callable, Iterable, List, Optional

from .formatting import previous_month, today as local_today
from .models import ALL, Expense, Filters, Settings, SortOrder, get_category

__all__ = ["ViewSummary", "derive_view", "sort_expenses", "summarize"]


@dataclass(frozen=True)
class ViewSummary:
    count: int
    total: int


def _by_period(expenses: Iterable[Expense], period: str, today: date) -> List[Expense]:
    if period == "thisMonth":
        year, month = today.year, today.month
    elif period == "lastMonth":
        year, month = previous_month(today)
    else:
        return list(expenses)
    return [exp for exp in expenses if exp.date.year == year and exp.date.month == month]


def _by_category(expenses: Iterable[Expense], category: str) -> List[Expense]:
    if category == ALL:
        return list(expenses)
    return [exp for exp in expenses if exp.category == category]


def _by_query(expenses: Iterable[Expense], query: str) -> List[Expense]:
    if not query:
        return list(expenses)
    needle = query.lower()
    return [
        exp
        for exp in expenses
        if needle in get_category(exp.category).name.lower() or needle in exp.memo.lower()
    ]


def _primary_comparator(key: str) -> Callable[[Expense, Expense], int]:
    if key == "amount":
        return lambda a, b: a.amount - b.amount
    if key == "category":
        return lambda a, b: get_category(a.category).order - get_category(b.category).order
    return lambda a, b: (a.date > b.date) - (a.date < b.date)


def sort_expenses(expenses: Iterable[Expense], sort: SortOrder) -> List[Expense]:
    primary = _primary_comparator(sort.key)
    sign = -1 if sort.direction == "desc" else 1

    def compare(a: Expense, b: Expense) -> int:
        result = sign * primary(a, b)
        if result == 0:
            # Newest first among ties, whichever direction was requested.
            result = (b.created_at > a.created_at) - (b.created_at < a.created_at)
        return result

    return sorted(expenses, key=cmp_to_key(compare))


def derive_view(
    expenses: Iterable[Expense], settings: Settings, today: Optional[date] = None
) -> List[Expense]:
    """Filter and sort without touching the input collection."""
    filters: Filters = settings.filters
    records = _by_period(expenses, filters.period, today or local_today())
    records = _by_category(records, filters.category)
    records = _by_query(records, filters.search_query)
    return sort_expenses(records, settings.sort)


def summarize(expenses: Iterable[Expense]) -> ViewSummary:
    records = list(expenses)
    return ViewSummary(count=len(records), total=sum(exp.amount for exp in records))
