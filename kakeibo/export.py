"""CSV export of expense collections."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from .formatting import today as local_today
from .models import Expense, get_category

__all__ = ["BOM", "CSV_HEADER", "encode_csv", "escape_csv_field", "export_filename"]

BOM = "\ufeff"
CSV_HEADER = ("日付", "カテゴリ", "金額", "メモ")


def escape_csv_field(value: str) -> str:
    if "," in value or "\n" in value or '"' in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def encode_csv(expenses: Iterable[Expense]) -> str:
    """Encode expenses in the order given; the caller decides filtering and sorting."""
    rows = [",".join(CSV_HEADER)]
    for expense in expenses:
        rows.append(
            ",".join(
                (
                    expense.date.isoformat(),
                    get_category(expense.category).name,
                    str(expense.amount),
                    escape_csv_field(expense.memo or ""),
                )
            )
        )
    return BOM + "\n".join(rows)


def export_filename(day: Optional[date] = None) -> str:
    return f"expenses_{(day or local_today()).strftime('%Y%m%d')}.csv"
