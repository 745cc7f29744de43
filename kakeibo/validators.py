"""Validation helpers shared across kakeibo services."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional

from .exceptions import ValidationError
from .formatting import today as local_today

__all__ = [
    "AMOUNT_MAX",
    "AMOUNT_MIN",
    "MEMO_MAX_LENGTH",
    "clean_expense",
    "normalize_amount",
    "parse_date",
    "validate_enum",
    "validate_expense",
]

AMOUNT_MIN = 1
AMOUNT_MAX = 9_999_999
MEMO_MAX_LENGTH = 100

AMOUNT_REQUIRED = "金額を入力してください"
AMOUNT_NOT_INTEGER = "金額は整数で入力してください"
AMOUNT_OUT_OF_RANGE = "金額は1円以上9,999,999円以下の整数で入力してください"
CATEGORY_REQUIRED = "カテゴリを選択してください"
DATE_REQUIRED = "日付を入力してください"
DATE_INVALID = "日付の形式が正しくありません"
DATE_IN_FUTURE = "未来日は登録できません"

_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")
_NUMBER_PATTERN = re.compile(r"^[+-]?[0-9]+(\.[0-9]+)?$")
_SEPARATORS = re.compile(r"[,\s]")


def normalize_amount(raw: object) -> int:
    """Convert form input to an integer amount of yen.

    Full-width digits become ASCII; thousands separators and whitespace
    (including the ideographic space) are dropped before parsing.
    """
    if raw is None or isinstance(raw, bool):
        raise ValidationError(AMOUNT_REQUIRED)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if raw != raw or raw in (float("inf"), float("-inf")):
            raise ValidationError(AMOUNT_REQUIRED)
        if not raw.is_integer():
            raise ValidationError(AMOUNT_NOT_INTEGER)
        return int(raw)

    text = _SEPARATORS.sub("", str(raw).translate(_FULLWIDTH_DIGITS))
    if not _NUMBER_PATTERN.fullmatch(text):
        raise ValidationError(AMOUNT_REQUIRED)
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:  # pragma: no cover - pattern already guards this
        raise ValidationError(AMOUNT_REQUIRED) from exc
    if amount != amount.to_integral_value():
        raise ValidationError(AMOUNT_NOT_INTEGER)
    return int(amount)


def parse_date(raw: object) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if raw is None or not str(raw).strip():
        raise ValidationError(DATE_REQUIRED)
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError as exc:
        raise ValidationError(DATE_INVALID) from exc


def validate_expense(
    candidate: Mapping[str, Any], today: Optional[date] = None
) -> Optional[Dict[str, str]]:
    """Check a candidate expense.

    Returns ``None`` when every field is acceptable, otherwise a mapping of
    only the failing fields to their messages.
    """
    errors: Dict[str, str] = {}
    today = today or local_today()

    try:
        amount = normalize_amount(candidate.get("amount"))
    except ValidationError as exc:
        errors["amount"] = str(exc)
    else:
        if not AMOUNT_MIN <= amount <= AMOUNT_MAX:
            errors["amount"] = AMOUNT_OUT_OF_RANGE

    category = candidate.get("category")
    if not category or not str(category).strip():
        errors["category"] = CATEGORY_REQUIRED

    try:
        expense_date = parse_date(candidate.get("date"))
    except ValidationError as exc:
        errors["date"] = str(exc)
    else:
        if expense_date > today:
            errors["date"] = DATE_IN_FUTURE

    memo = candidate.get("memo") or ""
    length = len(str(memo))
    if length > MEMO_MAX_LENGTH:
        errors["memo"] = f"メモは{MEMO_MAX_LENGTH}文字以内で入力してください（現在：{length}文字）"

    return errors or None


def clean_expense(candidate: Mapping[str, Any]) -> Dict[str, Any]:
    """Coerce a validated candidate into the field types the repository stores."""
    return {
        "amount": normalize_amount(candidate.get("amount")),
        "category": str(candidate.get("category") or "").strip(),
        "date": parse_date(candidate.get("date")),
        "memo": str(candidate.get("memo") or ""),
    }


def validate_enum(value: object, field: str, allowed: Iterable[str]) -> str:
    allowed = tuple(allowed)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = value.strip()
    if canonical not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}")
    return canonical
