"""Data models for the kakeibo expense domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

__all__ = [
    "ALL",
    "CATEGORIES",
    "DEFAULT_CATEGORY_ID",
    "PERIODS",
    "SCHEMA_VERSION",
    "SORT_DIRECTIONS",
    "SORT_KEYS",
    "AppState",
    "Category",
    "Expense",
    "Filters",
    "Settings",
    "SortOrder",
    "get_category",
    "isoformat_utc",
    "now_utc",
    "parse_datetime",
]

SCHEMA_VERSION = "1.0"
ALL = "all"
PERIODS = (ALL, "thisMonth", "lastMonth")
SORT_KEYS = ("date", "amount", "category")
SORT_DIRECTIONS = ("asc", "desc")


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with millisecond precision and trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def now_utc() -> datetime:
    """Current UTC time truncated to the millisecond precision we persist."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _expect(value: Any, kind: type, name: str) -> Any:
    """Reject stored values of the wrong JSON type before they reach the views."""
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise TypeError(f"{name} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _expect_choice(value: Any, choices: Tuple[str, ...], name: str) -> str:
    if _expect(value, str, name) not in choices:
        raise ValueError(f"{name} must be one of: {', '.join(choices)}")
    return value


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str
    color: str
    order: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "order": self.order,
        }


CATEGORIES: Tuple[Category, ...] = (
    Category("food", "食費", "🍽️", "#FF6B6B", 1),
    Category("transport", "交通費", "🚗", "#4ECDC4", 2),
    Category("entertainment", "娯楽", "🎮", "#95E1D3", 3),
    Category("utilities", "光熱費", "💡", "#FFE66D", 4),
    Category("other", "その他", "📦", "#A8DADC", 5),
)
DEFAULT_CATEGORY_ID = "other"
_CATEGORIES_BY_ID = {category.id: category for category in CATEGORIES}
_FILTER_CATEGORIES = (ALL,) + tuple(_CATEGORIES_BY_ID)


def get_category(category_id: Optional[str]) -> Category:
    """Look up a catalog entry, falling back to the default category."""
    return _CATEGORIES_BY_ID.get(category_id or "", _CATEGORIES_BY_ID[DEFAULT_CATEGORY_ID])


@dataclass(frozen=True)
class Expense:
    id: str
    amount: int
    category: str
    date: date
    memo: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to the JSON shape of the stored blob."""
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
            "memo": self.memo,
            "createdAt": isoformat_utc(self.created_at),
            "updatedAt": isoformat_utc(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data."""
        memo = data.get("memo")
        return cls(
            id=_expect(data["id"], str, "id"),
            amount=_expect(data["amount"], int, "amount"),
            # Stored as-is; unknown ids resolve through get_category when read.
            category=_expect(data.get("category") or "", str, "category"),
            date=date.fromisoformat(_expect(data["date"], str, "date")),
            memo="" if memo is None else _expect(memo, str, "memo"),
            created_at=parse_datetime(data["createdAt"]),
            updated_at=parse_datetime(data["updatedAt"]),
        )


@dataclass(frozen=True)
class Filters:
    category: str = ALL
    period: str = ALL
    search_query: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "period": self.period,
            "searchQuery": self.search_query,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Filters":
        defaults = cls()
        return cls(
            category=_expect_choice(
                data.get("category", defaults.category), _FILTER_CATEGORIES, "filters.category"
            ),
            period=_expect_choice(data.get("period", defaults.period), PERIODS, "filters.period"),
            search_query=_expect(
                data.get("searchQuery", defaults.search_query), str, "filters.searchQuery"
            ),
        )


@dataclass(frozen=True)
class SortOrder:
    key: str = "date"
    direction: str = "desc"

    @property
    def value(self) -> str:
        """Combined ``key-direction`` form used by sort selectors."""
        return f"{self.key}-{self.direction}"

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "direction": self.direction}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SortOrder":
        defaults = cls()
        return cls(
            key=_expect_choice(data.get("key", defaults.key), SORT_KEYS, "sort.key"),
            direction=_expect_choice(
                data.get("direction", defaults.direction), SORT_DIRECTIONS, "sort.direction"
            ),
        )


@dataclass(frozen=True)
class Settings:
    filters: Filters = field(default_factory=Filters)
    sort: SortOrder = field(default_factory=SortOrder)

    def to_dict(self) -> Dict[str, Any]:
        return {"filters": self.filters.to_dict(), "sort": self.sort.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        return cls(
            filters=Filters.from_dict(data.get("filters") or {}),
            sort=SortOrder.from_dict(data.get("sort") or {}),
        )


@dataclass
class AppState:
    """Root aggregate persisted as a single blob."""

    expenses: List[Expense] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    schema_version: str = SCHEMA_VERSION
    backup: List[Expense] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expenses": [expense.to_dict() for expense in self.expenses],
            "settings": self.settings.to_dict(),
            "schemaVersion": self.schema_version,
            "backup": [expense.to_dict() for expense in self.backup],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppState":
        if not isinstance(data, dict):
            raise TypeError("state blob must be a JSON object")
        return cls(
            expenses=[Expense.from_dict(item) for item in data.get("expenses") or []],
            settings=Settings.from_dict(data.get("settings") or {}),
            schema_version=str(data.get("schemaVersion", SCHEMA_VERSION)),
            backup=[Expense.from_dict(item) for item in data.get("backup") or []],
        )
