"""Core business logic package for the kakeibo expense tracker."""

from .config import Config
from .debounce import Debouncer
from .exceptions import (
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
    QuotaExceededError,
    RecordNotFoundError,
    ValidationError,
)
from .export import encode_csv, export_filename
from .models import CATEGORIES, AppState, Category, Expense, Filters, Settings, SortOrder, get_category
from .notifications import Notification, Notifier
from .query import ViewSummary, derive_view, summarize
from .services import EditingSession, ExpenseRepository, ExpenseTracker, SettingsManager
from .storage import BackupSlot, JSONStorage
from .validators import normalize_amount, validate_expense

__all__ = [
    "CATEGORIES",
    "AppState",
    "BackupSlot",
    "Category",
    "Config",
    "Debouncer",
    "EditingSession",
    "Expense",
    "ExpenseRepository",
    "ExpenseTracker",
    "Filters",
    "JSONStorage",
    "Notification",
    "Notifier",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "QuotaExceededError",
    "RecordNotFoundError",
    "Settings",
    "SettingsManager",
    "SortOrder",
    "ValidationError",
    "ViewSummary",
    "derive_view",
    "encode_csv",
    "export_filename",
    "get_category",
    "normalize_amount",
    "summarize",
    "validate_expense",
]
