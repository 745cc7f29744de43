"""Framework-agnostic business services for the kakeibo expense tracker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from .debounce import DEFAULT_DELAY, Debouncer
from .exceptions import RecordNotFoundError, ValidationError
from .export import encode_csv, export_filename
from .formatting import today as local_today
from .models import (
    ALL,
    CATEGORIES,
    PERIODS,
    SORT_DIRECTIONS,
    SORT_KEYS,
    AppState,
    Expense,
    Filters,
    Settings,
    SortOrder,
    now_utc,
)
from .notifications import Notifier
from .query import ViewSummary, derive_view, summarize
from .storage import BackupSlot, JSONStorage
from .validators import clean_expense, validate_enum, validate_expense

logger = logging.getLogger(__name__)

EXPORT_SCOPES = ("all", "view")


class ExpenseRepository:
    """Sole mutator of the expense collection.

    Every mutation holds the storage lock while it loads the full state,
    snapshots it into the backup slot, changes the in-memory copy and writes
    the whole state back in one save. ``last_save_ok`` reports whether that
    save reached disk.
    """

    def __init__(self, storage: JSONStorage, backup: Optional[BackupSlot] = None) -> None:
        self._storage = storage
        self._backup = backup or BackupSlot(storage)
        self.last_save_ok = True

    # Public API -----------------------------------------------------------
    def add(self, candidate: Mapping[str, Any]) -> Expense:
        data = clean_expense(candidate)
        with self._storage.lock:
            state = self._begin()
            now = now_utc()
            expense = Expense(id=str(uuid4()), created_at=now, updated_at=now, **data)
            state.expenses.append(expense)
            self._commit(state)
        logger.debug("Added expense %s", expense.id)
        return expense

    def update(self, expense_id: str, candidate: Mapping[str, Any]) -> Optional[Expense]:
        """Replace the editable fields of an expense; unknown ids are ignored."""
        data = clean_expense(candidate)
        updated = None
        with self._storage.lock:
            state = self._begin()
            for index, existing in enumerate(state.expenses):
                if existing.id == expense_id:
                    updated = replace(existing, updated_at=now_utc(), **data)
                    state.expenses[index] = updated
                    break
            self._commit(state)
        if updated is not None:
            logger.debug("Updated expense %s", expense_id)
        return updated

    def remove(self, expense_id: str) -> bool:
        with self._storage.lock:
            state = self._begin()
            remaining = [expense for expense in state.expenses if expense.id != expense_id]
            removed = len(remaining) != len(state.expenses)
            state.expenses = remaining
            self._commit(state)
        if removed:
            logger.debug("Removed expense %s", expense_id)
        return removed

    def undo(self) -> bool:
        return self._backup.restore()

    def clear_all(self) -> None:
        with self._storage.lock:
            state = self._begin()
            state.expenses = []
            self._commit(state)
        logger.debug("Cleared all expenses")

    def add_sample_data(self, today: Optional[date] = None) -> List[Expense]:
        today = today or local_today()
        samples = [
            (1200, "food", today, "ランチ"),
            (3500, "transport", today - timedelta(days=1), "電車定期券"),
            (8000, "entertainment", today - timedelta(days=2), "映画とディナー"),
        ]
        with self._storage.lock:
            state = self._begin()
            now = now_utc()
            created = [
                Expense(
                    id=str(uuid4()),
                    amount=amount,
                    category=category,
                    date=day,
                    memo=memo,
                    created_at=now,
                    updated_at=now,
                )
                for amount, category, day, memo in samples
            ]
            state.expenses.extend(created)
            self._commit(state)
        return created

    def get(self, expense_id: str) -> Expense:
        """Return an expense or raise if it does not exist."""
        for expense in self._storage.load().expenses:
            if expense.id == expense_id:
                return expense
        raise RecordNotFoundError(f"Expense {expense_id} not found")

    def list(self) -> List[Expense]:
        return list(self._storage.load().expenses)

    def total(self) -> int:
        return sum(expense.amount for expense in self.list())

    def _begin(self) -> AppState:
        state = self._storage.load()
        self._backup.snapshot(state, persist=False)
        return state

    def _commit(self, state: AppState) -> None:
        self.last_save_ok = self._storage.save(state)


def parse_sort_value(value: str) -> SortOrder:
    """Split a combined selector value such as ``amount-asc``."""
    key, _, direction = str(value).partition("-")
    return SortOrder(
        key=validate_enum(key, "sort key", SORT_KEYS),
        direction=validate_enum(direction, "sort direction", SORT_DIRECTIONS),
    )


class SettingsManager:
    """Reads and writes the persisted filter and sort preferences."""

    def __init__(self, storage: JSONStorage) -> None:
        self._storage = storage

    def get(self) -> Settings:
        return self._storage.load().settings

    def get_filters(self) -> Filters:
        return self.get().filters

    def get_sort(self) -> SortOrder:
        return self.get().sort

    def set_filters(
        self,
        category: Optional[str] = None,
        period: Optional[str] = None,
        search_query: Optional[str] = None,
    ) -> Filters:
        if category is not None:
            allowed = (ALL,) + tuple(cat.id for cat in CATEGORIES)
            category = validate_enum(category, "category", allowed)
        if period is not None:
            period = validate_enum(period, "period", PERIODS)
        with self._storage.lock:
            state = self._storage.load()
            filters = state.settings.filters
            if category is not None:
                filters = replace(filters, category=category)
            if period is not None:
                filters = replace(filters, period=period)
            if search_query is not None:
                filters = replace(filters, search_query=str(search_query))
            state.settings = replace(state.settings, filters=filters)
            self._storage.save(state)
        return filters

    def set_sort(self, key: str, direction: str) -> SortOrder:
        sort = SortOrder(
            key=validate_enum(key, "sort key", SORT_KEYS),
            direction=validate_enum(direction, "sort direction", SORT_DIRECTIONS),
        )
        with self._storage.lock:
            state = self._storage.load()
            state.settings = replace(state.settings, sort=sort)
            self._storage.save(state)
        return sort


@dataclass
class EditingSession:
    """Which expense, if any, the entry form is currently editing."""

    editing_id: Optional[str] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def start(self, expense_id: str) -> None:
        self.editing_id = expense_id

    def cancel(self) -> None:
        self.editing_id = None


class ExpenseTracker:
    """Wires repository, settings and notifications for a presentation layer.

    Listeners registered with ``subscribe`` are called after every change
    that should refresh the list and totals. Success messages are only sent
    when the change was saved; the store reports save failures itself.
    """

    def __init__(
        self,
        storage: JSONStorage,
        notifier: Optional[Notifier] = None,
        debounce_delay: float = DEFAULT_DELAY,
    ) -> None:
        self.notifier = notifier or storage.notifier
        self.repository = ExpenseRepository(storage)
        self.settings = SettingsManager(storage)
        self.debounce_delay = debounce_delay
        self._listeners: List[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    # Mutations ------------------------------------------------------------
    def add(self, candidate: Mapping[str, Any]) -> Expense:
        expense = self.repository.add(candidate)
        self._changed()
        self._notify_saved("支出を追加しました", "success")
        return expense

    def update(self, expense_id: str, candidate: Mapping[str, Any]) -> Optional[Expense]:
        expense = self.repository.update(expense_id, candidate)
        if expense is not None:
            self._changed()
            self._notify_saved("支出を更新しました", "info")
        return expense

    def delete(self, expense_id: str) -> bool:
        removed = self.repository.remove(expense_id)
        if removed:
            self._changed()
            self._notify_saved("支出を削除しました", "warning", offers_undo=True, action=self.undo)
        return removed

    def undo(self) -> bool:
        restored = self.repository.undo()
        if restored:
            self._changed()
            self.notifier.notify("削除を取り消しました", "info")
        return restored

    def clear_all(self) -> None:
        self.repository.clear_all()
        self._changed()
        self._notify_saved("すべてのデータを削除しました", "warning")

    def add_sample_data(self, today: Optional[date] = None) -> List[Expense]:
        created = self.repository.add_sample_data(today)
        self._changed()
        self._notify_saved("サンプルデータを追加しました", "success")
        return created

    def submit(
        self,
        session: EditingSession,
        form: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> Optional[Dict[str, str]]:
        """Validate a form and add or update; returns field errors when rejected."""
        errors = validate_expense(form, today)
        if errors:
            return errors
        if session.is_editing:
            self.update(session.editing_id, form)
            session.cancel()
        else:
            self.add(form)
        return None

    # Views ----------------------------------------------------------------
    def view(self, today: Optional[date] = None) -> List[Expense]:
        return derive_view(self.repository.list(), self.settings.get(), today)

    def summary(self, today: Optional[date] = None) -> ViewSummary:
        return summarize(self.view(today))

    def total(self) -> int:
        return self.repository.total()

    def export(
        self, scope: str = "all", today: Optional[date] = None
    ) -> Optional[Tuple[str, str]]:
        """Return ``(filename, csv_text)``, or None when there is nothing to export."""
        scope = validate_enum(scope, "scope", EXPORT_SCOPES)
        expenses = self.repository.list() if scope == "all" else self.view(today)
        if not expenses:
            self.notifier.notify("エクスポートするデータがありません", "warning")
            return None
        content = encode_csv(expenses)
        self.notifier.notify("CSVファイルをダウンロードしました", "success")
        return export_filename(today), content

    # Settings -------------------------------------------------------------
    def apply_filters(self, **filters: Optional[str]) -> Filters:
        applied = self.settings.set_filters(**filters)
        self._changed()
        return applied

    def filter_debouncer(self, delay: Optional[float] = None, **kwargs: Any) -> Debouncer:
        """Debouncer that saves filter input once typing goes quiet."""
        if delay is None:
            delay = self.debounce_delay
        return Debouncer(self.apply_filters, delay, **kwargs)

    def input_filters(self, debouncer: Debouncer, **filters: Optional[str]) -> None:
        """Record filter keystrokes; only the last burst is saved and refreshed."""
        debouncer.trigger(**filters)

    def set_sort(self, key: str, direction: str) -> SortOrder:
        sort = self.settings.set_sort(key, direction)
        self._changed()
        return sort

    def _notify_saved(self, message: str, severity: str, **kwargs: Any) -> None:
        if self.repository.last_save_ok:
            self.notifier.notify(message, severity, **kwargs)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()


def raise_for_errors(errors: Optional[Dict[str, str]]) -> None:
    """Turn a validation mapping into an exception for request/console boundaries."""
    if errors:
        raise ValidationError("; ".join(f"{field}: {msg}" for field, msg in errors.items()), errors)
