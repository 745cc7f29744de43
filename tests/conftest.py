from datetime import date, datetime, timezone

import pytest

from kakeibo.models import Expense
from kakeibo.notifications import Notifier
from kakeibo.services import ExpenseRepository, ExpenseTracker, SettingsManager
from kakeibo.storage import JSONStorage


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def storage(tmp_path, notifier):
    return JSONStorage(tmp_path / "data", notifier)


@pytest.fixture
def repository(storage):
    return ExpenseRepository(storage)


@pytest.fixture
def settings_manager(storage):
    return SettingsManager(storage)


@pytest.fixture
def tracker(storage, notifier):
    return ExpenseTracker(storage, notifier)


def make_expense(
    id="e1",
    amount=1000,
    category="food",
    day=date(2024, 6, 1),
    memo="",
    created_at=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
):
    return Expense(
        id=id,
        amount=amount,
        category=category,
        date=day,
        memo=memo,
        created_at=created_at,
        updated_at=created_at,
    )


def candidate(amount=1200, category="food", day="2024-06-01", memo=""):
    return {"amount": amount, "category": category, "date": day, "memo": memo}
