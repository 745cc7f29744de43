from datetime import date

import pytest

from kakeibo.formatting import (
    format_currency,
    format_date_ja,
    last_saturday,
    memo_counter,
    previous_month,
    truncate_memo,
    yesterday,
)


def test_format_currency():
    assert format_currency(1200) == "￥1,200"
    assert format_currency(0) == "￥0"


def test_format_date_ja():
    assert format_date_ja("2024-06-01") == "2024年6月1日"
    assert format_date_ja(date(2024, 12, 31)) == "2024年12月31日"


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2024, 6, 16), date(2024, 6, 15)),  # Sunday
        (date(2024, 6, 15), date(2024, 6, 8)),  # Saturday
        (date(2024, 6, 17), date(2024, 6, 15)),  # Monday
        (date(2024, 6, 21), date(2024, 6, 15)),  # Friday
    ],
)
def test_last_saturday(today, expected):
    assert last_saturday(today) == expected


def test_yesterday_and_previous_month():
    assert yesterday(date(2024, 3, 1)) == date(2024, 2, 29)
    assert previous_month(date(2025, 1, 10)) == (2024, 12)
    assert previous_month(date(2024, 6, 10)) == (2024, 5)


def test_truncate_memo_counts_code_points():
    assert truncate_memo("a" * 30) == "a" * 30
    assert truncate_memo("😀" * 31) == "😀" * 30 + "..."


def test_memo_counter_levels():
    assert memo_counter("a" * 80) == ("80/100文字", "normal")
    assert memo_counter("a" * 81) == ("81/100文字", "warning")
    assert memo_counter("a" * 101) == ("101/100文字", "error")
