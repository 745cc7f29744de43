from datetime import date

import pytest

from kakeibo.exceptions import ValidationError
from kakeibo.validators import clean_expense, normalize_amount, validate_enum, validate_expense

from conftest import candidate

TODAY = date(2024, 6, 15)


class TestNormalizeAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1,234", 1234),
            ("１２３", 123),
            ("１,２３４", 1234),
            (" 5 000 ", 5000),
            ("5　000", 5000),
            (800, 800),
            (800.0, 800),
            ("12.0", 12),
        ],
    )
    def test_normalises(self, raw, expected):
        assert normalize_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "12abc", None, True])
    def test_unparsable(self, raw):
        with pytest.raises(ValidationError):
            normalize_amount(raw)

    def test_fractional_is_rejected_as_non_integer(self):
        with pytest.raises(ValidationError, match="整数"):
            normalize_amount("12.5")


class TestValidateExpense:
    def test_valid_candidate_returns_none(self):
        assert validate_expense(candidate(), TODAY) is None

    @pytest.mark.parametrize("amount", [0, "0", 10000000, "10,000,000", -5])
    def test_amount_out_of_range(self, amount):
        errors = validate_expense(candidate(amount=amount), TODAY)
        assert set(errors) == {"amount"}

    @pytest.mark.parametrize("amount", [1, 9999999, "9,999,999"])
    def test_amount_bounds_pass(self, amount):
        assert validate_expense(candidate(amount=amount), TODAY) is None

    def test_missing_category(self):
        errors = validate_expense(candidate(category=""), TODAY)
        assert errors == {"category": "カテゴリを選択してください"}

    def test_future_date_rejected(self):
        errors = validate_expense(candidate(day="2024-06-16"), TODAY)
        assert errors == {"date": "未来日は登録できません"}

    def test_today_is_allowed(self):
        assert validate_expense(candidate(day=TODAY), TODAY) is None

    def test_missing_and_malformed_dates(self):
        assert validate_expense(candidate(day=""), TODAY) == {"date": "日付を入力してください"}
        assert "date" in validate_expense(candidate(day="2024/06/01"), TODAY)

    def test_memo_of_101_code_points_reports_count(self):
        errors = validate_expense(candidate(memo="あ" * 101), TODAY)
        assert set(errors) == {"memo"}
        assert "101" in errors["memo"]

    def test_memo_of_exactly_100_passes(self):
        assert validate_expense(candidate(memo="a" * 100), TODAY) is None

    def test_memo_counts_code_points_not_utf16_units(self):
        # Each emoji sits outside the basic plane (two UTF-16 units).
        assert validate_expense(candidate(memo="😀" * 100), TODAY) is None

    def test_only_failing_fields_are_reported(self):
        errors = validate_expense({"amount": "", "category": "", "date": "", "memo": ""}, TODAY)
        assert set(errors) == {"amount", "category", "date"}


def test_clean_expense_coerces_types():
    cleaned = clean_expense({"amount": "１,２００", "category": " food ", "date": "2024-06-01"})
    assert cleaned == {"amount": 1200, "category": "food", "date": date(2024, 6, 1), "memo": ""}


def test_validate_enum():
    assert validate_enum(" asc ", "direction", ("asc", "desc")) == "asc"
    with pytest.raises(ValidationError):
        validate_enum("sideways", "direction", ("asc", "desc"))
