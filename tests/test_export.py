from datetime import date

from kakeibo.export import BOM, encode_csv, escape_csv_field, export_filename

from conftest import make_expense


def test_header_and_one_line_per_expense():
    expenses = [make_expense("a", memo="x"), make_expense("b", amount=5), make_expense("c")]
    text = encode_csv(expenses)
    assert text.startswith(BOM)
    lines = text[len(BOM):].split("\n")
    assert lines[0].split(",") == ["日付", "カテゴリ", "金額", "メモ"]
    assert len(lines) - 1 == len(expenses)


def test_rows_keep_given_order_and_resolve_category_names():
    expenses = [make_expense("a", amount=300, category="mystery"), make_expense("b", amount=100)]
    lines = encode_csv(expenses).split("\n")[1:]
    assert lines == ["2024-06-01,その他,300,", "2024-06-01,食費,100,"]


def test_empty_collection_is_header_only():
    assert encode_csv([]) == BOM + "日付,カテゴリ,金額,メモ"


def test_memo_escaping():
    assert escape_csv_field("plain") == "plain"
    assert escape_csv_field("a,b") == '"a,b"'
    assert escape_csv_field('say "hi"') == '"say ""hi"""'
    assert escape_csv_field("two\nlines") == '"two\nlines"'


def test_filename_uses_compact_date():
    assert export_filename(date(2024, 1, 5)) == "expenses_20240105.csv"
