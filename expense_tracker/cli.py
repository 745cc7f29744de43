"""Console interface for the kakeibo expense tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from kakeibo.config import Config
from kakeibo.exceptions import RecordNotFoundError, ValidationError
from kakeibo.formatting import format_currency, format_date_ja, today, truncate_memo
from kakeibo.models import CATEGORIES, PERIODS, Expense, get_category
from kakeibo.notifications import Notification, Notifier
from kakeibo.services import EditingSession, ExpenseTracker, parse_sort_value
from kakeibo.storage import JSONStorage

CATEGORY_CHOICES = [category.id for category in CATEGORIES]


def _print_notification(notification: Notification) -> None:
    stream = sys.stderr if notification.severity == "error" else sys.stdout
    print(f"[{notification.severity}] {notification.message}", file=stream)


def _load_tracker(args: argparse.Namespace, config: Config) -> ExpenseTracker:
    notifier = Notifier()
    notifier.subscribe(_print_notification)
    storage = JSONStorage(args.data_dir, notifier, quota_bytes=config.storage_quota)
    return ExpenseTracker(storage, notifier, debounce_delay=config.debounce_delay)


def _format_expense(expense: Expense) -> str:
    category = get_category(expense.category)
    line = (
        f"[{expense.id}] {format_date_ja(expense.date)} "
        f"{category.icon} {category.name} {format_currency(expense.amount)}\n"
    )
    if expense.memo:
        line += f"  {truncate_memo(expense.memo)}\n"
    return line


def _print_errors(errors: Dict[str, str]) -> None:
    for field, message in errors.items():
        print(f"Validation error ({field}): {message}", file=sys.stderr)


def handle_add(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    form = {
        "amount": args.amount,
        "category": args.category,
        "date": args.date or today().isoformat(),
        "memo": args.memo,
    }
    errors = tracker.submit(EditingSession(), form)
    if errors:
        _print_errors(errors)
        return 1
    return 0


def handle_edit(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    existing = tracker.repository.get(args.id)
    session = EditingSession()
    session.start(existing.id)
    form = {
        "amount": args.amount if args.amount is not None else existing.amount,
        "category": args.category or existing.category,
        "date": args.date or existing.date.isoformat(),
        "memo": args.memo if args.memo is not None else existing.memo,
    }
    errors = tracker.submit(session, form)
    if errors:
        _print_errors(errors)
        return 1
    return 0


def handle_list(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    if any(value is not None for value in (args.category, args.period, args.search)):
        tracker.apply_filters(
            category=args.category, period=args.period, search_query=args.search
        )
    if args.sort:
        requested = parse_sort_value(args.sort)
        tracker.set_sort(requested.key, requested.direction)

    expenses = tracker.view()
    summary = tracker.summary()
    if not expenses:
        print("No expenses found.")
    for expense in expenses:
        print(_format_expense(expense))
    print(
        f"Showing {summary.count} expenses (total {format_currency(summary.total)}), "
        f"overall {format_currency(tracker.total())}"
    )
    return 0


def handle_export(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    result = tracker.export(args.scope)
    if result is None:
        return 0
    filename, content = result
    target_dir: Path = args.output_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename
    # newline="" keeps the encoder's \n row separators untouched on every platform.
    with target.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    print(f"Wrote {target}")
    return 0


def handle_clear(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    if not args.yes:
        print("Refusing to delete everything without --yes.", file=sys.stderr)
        return 1
    tracker.clear_all()
    return 0


def handle_categories(args: argparse.Namespace, tracker: ExpenseTracker) -> int:
    for category in CATEGORIES:
        print(f"{category.order}. {category.icon} {category.id} ({category.name})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Kakeibo expense tracker CLI")
    parser.add_argument(
        "--data-dir",
        default=None,
        type=Path,
        help="Directory to store JSON data (default: $KAKEIBO_DATA_DIR or ./data)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Record a new expense")
    add.add_argument("amount", help="Whole yen; full-width digits and commas are accepted")
    add.add_argument("category", choices=CATEGORY_CHOICES)
    add.add_argument("--date", help="YYYY-MM-DD (default: today)")
    add.add_argument("--memo", default="")

    edit = subparsers.add_parser("edit", help="Edit an existing expense")
    edit.add_argument("id")
    edit.add_argument("--amount")
    edit.add_argument("--category", choices=CATEGORY_CHOICES)
    edit.add_argument("--date")
    edit.add_argument("--memo")

    delete = subparsers.add_parser("delete", help="Delete an expense")
    delete.add_argument("id")

    subparsers.add_parser("undo", help="Restore the collection as it was before the last change")

    clear = subparsers.add_parser("clear", help="Delete every expense")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    listing = subparsers.add_parser("list", help="List expenses with the saved filters")
    listing.add_argument("--category", choices=["all"] + CATEGORY_CHOICES)
    listing.add_argument("--period", choices=PERIODS)
    listing.add_argument("--search")
    listing.add_argument("--sort", help="key-direction, e.g. amount-asc")

    export = subparsers.add_parser("export", help="Export expenses to CSV")
    export.add_argument("--output-dir", default=Path("."), type=Path)
    export.add_argument("--scope", choices=["all", "view"], default="all")

    subparsers.add_parser("categories", help="Show the category catalog")
    subparsers.add_parser("sample", help="Add sample expenses")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = Config.from_env()
    if args.data_dir is None:
        args.data_dir = config.data_dir
    tracker = _load_tracker(args, config)

    try:
        if args.command == "add":
            return handle_add(args, tracker)
        if args.command == "edit":
            return handle_edit(args, tracker)
        if args.command == "delete":
            tracker.delete(args.id)
            return 0
        if args.command == "undo":
            if not tracker.undo():
                print("Nothing to undo.")
            return 0
        if args.command == "clear":
            return handle_clear(args, tracker)
        if args.command == "list":
            return handle_list(args, tracker)
        if args.command == "export":
            return handle_export(args, tracker)
        if args.command == "categories":
            return handle_categories(args, tracker)
        if args.command == "sample":
            tracker.add_sample_data()
            return 0
        parser.error(f"Unknown command: {args.command}")  # pragma: no cover - argparse should prevent this
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
