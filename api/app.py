"""Flask REST API exposing the kakeibo expense services."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from kakeibo.config import Config
from kakeibo.exceptions import RecordNotFoundError, ValidationError
from kakeibo.formatting import format_currency, format_date_ja, truncate_memo
from kakeibo.models import CATEGORIES, Expense, get_category
from kakeibo.notifications import Notifier
from kakeibo.services import ExpenseTracker, parse_sort_value, raise_for_errors
from kakeibo.storage import JSONStorage
from kakeibo.validators import validate_expense


def _expense_payload(expense: Expense) -> Dict[str, Any]:
    category = get_category(expense.category)
    payload = expense.to_dict()
    payload.update(
        {
            "categoryName": category.name,
            "categoryIcon": category.icon,
            "categoryColor": category.color,
            "formattedAmount": format_currency(expense.amount),
            "formattedDate": format_date_ja(expense.date),
            "memoPreview": truncate_memo(expense.memo),
        }
    )
    return payload


def create_app(data_dir: Optional[Path] = None, config: Optional[Config] = None) -> Flask:
    app = Flask(__name__)
    config = config or Config.from_env()

    if config.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif config.allowed_origins:
        CORS(app, resources={r"/*": {"origins": config.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    notifier = Notifier()
    storage = JSONStorage(
        Path(data_dir or config.data_dir), notifier, quota_bytes=config.storage_quota
    )
    tracker = ExpenseTracker(storage, notifier, debounce_delay=config.debounce_delay)

    def _notifications():
        return [notification.to_dict() for notification in notifier.drain()]

    def _success(payload: Dict[str, Any], status: int = 200):
        return jsonify({**payload, "notifications": _notifications()}), status

    def _handle_error(exc: Exception, status: int, message: str, **extra: Any):
        app.logger.error("%s: %s", message, exc)
        body = {"error": message, "details": str(exc), **extra, "notifications": _notifications()}
        return jsonify(body), status

    @app.before_request
    def discard_stale_notifications():
        notifier.drain()

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error", errors=exc.errors)

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    @app.get("/categories")
    def list_categories():
        return _success({"items": [category.to_dict() for category in CATEGORIES]})

    @app.get("/expenses")
    def list_expenses():
        expenses = tracker.view()
        total = sum(expense.amount for expense in expenses)
        overall = tracker.total()
        return _success({
            "items": [_expense_payload(expense) for expense in expenses],
            "count": len(expenses),
            "total": total,
            "formattedTotal": format_currency(total),
            "overallTotal": overall,
            "formattedOverallTotal": format_currency(overall),
            "settings": tracker.settings.get().to_dict(),
        })

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        raise_for_errors(validate_expense(payload))
        expense = tracker.add(payload)
        return _success({"item": _expense_payload(expense)}, 201)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        expense = tracker.repository.get(expense_id)
        return _success({"item": _expense_payload(expense)})

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        payload = _json_body()
        raise_for_errors(validate_expense(payload))
        expense = tracker.update(expense_id, payload)
        # Unknown ids are ignored rather than reported.
        return _success({"item": _expense_payload(expense) if expense else None})

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        return _success({"deleted": tracker.delete(expense_id)})

    @app.delete("/expenses")
    def clear_expenses():
        payload = _json_body()
        if payload.get("confirm") is not True:
            raise ValidationError("Clearing all expenses requires {\"confirm\": true}")
        tracker.clear_all()
        return _success({"cleared": True})

    @app.post("/undo")
    def undo():
        return _success({"restored": tracker.undo()})

    @app.post("/sample")
    def add_sample_data():
        created = tracker.add_sample_data()
        return _success({"items": [_expense_payload(expense) for expense in created]}, 201)

    @app.get("/settings/filters")
    def get_filters():
        return _success(tracker.settings.get_filters().to_dict())

    @app.put("/settings/filters")
    def update_filters():
        payload = _json_body()
        filters = tracker.apply_filters(
            category=payload.get("category"),
            period=payload.get("period"),
            search_query=payload.get("searchQuery"),
        )
        return _success(filters.to_dict())

    @app.get("/settings/sort")
    def get_sort():
        sort = tracker.settings.get_sort()
        return _success({**sort.to_dict(), "value": sort.value})

    @app.put("/settings/sort")
    def update_sort():
        payload = _json_body()
        if "value" in payload:
            requested = parse_sort_value(payload["value"])
            key, direction = requested.key, requested.direction
        else:
            key, direction = payload.get("key"), payload.get("direction")
        sort = tracker.set_sort(key, direction)
        return _success({**sort.to_dict(), "value": sort.value})

    @app.get("/export")
    def export_csv():
        result = tracker.export(request.args.get("scope", "all"))
        if result is None:
            return _success({"exported": False})
        filename, content = result
        notifier.drain()
        return Response(
            content.encode("utf-8"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    app.extensions["kakeibo"] = tracker
    return app
