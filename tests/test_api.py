from datetime import date

import pytest

from api.app import create_app
from kakeibo.config import Config


@pytest.fixture
def client(tmp_path):
    app = create_app(tmp_path, Config(data_dir=tmp_path))
    app.config["TESTING"] = True
    return app.test_client()


def _create(client, **overrides):
    body = {"amount": "1,200", "category": "food", "date": "2024-06-01", "memo": "ランチ"}
    body.update(overrides)
    return client.post("/expenses", json=body)


def test_categories(client):
    items = client.get("/categories").get_json()["items"]
    assert [item["id"] for item in items][0] == "food"
    assert len(items) == 5


def test_create_and_list(client):
    response = _create(client)
    assert response.status_code == 201
    data = response.get_json()
    assert data["item"]["amount"] == 1200
    assert data["item"]["formattedAmount"] == "￥1,200"
    assert data["notifications"] == [
        {"message": "支出を追加しました", "severity": "success", "offersUndo": False}
    ]

    listing = client.get("/expenses").get_json()
    assert listing["count"] == 1
    assert listing["formattedTotal"] == "￥1,200"
    assert listing["notifications"] == []


def test_validation_errors_are_field_level(client):
    response = _create(client, amount=0, memo="あ" * 101)
    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert set(errors) == {"amount", "memo"}
    assert "101" in errors["memo"]
    assert client.get("/expenses").get_json()["count"] == 0


def test_future_date_is_rejected(client):
    response = _create(client, date=date.max.isoformat())
    assert response.status_code == 400
    assert "date" in response.get_json()["errors"]


def test_non_json_body(client):
    response = client.post("/expenses", data="amount=1")
    assert response.status_code == 400


def test_update_and_missing_update(client):
    expense_id = _create(client).get_json()["item"]["id"]
    response = client.put(f"/expenses/{expense_id}", json={
        "amount": 500, "category": "transport", "date": "2024-06-02", "memo": ""
    })
    item = response.get_json()["item"]
    assert (item["id"], item["amount"], item["category"]) == (expense_id, 500, "transport")

    missing = client.put("/expenses/nope", json={
        "amount": 500, "category": "transport", "date": "2024-06-02", "memo": ""
    })
    assert missing.status_code == 200
    assert missing.get_json() == {"item": None, "notifications": []}


def test_get_missing_expense_is_404(client):
    assert client.get("/expenses/nope").status_code == 404


def test_delete_then_undo(client):
    expense_id = _create(client).get_json()["item"]["id"]
    deleted = client.delete(f"/expenses/{expense_id}").get_json()
    assert deleted["deleted"] is True
    assert deleted["notifications"][0]["offersUndo"] is True
    assert client.get("/expenses").get_json()["count"] == 0

    undone = client.post("/undo").get_json()
    assert undone["restored"] is True
    assert client.get(f"/expenses/{expense_id}").status_code == 200


def test_clear_requires_confirmation(client):
    _create(client)
    assert client.delete("/expenses", json={}).status_code == 400
    assert client.delete("/expenses", json={"confirm": True}).status_code == 200
    assert client.get("/expenses").get_json()["count"] == 0


def test_filters_and_sort_settings(client):
    _create(client)
    response = client.put("/settings/filters", json={"category": "transport"})
    assert response.get_json()["category"] == "transport"
    assert client.get("/expenses").get_json()["count"] == 0

    assert client.put("/settings/filters", json={"period": "someday"}).status_code == 400

    sort = client.put("/settings/sort", json={"value": "amount-asc"}).get_json()
    assert (sort["key"], sort["direction"]) == ("amount", "asc")
    assert client.get("/settings/sort").get_json()["value"] == "amount-asc"


def test_export(client):
    empty = client.get("/export").get_json()
    assert empty["exported"] is False
    assert empty["notifications"][0]["severity"] == "warning"

    _create(client, memo="a,b")
    response = client.get("/export")
    assert response.mimetype == "text/csv"
    assert "expenses_" in response.headers["Content-Disposition"]
    text = response.get_data().decode("utf-8")
    assert text.startswith("\ufeff日付,カテゴリ,金額,メモ")
    assert text.endswith('2024-06-01,食費,1200,"a,b"')


def test_sample_data(client):
    response = client.post("/sample")
    assert response.status_code == 201
    assert len(response.get_json()["items"]) == 3


def test_configured_debounce_delay_reaches_the_tracker(tmp_path):
    app = create_app(tmp_path, Config(data_dir=tmp_path, debounce_delay=0.05))
    assert app.extensions["kakeibo"].filter_debouncer().delay == 0.05
