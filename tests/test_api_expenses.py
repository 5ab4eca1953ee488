from fastapi.testclient import TestClient


def _expense(**overrides):
    data = {
        "name": "Groceries run",
        "amount": -54.2,
        "category": "Food",
        "date": "2026-03-02",
        "tags": ["weekly", " weekly ", ""],
    }
    data.update(overrides)
    return data


def _linked_entry_id(client: TestClient) -> str:
    rule = client.post(
        "/api/recurring-expenses",
        json={
            "name": "Power",
            "amount": -80,
            "category": "Utilities",
            "start_date": "2099-01-01",
            "interval": "monthly",
            "occurrences": 2,
        },
    ).json()
    entries = client.get("/api/expenses", params={"recurring_id": rule["id"]}).json()
    return entries[0]["id"]


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_and_get_expense(client: TestClient):
    r = client.post("/api/expenses", json=_expense())
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["recurring_id"] is None
    assert body["currency"] == "USD"
    assert body["tags"] == ["weekly"]

    r = client.get(f"/api/expenses/{body['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Groceries run"

    assert client.get("/api/expenses/missing").status_code == 404


def test_create_expense_defaults_date(client: TestClient):
    r = client.post("/api/expenses", json=_expense(date=None))
    assert r.status_code == 201
    assert r.json()["date"]


def test_create_expense_validation(client: TestClient):
    assert client.post("/api/expenses", json=_expense(category="Yachts")).status_code == 400
    assert client.post("/api/expenses", json=_expense(name="   ")).status_code == 422
    assert client.post("/api/expenses", json=_expense(currency="dollars")).status_code == 422


def test_update_expense_keeps_date(client: TestClient):
    created = client.post("/api/expenses", json=_expense()).json()

    r = client.put(
        f"/api/expenses/{created['id']}",
        json=_expense(name="Farmers market", amount=-20, date=None, subcategory="  "),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Farmers market"
    assert body["date"] == "2026-03-02"
    assert body["subcategory"] is None

    assert client.put("/api/expenses/missing", json=_expense()).status_code == 404


def test_delete_expense(client: TestClient):
    created = client.post("/api/expenses", json=_expense()).json()
    assert client.delete(f"/api/expenses/{created['id']}").status_code == 204
    assert client.delete(f"/api/expenses/{created['id']}").status_code == 404


def test_generated_entries_are_read_only(client: TestClient):
    entry_id = _linked_entry_id(client)

    r = client.put(f"/api/expenses/{entry_id}", json=_expense(category="Utilities"))
    assert r.status_code == 409
    assert "recurring expense" in r.json()["detail"]

    assert client.delete(f"/api/expenses/{entry_id}").status_code == 409
    assert client.get(f"/api/expenses/{entry_id}").status_code == 200


def test_bulk_delete(client: TestClient):
    ids = [client.post("/api/expenses", json=_expense(name=f"Item {i}")).json()["id"] for i in range(3)]

    r = client.post("/api/expenses/bulk-delete", json={"ids": ids[:2] + ["missing"]})
    assert r.status_code == 200
    assert r.json() == {"removed": 2}
    assert [e["id"] for e in client.get("/api/expenses").json()] == [ids[2]]

    assert client.post("/api/expenses/bulk-delete", json={"ids": []}).status_code == 422


def test_bulk_delete_refuses_generated_entries(client: TestClient):
    own = client.post("/api/expenses", json=_expense()).json()["id"]
    linked = _linked_entry_id(client)

    r = client.post("/api/expenses/bulk-delete", json={"ids": [own, linked]})
    assert r.status_code == 409
    assert client.get(f"/api/expenses/{own}").status_code == 200


def test_config_endpoints(client: TestClient):
    r = client.get("/api/config")
    assert r.status_code == 200
    assert r.json() == {
        "categories": ["Rent", "Food", "Utilities", "Income"],
        "currency": "USD",
        "start_date": 1,
    }

    r = client.put("/api/categories", json=["Food", " Travel ", "Food"])
    assert r.status_code == 200
    assert r.json() == ["Food", "Travel"]
    assert client.put("/api/categories", json=["Food", " "]).status_code == 400
    assert client.get("/api/categories").json() == ["Food", "Travel"]

    r = client.put("/api/currency", json="eur")
    assert r.status_code == 200
    assert r.json() == "EUR"
    assert client.put("/api/currency", json="ABC").status_code == 400
    assert client.get("/api/currency").json() == "EUR"

    assert client.put("/api/start-date", json=25).json() == 25
    assert client.put("/api/start-date", json=32).status_code == 400
    assert client.put("/api/start-date", json=0).status_code == 400
    assert client.get("/api/start-date").json() == 25


def test_configured_currency_is_default(client: TestClient):
    client.put("/api/currency", json="JPY")
    r = client.post("/api/expenses", json=_expense())
    assert r.json()["currency"] == "JPY"


def test_create_expense_with_taken_id(client: TestClient):
    r = client.post("/api/expenses", json=_expense(id="dup"))
    assert r.status_code == 201

    r = client.post("/api/expenses", json=_expense(id="dup", name="Second"))
    assert r.status_code == 409
    assert client.get("/api/expenses/dup").json()["name"] == "Groceries run"

    linked = _linked_entry_id(client)
    r = client.post("/api/expenses", json=_expense(id=linked))
    assert r.status_code == 409
    assert client.get(f"/api/expenses/{linked}").json()["recurring_id"] is not None

    # the request session is still usable
    assert client.post("/api/expenses", json=_expense(id="fresh")).status_code == 201
