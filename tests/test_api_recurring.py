from fastapi.testclient import TestClient


def _rule_payload(**overrides):
    data = {
        "name": "Netflix",
        "amount": -15.99,
        "category": "Utilities",
        "start_date": "2099-01-31",
        "interval": "monthly",
        "occurrences": 3,
        "tags": ["streaming"],
    }
    data.update(overrides)
    return data


def _entries(client: TestClient, rule_id: str):
    r = client.get("/api/expenses", params={"recurring_id": rule_id})
    assert r.status_code == 200, r.text
    return sorted(r.json(), key=lambda e: e["date"])


def test_create_recurring_expense_materializes_entries(client: TestClient):
    r = client.post("/api/recurring-expenses", json=_rule_payload())
    assert r.status_code == 201, r.text
    rule = r.json()
    assert rule["currency"] == "USD"
    assert rule["interval"] == "monthly"

    entries = _entries(client, rule["id"])
    assert [e["date"] for e in entries] == ["2099-01-31", "2099-03-03", "2099-04-03"]
    assert all(e["amount"] == -15.99 for e in entries)
    assert all(e["recurring_id"] == rule["id"] for e in entries)


def test_create_with_explicit_id_and_duplicate(client: TestClient):
    r = client.post("/api/recurring-expenses", json=_rule_payload(id="netflix"))
    assert r.status_code == 201
    assert r.json()["id"] == "netflix"

    r = client.post("/api/recurring-expenses", json=_rule_payload(id="netflix"))
    assert r.status_code == 409


def test_create_rejects_unknown_category_and_currency(client: TestClient):
    r = client.post("/api/recurring-expenses", json=_rule_payload(category="Yachts"))
    assert r.status_code == 400
    assert "unknown category" in r.json()["detail"]

    r = client.post("/api/recurring-expenses", json=_rule_payload(currency="XYZ"))
    assert r.status_code == 400

    r = client.post("/api/recurring-expenses", json=_rule_payload(interval="hourly"))
    assert r.status_code == 422

    r = client.post("/api/recurring-expenses", json=_rule_payload(amount=0))
    assert r.status_code == 422


def test_list_and_get_recurring_expense(client: TestClient):
    created = client.post("/api/recurring-expenses", json=_rule_payload()).json()

    r = client.get("/api/recurring-expenses")
    assert r.status_code == 200
    assert [item["id"] for item in r.json()] == [created["id"]]

    r = client.get(f"/api/recurring-expenses/{created['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Netflix"

    assert client.get("/api/recurring-expenses/missing").status_code == 404


def test_update_future_rule_regenerates_entries(client: TestClient):
    created = client.post("/api/recurring-expenses", json=_rule_payload()).json()
    old_ids = {e["id"] for e in _entries(client, created["id"])}

    r = client.put(
        f"/api/recurring-expenses/{created['id']}",
        json=_rule_payload(name="Netflix Premium", amount=-22.99, occurrences=4),
    )
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Netflix Premium"

    entries = _entries(client, created["id"])
    assert len(entries) == 4
    assert {e["name"] for e in entries} == {"Netflix Premium"}
    assert not old_ids & {e["id"] for e in entries}


def test_update_past_rule_keeps_history_unless_update_all(client: TestClient):
    created = client.post(
        "/api/recurring-expenses", json=_rule_payload(start_date="2000-01-01", occurrences=3)
    ).json()

    r = client.put(f"/api/recurring-expenses/{created['id']}", json=_rule_payload(
        name="Renamed", start_date="2000-01-01", occurrences=3,
    ))
    assert r.status_code == 200
    entries = _entries(client, created["id"])
    assert [e["date"] for e in entries] == ["2000-01-01", "2000-02-01", "2000-03-01"]
    assert {e["name"] for e in entries} == {"Netflix"}

    r = client.put(
        f"/api/recurring-expenses/{created['id']}",
        params={"update_all": "true"},
        json=_rule_payload(name="Renamed", start_date="2000-01-01", occurrences=3),
    )
    assert r.status_code == 200
    assert {e["name"] for e in _entries(client, created["id"])} == {"Renamed"}


def test_update_missing_rule(client: TestClient):
    r = client.put("/api/recurring-expenses/missing", json=_rule_payload())
    assert r.status_code == 404


def test_delete_rule_keeps_past_entries(client: TestClient):
    created = client.post(
        "/api/recurring-expenses", json=_rule_payload(start_date="2000-01-01", occurrences=2)
    ).json()

    r = client.delete(f"/api/recurring-expenses/{created['id']}")
    assert r.status_code == 204
    assert client.get(f"/api/recurring-expenses/{created['id']}").status_code == 404
    assert len(_entries(client, created["id"])) == 2


def test_delete_rule_remove_all(client: TestClient):
    created = client.post(
        "/api/recurring-expenses", json=_rule_payload(start_date="2000-01-01", occurrences=2)
    ).json()

    r = client.delete(f"/api/recurring-expenses/{created['id']}", params={"remove_all": "true"})
    assert r.status_code == 204
    assert _entries(client, created["id"]) == []

    assert client.delete(f"/api/recurring-expenses/{created['id']}").status_code == 404


def test_preview_does_not_persist(client: TestClient):
    r = client.post("/api/recurring-expenses/preview", json=_rule_payload(currency="eur"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total_count"] == 3
    assert body["truncated"] is False
    assert [item["date"] for item in body["items"]] == ["2099-01-31", "2099-03-03", "2099-04-03"]
    assert {item["currency"] for item in body["items"]} == {"EUR"}

    assert client.get("/api/recurring-expenses").json() == []
    assert client.get("/api/expenses").json() == []


def test_rule_at_last_representable_date_is_truncated(client: TestClient):
    payload = _rule_payload(start_date="9999-12-31", interval="daily", occurrences=2)

    r = client.post("/api/recurring-expenses/preview", json=payload)
    assert r.status_code == 200, r.text
    assert r.json()["truncated"] is True
    assert [item["date"] for item in r.json()["items"]] == ["9999-12-31"]

    r = client.post("/api/recurring-expenses", json=payload)
    assert r.status_code == 201, r.text
    assert [e["date"] for e in _entries(client, r.json()["id"])] == ["9999-12-31"]
