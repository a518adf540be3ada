"""HTTP API tests against an in-memory flow."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from currency_clarity.api import create_app
from currency_clarity.orchestrator import ExpenseFlow
from currency_clarity.services.storage import InMemoryExpenseStore, StoreUnavailableError


class UnreachableStore(InMemoryExpenseStore):
    async def list_expenses(self):
        raise StoreUnavailableError("Could not reach Google Sheets during read expenses")


@pytest.fixture
def client(flow):
    with TestClient(create_app(flow=flow)) as test_client:
        yield test_client


def post_expense(client, **overrides):
    body = {"amount": "10000", "label": "Groceries", "expense_date": "2024-06-01"}
    body.update(overrides)
    return client.post("/api/expenses", json=body)


class TestExpenseEndpoints:
    """CRUD over /api/expenses."""

    def test_heartbeat(self, client):
        response = client.get("/api/heartbeat")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_create_in_ariary(self, client):
        response = post_expense(client, amount="2500", currency="Ariary", label="Coffee")

        assert response.status_code == 201
        body = response.json()
        assert body["expense"]["amount"] == 12500
        assert body["expense"]["currency"] == "Ariary"
        assert body["warnings"] == []

    def test_browser_timestamp_date(self, client):
        response = post_expense(client, expense_date="2024-06-01T09:15:00.000Z")
        assert response.status_code == 201
        assert response.json()["expense"]["expense_date"] == "2024-06-01"

    def test_blank_label_rejected(self, client):
        assert post_expense(client, label="   ").status_code == 422

    def test_fractional_fmg_rejected(self, client):
        response = post_expense(client, amount="0.1", currency="Ariary")
        assert response.status_code == 422
        assert "whole number of FMG" in response.json()["detail"]

    def test_list(self, client):
        post_expense(client, expense_date="2024-05-31")
        post_expense(client, expense_date="2024-06-01")
        days = [e["expense_date"] for e in client.get("/api/expenses").json()]
        assert days == ["2024-06-01", "2024-05-31"]

    def test_patch_amount(self, client):
        created = post_expense(client, amount="2500", currency="Ariary").json()["expense"]
        response = client.patch(f"/api/expenses/{created['id']}", json={"amount": "3000"})
        assert response.status_code == 200
        assert response.json()["amount"] == 15000

    def test_patch_unknown_expense(self, client):
        response = client.patch(f"/api/expenses/{uuid4()}", json={"label": "Market"})
        assert response.status_code == 404

    def test_patch_without_fields(self, client):
        created = post_expense(client).json()["expense"]
        assert client.patch(f"/api/expenses/{created['id']}", json={}).status_code == 422

    def test_clear_balance(self, client):
        created = post_expense(client, balance_status="i_owe", balance_amount="400").json()["expense"]
        assert created["balance_amount"] == 400

        response = client.post(f"/api/expenses/{created['id']}/clear-balance")
        assert response.status_code == 200
        assert response.json()["balance_status"] == "paid"
        assert response.json()["balance_amount"] == 0

    def test_delete_twice(self, client):
        created = post_expense(client).json()["expense"]
        assert client.delete(f"/api/expenses/{created['id']}").json() == {"deleted": True}
        assert client.delete(f"/api/expenses/{created['id']}").json() == {"deleted": False}


class TestLabelEndpoints:
    """Bulk label operations."""

    def test_rename(self, client):
        post_expense(client, label="Cofee")
        post_expense(client, label="Coffee")

        response = client.put("/api/labels/Cofee", json={"new_label": "Coffee"})

        assert response.status_code == 200
        assert response.json()["affected_count"] == 1
        assert response.json()["is_noop"] is False
        assert client.get("/api/labels").json() == ["Coffee"]

    def test_rename_unknown_label(self, client):
        response = client.put("/api/labels/Ghost", json={"new_label": "Other"})
        assert response.status_code == 200
        assert response.json()["is_noop"] is True

    def test_delete(self, client):
        post_expense(client, label="Coffee")
        post_expense(client, label="Tea")

        response = client.delete("/api/labels/Coffee")

        assert response.json()["affected_count"] == 1
        assert client.get("/api/labels").json() == ["Tea"]


class TestViewEndpoint:
    """POST /api/view round-trips the view state."""

    def test_grouped_view(self, client):
        post_expense(client, amount="10000", label="Groceries")
        post_expense(client, amount="2500", label="Coffee")
        post_expense(client, amount="15000", label="Transport", expense_date="2024-05-31")

        body = client.post("/api/view", json={}).json()

        assert [day["day"] for day in body["days"]] == ["2024-06-01", "2024-05-31"]
        assert body["days"][0]["total"] == 12500
        assert [a["label"] for a in body["days"][0]["labels"]] == ["Groceries", "Coffee"]
        assert body["empty_reason"] is None

        again = client.post("/api/view", json=body["state"])
        assert again.status_code == 200

    def test_search_without_match(self, client):
        post_expense(client)
        body = client.post("/api/view", json={"search_query": "rent"}).json()
        assert body["days"] == []
        assert body["empty_reason"] == "searched"

    def test_configured_page_size_applies(self, store, app_settings):
        settings = app_settings.model_copy(update={"default_items_per_page": 20})
        flow = ExpenseFlow(store=store, settings=settings)
        with TestClient(create_app(flow=flow)) as client:
            for i in range(15):
                post_expense(client, label=f"Label {i:02d}")
            body = client.post("/api/view", json={}).json()

        day = body["days"][0]
        assert day["page"]["items_per_page"] == 20
        assert len(day["labels"]) == 15
        assert body["state"]["default_items_per_page"] == 20

    def test_explicit_page_size_wins(self, client):
        for i in range(15):
            post_expense(client, label=f"Label {i:02d}")
        body = client.post("/api/view", json={"default_items_per_page": 5}).json()
        assert len(body["days"][0]["labels"]) == 5

    def test_invalid_sort_option(self, client):
        assert client.post("/api/view", json={"sort_option": "random"}).status_code == 422


class TestErrorMapping:
    """Store outages are reported as retryable."""

    def test_store_unavailable(self, app_settings):
        flow = ExpenseFlow(store=UnreachableStore(), settings=app_settings)
        with TestClient(create_app(flow=flow)) as client:
            response = client.get("/api/expenses")

        assert response.status_code == 503
        assert response.json()["retryable"] is True
