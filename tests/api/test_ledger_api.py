"""
Tests for the local ledger endpoints.
"""

from decimal import Decimal


def create_category(client, name="Food"):
    response = client.post("/ledger/categories", json={"name": name})
    assert response.status_code == 201
    return response.json()


class TestCategories:

    def test_create_and_list(self, client):
        created = create_category(client)

        listed = client.get("/ledger/categories").json()
        assert listed == [{"id": created["id"], "name": "Food"}]

    def test_empty_name_rejected(self, client):
        response = client.post("/ledger/categories", json={"name": ""})
        assert response.status_code == 422


class TestExpenses:

    def test_create_uses_camel_case_on_the_wire(self, client):
        category = create_category(client)
        response = client.post("/ledger/expenses", json={
            "amount": "12.50",
            "date": "2024-03-01",
            "time": "12:30",
            "merchant": "Cafe",
            "category_id": category["id"],
            "last_card_digits": "4242",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["categoryId"] == category["id"]
        assert data["lastCardDigits"] == "4242"
        assert Decimal(data["amount"]) == Decimal("12.50")

    def test_list_newest_first(self, client):
        for date in ("2024-01-01", "2024-03-01", "2024-02-01"):
            client.post("/ledger/expenses", json={
                "amount": "1", "date": date, "time": "10:00", "merchant": date,
            })

        merchants = [e["merchant"] for e in client.get("/ledger/expenses").json()]
        assert merchants == ["2024-03-01", "2024-02-01", "2024-01-01"]

    def test_bad_date_rejected(self, client):
        response = client.post("/ledger/expenses", json={
            "amount": "1", "date": "01/03/2024", "time": "10:00", "merchant": "Shop",
        })
        assert response.status_code == 422


class TestBudgets:

    def test_put_replaces_budget_for_month(self, client):
        body = {"category_id": 1, "amount": "100", "month": 4, "year": 2024}
        first = client.put("/ledger/budgets", json=body).json()
        second = client.put("/ledger/budgets", json={**body, "amount": "250"}).json()

        assert first["id"] == second["id"]
        budgets = client.get("/ledger/budgets").json()
        assert len(budgets) == 1
        assert Decimal(budgets[0]["amount"]) == Decimal("250")

    def test_month_out_of_range_rejected(self, client):
        response = client.put("/ledger/budgets", json={
            "category_id": 1, "amount": "100", "month": 13, "year": 2024,
        })
        assert response.status_code == 422
