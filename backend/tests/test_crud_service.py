"""
Master-data CRUD tests (customers, vendors, items, brands, expenses).
"""

import pytest

from erp.services import crud_service
from erp.validation import ConflictError, NotFoundError, ValidationError

customers = crud_service.customers


class TestCrudService:
    def test_create_strips_unknown_and_system_keys(self, db_session, org_id):
        row = customers.create({
            "display_name": "Ravi Motors",
            "id": 999,
            "organization_id": "someone-else",
            "created_at": "2020-01-01T00:00:00Z",
            "outstanding": 1234,
        }, organization_id=org_id)

        assert row["id"] != 999
        assert row["organization_id"] == org_id
        assert row["currency"] == "INR"
        assert "outstanding" not in row

    def test_missing_required(self, db_session, org_id):
        with pytest.raises(ValidationError, match="Missing required fields: display_name"):
            customers.create({"email": "ravi@example.com"}, organization_id=org_id)

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"opening_balance": "lots"}, "opening_balance must be a number"),
            ({"display_name": None}, "display_name cannot be null"),
            ({"display_name": "   "}, "display_name cannot be blank"),
            ({"phone": "9" * 40}, "phone exceeds max length 32"),
        ],
    )
    def test_update_validates_columns(self, db_session, org_id, payload, message):
        row = customers.create({"display_name": "Ravi Motors"}, organization_id=org_id)
        with pytest.raises(ValidationError, match=message):
            customers.update(row["id"], payload, organization_id=org_id)

    def test_filters_and_search(self, db_session, org_id):
        customers.create({"display_name": "Ravi Motors", "email": "ravi@example.com"}, organization_id=org_id)
        customers.create({"display_name": "Kiran Cycles", "is_active": False}, organization_id=org_id)
        customers.create({"display_name": "Anand", "customer_type": "individual"}, organization_id=org_id)

        rows, total = customers.list(organization_id=org_id, filters={"is_active": "false"})
        assert [r["display_name"] for r in rows] == ["Kiran Cycles"]

        rows, _ = customers.list(organization_id=org_id, filters={"search": "EXAMPLE"})
        assert [r["display_name"] for r in rows] == ["Ravi Motors"]

        rows, total = customers.list(organization_id=org_id, limit=2)
        assert total == 3
        assert [r["display_name"] for r in rows] == ["Anand", "Kiran Cycles"]

    def test_organization_scoping(self, db_session, org_id):
        row = customers.create({"display_name": "Ravi Motors"}, organization_id=org_id)

        rows, total = customers.list(organization_id="other-org")
        assert total == 0
        with pytest.raises(NotFoundError, match="Customer not found"):
            customers.get(row["id"], organization_id="other-org")
        assert customers.delete(row["id"], organization_id="other-org") is False

    def test_delete_is_idempotent(self, db_session, org_id):
        row = crud_service.vendors.create({"display_name": "Acme Spares"}, organization_id=org_id)
        assert crud_service.vendors.delete(row["id"], organization_id=org_id) is True
        assert crud_service.vendors.delete(row["id"], organization_id=org_id) is False

    def test_brands_are_global(self, db_session):
        assert crud_service.brands.scoped is False
        crud_service.brands.create({"name": "Hero"})
        with pytest.raises(ConflictError, match="Brand already exists"):
            crud_service.brands.create({"name": "Hero"})
        rows, total = crud_service.brands.list()
        assert total == 1

    def test_expense_numbering(self, db_session, org_id):
        first = crud_service.expenses.create(
            {"expense_item": "Diesel", "expense_date": "2024-03-01", "total_amount": 120}, organization_id=org_id,
        )
        second = crud_service.expenses.create(
            {"expense_item": "Tea", "expense_date": "2024-03-02"}, organization_id=org_id,
        )
        assert first["expense_number"] == "EXP-0001"
        assert second["expense_number"] == "EXP-0002"
        assert second["approval_status"] == "pending"

    def test_expense_date_window(self, db_session, org_id):
        for day in ("2024-02-28", "2024-03-01", "2024-03-31"):
            crud_service.expenses.create({"expense_item": "Tea", "expense_date": day}, organization_id=org_id)
        rows, total = crud_service.expenses.list(
            organization_id=org_id, filters={"from_date": "2024-03-01", "to_date": "2024-03-31"},
        )
        assert total == 2


class TestItemStock:
    def test_adjust_stock(self, db_session, org_id, item):
        assert crud_service.adjust_item_stock(item.id, 12, organization_id=org_id)["current_stock"] == 12
        assert crud_service.adjust_item_stock(item.id, -5, organization_id=org_id)["current_stock"] == 7

    def test_adjust_missing_item(self, db_session, org_id):
        with pytest.raises(NotFoundError, match="Item not found"):
            crud_service.adjust_item_stock(404, 1, organization_id=org_id)

    def test_adjust_route(self, client, db_session, auth_headers, item):
        resp = client.post(f"/api/items/{item.id}/adjust-stock", json={"quantity": 3}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["current_stock"] == 3

    @pytest.mark.parametrize("quantity", ["3", True, None])
    def test_adjust_route_rejects_non_numbers(self, client, db_session, auth_headers, item, quantity):
        resp = client.post(f"/api/items/{item.id}/adjust-stock", json={"quantity": quantity}, headers=auth_headers)
        assert resp.status_code == 400


class TestCrudRoutes:
    def test_customer_round_trip(self, client, db_session, auth_headers):
        resp = client.post("/api/customers", json={"display_name": "Ravi Motors", "phone": "98765"},
                           headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["message"] == "Customer created successfully"
        customer = resp.get_json()["data"]

        resp = client.put(f"/api/customers/{customer['id']}", json={**customer, "notes": "Pays cash"},
                          headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["notes"] == "Pays cash"

        body = client.get("/api/customers?search=ravi").get_json()
        assert body["count"] == 1

    def test_expense_category_routes_do_not_clash(self, client, db_session, auth_headers):
        resp = client.post("/api/expenses/categories", json={"category_name": "Fuel"}, headers=auth_headers)
        assert resp.status_code == 201
        assert client.get("/api/expenses/categories").get_json()["count"] == 1
        assert client.get("/api/expenses").get_json()["count"] == 0

    def test_limit_is_clamped(self, client, db_session):
        assert client.get("/api/items?limit=0").status_code == 200
        assert client.get("/api/items?limit=100000").status_code == 200

    def test_create_requires_auth(self, client, db_session):
        assert client.post("/api/items", json={"name": "Chain"}).status_code == 401
