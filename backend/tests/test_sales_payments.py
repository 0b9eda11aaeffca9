"""
Sales document and payment-received tests.
"""

import pytest

from erp.models import Invoice, PaymentReceived
from erp.services.document_writer import create_document
from erp.services.sales_service import INVOICES, PAYMENTS_RECEIVED, SALES_ORDERS
from erp.validation import ValidationError


@pytest.fixture
def invoice(db_session, org_id):
    return create_document(INVOICES, {
        "customer_name": "Ravi Motors",
        "invoice_date": "2024-03-01",
        "total_amount": 1000,
        "items": [{"item_name": "Service Kit", "quantity": 2, "rate": 500, "amount": 1000}],
    }, organization_id=org_id)


def pay(org_id, invoice_id, amount, **extra):
    payload = {
        "customer_name": "Ravi Motors",
        "payment_date": "2024-03-04",
        "amount_received": amount,
        "invoice_id": invoice_id,
    }
    payload.update(extra)
    return create_document(PAYMENTS_RECEIVED, payload, organization_id=org_id)


class TestInvoice:
    def test_balance_is_total_minus_paid(self, db_session, org_id):
        inv = create_document(INVOICES, {
            "customer_name": "Ravi Motors",
            "invoice_date": "2024-03-01",
            "total_amount": 500,
            "amount_paid": 200,
            "items": [{"item_name": "Oil", "quantity": 1}],
        }, organization_id=org_id)
        assert inv["invoice_number"] == "INV-0001"
        assert inv["balance_due"] == 300
        assert inv["status"] == "draft"


class TestPaymentReceived:
    def test_partial_then_paid(self, db_session, org_id, invoice):
        first = pay(org_id, invoice["id"], 400)
        assert first["payment_number"] == "PAY-00001"
        assert first["payment_mode"] == "Cash"

        row = db_session.get(Invoice, invoice["id"])
        db_session.refresh(row)
        assert row.amount_paid == 400
        assert row.balance_due == 600
        assert row.status == "partial"

        pay(org_id, invoice["id"], 600)
        db_session.refresh(row)
        assert row.balance_due == 0
        assert row.status == "paid"

    def test_amount_used_takes_precedence(self, db_session, org_id, invoice):
        pay(org_id, invoice["id"], 1200, amount_used=1000, amount_excess=200)
        row = db_session.get(Invoice, invoice["id"])
        db_session.refresh(row)
        assert row.amount_paid == 1000
        assert row.status == "paid"

    def test_overpayment_floors_balance_at_zero(self, db_session, org_id, invoice):
        pay(org_id, invoice["id"], 1500)
        row = db_session.get(Invoice, invoice["id"])
        db_session.refresh(row)
        assert row.balance_due == 0

    def test_missing_invoice_still_records_payment(self, db_session, org_id):
        payment = pay(org_id, 4242, 100)
        assert payment["invoice_id"] == 4242
        assert db_session.query(PaymentReceived).count() == 1

    def test_unlinked_payment(self, db_session, org_id, invoice):
        pay(org_id, None, 100)
        row = db_session.get(Invoice, invoice["id"])
        db_session.refresh(row)
        assert row.amount_paid == 0

    @pytest.mark.parametrize("amount", [0, -10, None, "abc"])
    def test_amount_must_be_positive(self, db_session, org_id, amount):
        with pytest.raises(ValidationError, match="Amount received must be greater than zero"):
            pay(org_id, None, amount)

    def test_route(self, client, db_session, auth_headers, invoice):
        resp = client.post("/api/payments-received", json={
            "customer_name": "Ravi Motors",
            "payment_date": "2024-03-04",
            "amount_received": 250,
            "invoice_id": invoice["id"],
        }, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["message"] == "Payment created successfully"

        data = client.get(f"/api/invoices/{invoice['id']}").get_json()["data"]
        assert data["balance_due"] == 750
        assert len(data["items"]) == 1


class TestSalesDashboards:
    def test_summary_and_breakdowns(self, client, db_session, org_id):
        for customer, total, status in (
            ("Ravi Motors", 300, "confirmed"),
            ("Ravi Motors", 200, "draft"),
            ("Kiran Cycles", 450, "confirmed"),
        ):
            create_document(SALES_ORDERS, {
                "customer_name": customer,
                "order_date": "2024-03-01",
                "total_amount": total,
                "status": status,
                "items": [{"item_name": "Chain", "quantity": 1, "amount": total}],
            }, organization_id=org_id)

        summary = client.get("/api/sales/summary").get_json()["data"]
        assert summary["totalOrders"] == 3
        assert summary["totalSales"] == 950
        assert summary["confirmedOrders"] == 2

        by_status = client.get("/api/sales/by-status").get_json()["data"]
        assert {r["status"]: r["count"] for r in by_status} == {"confirmed": 2, "draft": 1}

        top = client.get("/api/sales/top-customers?limit=1").get_json()["data"]
        assert len(top) == 1
        assert top[0]["name"] == "Ravi Motors"
        assert top[0]["total"] == 500
