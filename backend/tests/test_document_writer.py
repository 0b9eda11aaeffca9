"""
Header + line document write tests.

Verifies:
- Header and lines are written together or not at all
- Stored totals are the client's, never recomputed
- Update patches only supplied keys; a supplied items list replaces all lines
- Delete is idempotent and removes owned lines
- Stock side effects after bill/invoice creation
"""

import pytest

from erp.models import Bill, BillItem, BillItemBinAllocation, DocumentSequence, PurchaseOrder
from erp.services.document_writer import (
    DocumentWriteError,
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)
from erp.services.purchase_service import BILLS, PAYMENTS_MADE, PURCHASE_ORDERS, VENDOR_CREDITS
from erp.services.sales_service import DELIVERY_CHALLANS, INVOICES, SALES_ORDERS
from erp.validation import ConflictError, NotFoundError, ValidationError


def bill_payload(**overrides):
    payload = {
        "vendor_name": "Acme Spares",
        "bill_date": "2024-03-01",
        "subtotal": 200,
        "tax_amount": 36,
        "total_amount": 236,
        "items": [
            {"item_name": "Chain", "quantity": 2, "unit_price": 50, "total": 100},
            {"item_name": "Sprocket", "quantity": 1, "unit_price": 100, "total": 100},
        ],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# CREATE
# =============================================================================


class TestCreate:
    def test_bill_defaults(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)

        assert bill["bill_number"] == "BILL-0001"
        assert bill["status"] == "draft"
        assert bill["payment_status"] == "unpaid"
        assert bill["amount_paid"] == 0
        assert bill["balance_due"] == 236
        assert [line["item_name"] for line in bill["items"]] == ["Chain", "Sprocket"]

    def test_totals_stored_as_given(self, db_session, org_id):
        # subtotal + tax does not match total on purpose
        bill = create_document(BILLS, bill_payload(total_amount=999), organization_id=org_id)
        assert bill["subtotal"] == 200
        assert bill["total_amount"] == 999
        assert bill["balance_due"] == 999

    def test_numeric_strings_are_coerced(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(total_amount="150.5", vendor_id="7"), organization_id=org_id)
        assert bill["total_amount"] == 150.5
        assert bill["vendor_id"] == 7

    def test_payment_made_allocations_use_their_own_key(self, db_session, org_id):
        payment = create_document(PAYMENTS_MADE, {
            "vendor_name": "Acme Spares",
            "payment_mode": "Bank Transfer",
            "payment_date": "2024-03-05",
            "amount": 500,
            "allocations": [{"bill_number": "BILL-0001", "amount_allocated": 500}],
        }, organization_id=org_id)

        assert payment["payment_number"] == "PAY-0001"
        assert payment["exchange_rate"] == 1.0
        assert payment["allocations"][0]["amount_allocated"] == 500

    def test_vendor_credit_balance_defaults_to_total(self, db_session, org_id):
        credit = create_document(VENDOR_CREDITS, {
            "vendor_name": "Acme Spares",
            "credit_date": "2024-03-05",
            "total_amount": 80,
        }, organization_id=org_id)
        assert credit["credit_note_number"] == "VC-0001"
        assert credit["balance"] == 80

    def test_sales_order_lines_default_name_and_unit(self, db_session, org_id):
        order = create_document(SALES_ORDERS, {
            "customer_name": "Ravi Motors",
            "order_date": "2024-03-01",
            "total_amount": 300,
            "amount_paid": 100,
            "items": [{"quantity": 3, "rate": 100, "amount": 300}],
        }, organization_id=org_id)

        assert order["sales_order_number"] == "SO-00001"
        assert order["balance_due"] == 200
        assert order["items"][0]["item_name"] == ""
        assert order["items"][0]["unit_of_measurement"] == "pcs"

    def test_delivery_challan_type_default(self, db_session, org_id):
        challan = create_document(DELIVERY_CHALLANS, {
            "customer_name": "Ravi Motors",
            "challan_date": "2024-03-01",
            "items": [{"item_name": "Chain", "quantity": 1}],
        }, organization_id=org_id)
        assert challan["challan_number"] == "DC-00001"
        assert challan["challan_type"] == "Supply on Approval"


    def test_bill_round_trip_through_routes(self, client, db_session, auth_headers):
        resp = client.post("/api/bills", json={
            "vendor_name": "Acme Spares",
            "bill_date": "2024-03-01",
            "subtotal": 400,
            "tax_amount": 0,
            "discount_amount": 0,
            "total_amount": 400,
            "items": [
                {"item_name": "Chain", "quantity": 3, "unit_price": 100, "total": 300},
                {"item_name": "Sprocket", "quantity": 2, "unit_price": 50, "total": 100},
            ],
        }, headers=auth_headers)
        assert resp.status_code == 201
        bill_id = resp.get_json()["data"]["id"]

        bill = client.get(f"/api/bills/{bill_id}").get_json()["data"]
        assert bill["id"] == bill_id
        assert bill["total_amount"] == 400
        assert bill["tax_amount"] == 0
        assert bill["discount_amount"] == 0
        assert [(line["item_name"], line["quantity"], line["unit_price"]) for line in bill["items"]] == [
            ("Chain", 3, 100), ("Sprocket", 2, 50),
        ]
        assert {line["bill_id"] for line in bill["items"]} == {bill_id}


class TestValidation:
    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"vendor_name": ""}, "Vendor name is required"),
            ({"vendor_name": None}, "Vendor name is required"),
            ({"bill_date": None}, "Bill date is required"),
            ({"bill_date": "03/01/2024"}, "bill_date must be an ISO-8601 date"),
            ({"items": "Chain"}, "items must be a list"),
            ({"items": ["Chain"]}, "Each entry in items must be an object"),
        ],
    )
    def test_bill_rejected(self, db_session, org_id, overrides, message):
        with pytest.raises(ValidationError, match=message):
            create_document(BILLS, bill_payload(**overrides), organization_id=org_id)
        assert db_session.query(Bill).count() == 0

    def test_purchase_order_needs_items(self, db_session, org_id):
        with pytest.raises(ValidationError, match="At least one item is required"):
            create_document(PURCHASE_ORDERS, {
                "vendor_name": "Acme Spares",
                "order_date": "2024-03-01",
                "items": [],
            }, organization_id=org_id)
        assert db_session.query(PurchaseOrder).count() == 0

    def test_invoice_needs_items(self, db_session, org_id):
        with pytest.raises(ValidationError, match="At least one invoice item is required"):
            create_document(INVOICES, {"customer_name": "Ravi Motors", "invoice_date": "2024-03-01"},
                            organization_id=org_id)

    def test_non_object_payload(self, db_session, org_id):
        with pytest.raises(ValidationError, match="Invalid JSON payload"):
            create_document(BILLS, ["not", "a", "dict"], organization_id=org_id)


class TestAtomicCreate:
    def test_failed_line_leaves_no_header(self, db_session, org_id):
        payload = bill_payload(items=[
            {"item_name": "Chain", "quantity": 1},
            {"item_name": None, "quantity": 1},
        ])

        with pytest.raises(DocumentWriteError, match="Failed to create bill items"):
            create_document(BILLS, payload, organization_id=org_id)

        assert db_session.query(Bill).count() == 0
        assert db_session.query(BillItem).count() == 0
        assert db_session.query(DocumentSequence).count() == 0

    def test_number_not_burned_by_failed_create(self, db_session, org_id):
        with pytest.raises(DocumentWriteError):
            create_document(BILLS, bill_payload(items=[{"item_name": None}]), organization_id=org_id)

        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        assert bill["bill_number"] == "BILL-0001"

    def test_failed_line_returns_500_envelope(self, client, db_session, auth_headers):
        resp = client.post(
            "/api/bills",
            json=bill_payload(items=[{"item_name": None, "quantity": 1}]),
            headers=auth_headers,
        )
        assert resp.status_code == 500
        body = resp.get_json()
        assert body["success"] is False
        assert "Failed to create bill items" in body["error"]
        assert db_session.query(Bill).count() == 0


# =============================================================================
# UPDATE / DELETE / GET
# =============================================================================


class TestUpdate:
    def test_header_patch_keeps_lines(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)

        updated = update_document(BILLS, bill["id"], {"status": "open", "notes": "Net 30"}, organization_id=org_id)

        assert updated["status"] == "open"
        assert updated["notes"] == "Net 30"
        assert updated["vendor_name"] == "Acme Spares"
        assert len(updated["items"]) == 2

    def test_items_replaced_wholesale(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        old_ids = {line["id"] for line in bill["items"]}

        updated = update_document(BILLS, bill["id"], {
            "items": [{"item_name": "Brake Pad", "quantity": 4, "unit_price": 25, "total": 100}],
        }, organization_id=org_id)

        assert [line["item_name"] for line in updated["items"]] == ["Brake Pad"]
        assert not old_ids & {line["id"] for line in updated["items"]}
        assert db_session.query(BillItem).count() == 1

    def test_empty_items_clears_lines(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        updated = update_document(BILLS, bill["id"], {"items": []}, organization_id=org_id)
        assert updated["items"] == []

    def test_new_total_resets_balance(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        updated = update_document(BILLS, bill["id"], {"total_amount": 300}, organization_id=org_id)
        assert updated["balance_due"] == 300

    def test_blank_required_field_rejected(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        with pytest.raises(ValidationError, match="Vendor name is required"):
            update_document(BILLS, bill["id"], {"vendor_name": "  "}, organization_id=org_id)

    def test_number_can_be_changed(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        updated = update_document(BILLS, bill["id"], {"bill_number": "BILL-0100"}, organization_id=org_id)
        assert updated["bill_number"] == "BILL-0100"

    def test_number_taken_by_another_bill_conflicts(self, client, db_session, org_id, auth_headers):
        first = create_document(BILLS, bill_payload(), organization_id=org_id)
        second = create_document(BILLS, bill_payload(), organization_id=org_id)

        with pytest.raises(ConflictError, match="Bill number BILL-0001 already exists"):
            update_document(BILLS, second["id"], {"bill_number": first["bill_number"]}, organization_id=org_id)
        resp = client.put(f"/api/bills/{second['id']}", json={"bill_number": "BILL-0001"}, headers=auth_headers)
        assert resp.status_code == 409
        assert get_document(BILLS, second["id"], organization_id=org_id)["bill_number"] == "BILL-0002"

    def test_resending_own_number_is_not_a_conflict(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        updated = update_document(BILLS, bill["id"], {"bill_number": bill["bill_number"], "notes": "Checked"}, organization_id=org_id)
        assert updated["bill_number"] == bill["bill_number"]

    def test_missing_document(self, db_session, org_id):
        with pytest.raises(NotFoundError, match="Bill not found"):
            update_document(BILLS, 9999, {"status": "open"}, organization_id=org_id)

    def test_other_organization_cannot_update(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        with pytest.raises(NotFoundError):
            update_document(BILLS, bill["id"], {"status": "void"}, organization_id="other-org")


class TestDelete:
    def test_delete_is_idempotent(self, db_session, org_id):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)

        assert delete_document(BILLS, bill["id"], organization_id=org_id) is True
        assert delete_document(BILLS, bill["id"], organization_id=org_id) is False
        assert db_session.query(BillItem).count() == 0

    def test_delete_removes_bin_allocations(self, db_session, org_id, warehouse_bins):
        bill = create_document(BILLS, bill_payload(items=[{
            "item_name": "Chain",
            "quantity": 5,
            "bin_allocations": [{"bin_location_id": warehouse_bins[0].id, "quantity": 5}],
        }]), organization_id=org_id)
        assert db_session.query(BillItemBinAllocation).count() == 1

        delete_document(BILLS, bill["id"], organization_id=org_id)
        assert db_session.query(BillItemBinAllocation).count() == 0

    def test_get_missing(self, db_session, org_id):
        with pytest.raises(NotFoundError):
            get_document(BILLS, 12345, organization_id=org_id)


class TestList:
    def test_filters_search_and_dates(self, db_session, org_id):
        create_document(BILLS, bill_payload(vendor_name="Acme Spares", bill_date="2024-01-10"), organization_id=org_id)
        create_document(BILLS, bill_payload(vendor_name="Bolt House", bill_date="2024-02-10", status="open"),
                        organization_id=org_id)
        create_document(BILLS, bill_payload(vendor_name="Acme Tools", bill_date="2024-03-10"), organization_id=org_id)

        rows, total = list_documents(BILLS, organization_id=org_id, filters={"search": "acme"})
        assert total == 2

        rows, total = list_documents(BILLS, organization_id=org_id, filters={"status": "open"})
        assert [r.vendor_name for r in rows] == ["Bolt House"]

        rows, total = list_documents(
            BILLS, organization_id=org_id, filters={"from_date": "2024-02-01", "to_date": "2024-03-31"},
        )
        assert total == 2

    def test_newest_first_with_paging(self, db_session, org_id):
        for _ in range(3):
            create_document(BILLS, bill_payload(), organization_id=org_id)

        rows, total = list_documents(BILLS, organization_id=org_id, limit=2, offset=0)
        assert total == 3
        assert [r.bill_number for r in rows] == ["BILL-0003", "BILL-0002"]

    def test_list_route_count(self, client, db_session, org_id):
        create_document(BILLS, bill_payload(), organization_id=org_id)
        resp = client.get("/api/bills?limit=10")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["count"] == 1
        assert body["data"][0]["bill_number"] == "BILL-0001"


# =============================================================================
# STOCK SIDE EFFECTS
# =============================================================================


class TestStockSideEffects:
    def test_bill_receives_and_invoice_issues(self, db_session, org_id, item):
        create_document(BILLS, bill_payload(items=[
            {"item_id": item.id, "item_name": item.name, "quantity": 10},
        ]), organization_id=org_id)
        db_session.refresh(item)
        assert item.current_stock == 10

        create_document(INVOICES, {
            "customer_name": "Ravi Motors",
            "invoice_date": "2024-03-02",
            "items": [{"item_id": item.id, "item_name": item.name, "quantity": 4}],
        }, organization_id=org_id)
        db_session.refresh(item)
        assert item.current_stock == 6

    def test_free_text_lines_do_not_touch_stock(self, db_session, org_id, item):
        create_document(BILLS, bill_payload(), organization_id=org_id)
        db_session.refresh(item)
        assert item.current_stock == 0


class TestRoutesRequireAuth:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/bills"),
            ("PUT", "/api/bills/1"),
            ("DELETE", "/api/bills/1"),
            ("POST", "/api/invoices"),
            ("POST", "/api/transfer-orders"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path, json={})
        assert resp.status_code == 401

    def test_delete_route_reports_outcome(self, client, db_session, org_id, auth_headers):
        bill = create_document(BILLS, bill_payload(), organization_id=org_id)
        first = client.delete(f"/api/bills/{bill['id']}", headers=auth_headers)
        second = client.delete(f"/api/bills/{bill['id']}", headers=auth_headers)
        assert first.get_json()["data"] == {"deleted": True}
        assert second.status_code == 200
        assert second.get_json()["data"] == {"deleted": False}
