"""
Document numbering tests.

Verifies:
- Seed numbers per prefix/pad (BILL-0001, DC-00001, SE1-001)
- Preview never reserves a number
- Allocation is monotonic and skips past hand-typed numbers
- Duplicate numbers are rejected with a 409
"""

import pytest
from sqlalchemy.exc import OperationalError

from erp.models import Bill, DocumentSequence, PosSession
from erp.services.concurrency import run_with_retry
from erp.services.document_service import allocate_number, format_number
from erp.services.document_writer import create_document, next_number
from erp.services.pos_service import generate_session_number
from erp.services.purchase_service import BILLS
from erp.services.sales_service import DELIVERY_CHALLANS
from erp.time_utils import utcnow
from erp.validation import ConflictError


def _bill(**overrides):
    payload = {
        "vendor_name": "Acme Spares",
        "bill_date": "2024-03-01",
        "total_amount": 100,
        "items": [{"item_name": "Chain", "quantity": 1, "unit_price": 100, "total": 100}],
    }
    payload.update(overrides)
    return payload


class TestFormatting:
    def test_format_number_pads(self):
        assert format_number("BILL-", 7, 4) == "BILL-0007"
        assert format_number("DC-", 12, 5) == "DC-00012"

    def test_format_number_grows_past_pad(self):
        assert format_number("SE1-", 1234, 3) == "SE1-1234"


class TestPreview:
    def test_seed_when_table_empty(self, db_session, org_id):
        assert next_number(BILLS, organization_id=org_id) == "BILL-0001"
        assert next_number(DELIVERY_CHALLANS, organization_id=org_id) == "DC-00001"

    def test_preview_does_not_reserve(self, db_session, org_id):
        assert next_number(BILLS, organization_id=org_id) == "BILL-0001"
        assert next_number(BILLS, organization_id=org_id) == "BILL-0001"
        assert db_session.query(DocumentSequence).count() == 0

    def test_preview_follows_latest_number(self, db_session, org_id):
        create_document(BILLS, _bill(bill_number="BILL-0041"), organization_id=org_id)
        assert next_number(BILLS, organization_id=org_id) == "BILL-0042"

    def test_unparseable_latest_falls_back_to_seed(self, db_session, org_id):
        create_document(BILLS, _bill(bill_number="MANUAL"), organization_id=org_id)
        assert next_number(BILLS, organization_id=org_id) == "BILL-0001"

    def test_other_organization_is_ignored(self, db_session, org_id):
        create_document(BILLS, _bill(bill_number="BILL-0009"), organization_id="other-org")
        assert next_number(BILLS, organization_id=org_id) == "BILL-0001"

    def test_pos_preview_uses_highest_recent_suffix(self, db_session, org_id):
        for number in ("SE1-004", "SE1-010", "SE1-007"):
            db_session.add(PosSession(
                organization_id=org_id, session_number=number, register="R1",
                opened_by="Cashier", opened_at=utcnow(), status="Closed",
            ))
        db_session.commit()
        assert generate_session_number(organization_id=org_id) == "SE1-011"


class TestAllocation:
    def test_allocations_are_monotonic(self, db_session, org_id):
        numbers = [
            allocate_number("bills", Bill, "bill_number", "BILL-", 4, organization_id=org_id)
            for _ in range(3)
        ]
        db_session.commit()
        assert numbers == ["BILL-0001", "BILL-0002", "BILL-0003"]

        seq = db_session.query(DocumentSequence).filter_by(organization_id=org_id, document_type="bills").one()
        assert seq.next_number == 4

    def test_created_documents_get_sequential_numbers(self, db_session, org_id):
        first = create_document(BILLS, _bill(), organization_id=org_id)
        second = create_document(BILLS, _bill(), organization_id=org_id)
        assert first["bill_number"] == "BILL-0001"
        assert second["bill_number"] == "BILL-0002"

    def test_hand_typed_number_moves_sequence_forward(self, db_session, org_id):
        create_document(BILLS, _bill(), organization_id=org_id)
        create_document(BILLS, _bill(bill_number="BILL-0050"), organization_id=org_id)
        third = create_document(BILLS, _bill(), organization_id=org_id)
        assert third["bill_number"] == "BILL-0051"

    def test_duplicate_number_is_conflict(self, db_session, org_id):
        create_document(BILLS, _bill(bill_number="BILL-0003"), organization_id=org_id)
        with pytest.raises(ConflictError, match="BILL-0003 already exists"):
            create_document(BILLS, _bill(bill_number="BILL-0003"), organization_id=org_id)
        assert db_session.query(Bill).count() == 1

    def test_same_number_allowed_in_another_organization(self, db_session, org_id):
        create_document(BILLS, _bill(bill_number="BILL-0003"), organization_id=org_id)
        other = create_document(BILLS, _bill(bill_number="BILL-0003"), organization_id="other-org")
        assert other["organization_id"] == "other-org"


class TestRetry:
    def test_retries_lock_contention(self, db_session):
        calls = []

        def contended():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE document_sequences", {}, Exception("database is locked"))
            return "BILL-0001"

        assert run_with_retry(contended, backoff_base=0) == "BILL-0001"
        assert len(calls) == 3

    def test_gives_up_after_last_attempt(self, db_session):
        calls = []

        def always_locked():
            calls.append(1)
            raise OperationalError("UPDATE document_sequences", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(always_locked, attempts=2, backoff_base=0)
        assert len(calls) == 2


class TestNumberEndpoints:
    @pytest.mark.parametrize(
        "path,field,expected",
        [
            ("/api/bills/generate-bill-number", "bill_number", "BILL-0001"),
            ("/api/purchase-orders/generate-po-number", "purchase_order_number", "PO-00001"),
            ("/api/payments/generate-payment-number", "payment_number", "PAY-0001"),
            ("/api/transfer-orders/generate-transfer-order-number", "transfer_order_number", "TO-0001"),
            ("/api/invoices/generate-number", "invoice_number", "INV-0001"),
            ("/api/pos-sessions/generate-number", "session_number", "SE1-001"),
        ],
    )
    def test_seed_numbers(self, client, db_session, path, field, expected):
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.get_json()["data"][field] == expected

    def test_duplicate_number_returns_409(self, client, db_session, auth_headers):
        payload = _bill(bill_number="BILL-0100")
        assert client.post("/api/bills", json=payload, headers=auth_headers).status_code == 201

        resp = client.post("/api/bills", json=payload, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.get_json()["success"] is False
