"""
POS register session tests.

Verifies:
- SE1-NNN numbering
- Only one In-Progress session at a time
- Cash movements and sales accumulate on an open session
- Closed sessions reject every further change
"""

import pytest

from erp.services import pos_service
from erp.services.pos_service import CLOSED, IN_PROGRESS, SessionStateError
from erp.validation import ConflictError, NotFoundError, ValidationError


def start(org_id, **overrides):
    kwargs = {"register": "Front Desk", "opened_by": "Anita", "opening_balance": 500}
    kwargs.update(overrides)
    return pos_service.start_session(organization_id=org_id, **kwargs)


class TestLifecycle:
    def test_start(self, db_session, org_id):
        session = start(org_id)
        assert session.session_number == "SE1-001"
        assert session.status == IN_PROGRESS
        assert session.opening_balance == 500
        assert session.cash_in == 0
        assert pos_service.get_active_session(organization_id=org_id).id == session.id

    def test_second_start_conflicts(self, db_session, org_id):
        start(org_id)
        with pytest.raises(ConflictError, match="active session already exists"):
            start(org_id, register="Counter 2")

    def test_numbers_continue_after_close(self, db_session, org_id):
        first = start(org_id)
        pos_service.close_session(first.id, organization_id=org_id, closing_balance=500)
        second = start(org_id)
        assert second.session_number == "SE1-002"

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"register": " "}, "Register name is required"),
            ({"opened_by": None}, "Opened by is required"),
        ],
    )
    def test_start_requires_register_and_cashier(self, db_session, org_id, overrides, message):
        with pytest.raises(ValidationError, match=message):
            start(org_id, **overrides)

    def test_cash_and_sales_accumulate(self, db_session, org_id):
        session = start(org_id)
        pos_service.record_cash_movement(session.id, "in", 200, organization_id=org_id)
        pos_service.record_cash_movement(session.id, "in", "50", organization_id=org_id)
        pos_service.record_cash_movement(session.id, "out", 75, organization_id=org_id)
        pos_service.update_session_sales(session.id, 320, organization_id=org_id)
        session = pos_service.update_session_sales(session.id, 80, organization_id=org_id)

        assert session.cash_in == 250
        assert session.cash_out == 75
        assert session.total_sales == 400

    @pytest.mark.parametrize(
        "movement,amount,message",
        [
            ("sideways", 10, "Valid type"),
            ("in", 0, "Valid amount is required"),
            ("out", -5, "Valid amount is required"),
        ],
    )
    def test_bad_cash_movement(self, db_session, org_id, movement, amount, message):
        session = start(org_id)
        with pytest.raises(ValidationError, match=message):
            pos_service.record_cash_movement(session.id, movement, amount, organization_id=org_id)

    def test_sales_amount_required(self, db_session, org_id):
        session = start(org_id)
        with pytest.raises(ValidationError, match="Sale amount is required"):
            pos_service.update_session_sales(session.id, None, organization_id=org_id)

    def test_close(self, db_session, org_id):
        session = start(org_id)
        closed = pos_service.close_session(
            session.id, organization_id=org_id, closing_balance=900, cash_in=100, cash_out=20,
        )
        assert closed.status == CLOSED
        assert closed.closed_at is not None
        assert closed.closing_balance == 900
        assert closed.cash_out == 20
        assert pos_service.get_active_session(organization_id=org_id) is None

    def test_closed_session_is_immutable(self, db_session, org_id):
        session = start(org_id)
        pos_service.close_session(session.id, organization_id=org_id, closing_balance=500)

        with pytest.raises(SessionStateError):
            pos_service.close_session(session.id, organization_id=org_id)
        with pytest.raises(SessionStateError):
            pos_service.record_cash_movement(session.id, "in", 10, organization_id=org_id)
        with pytest.raises(SessionStateError):
            pos_service.update_session_sales(session.id, 10, organization_id=org_id)

    def test_missing_session(self, db_session, org_id):
        with pytest.raises(NotFoundError, match="Session not found"):
            pos_service.get_session(99, organization_id=org_id)


class TestListing:
    def test_status_filter(self, db_session, org_id):
        first = start(org_id)
        pos_service.close_session(first.id, organization_id=org_id)
        start(org_id)

        closed = pos_service.list_sessions(organization_id=org_id, status=CLOSED)
        assert [s.session_number for s in closed] == ["SE1-001"]
        assert len(pos_service.list_sessions(organization_id=org_id)) == 2

    def test_date_filter_excludes_other_days(self, db_session, org_id):
        start(org_id)
        assert pos_service.list_sessions(organization_id=org_id, to_date="2000-01-01") == []


class TestRoutes:
    def test_full_shift(self, client, db_session, auth_headers):
        resp = client.post("/api/pos-sessions/start", json={
            "register": "Front Desk", "opened_by": "Anita", "opening_balance": 1000,
        }, headers=auth_headers)
        assert resp.status_code == 201
        session_id = resp.get_json()["data"]["id"]

        resp = client.post("/api/pos-sessions/start", json={
            "register": "Front Desk", "opened_by": "Anita",
        }, headers=auth_headers)
        assert resp.status_code == 409

        resp = client.post(f"/api/pos-sessions/{session_id}/cash-movement",
                           json={"type": "out", "amount": 150}, headers=auth_headers)
        assert resp.get_json()["data"]["cash_out"] == 150

        resp = client.post(f"/api/pos-sessions/{session_id}/sales", json={"amount": 640}, headers=auth_headers)
        assert resp.get_json()["data"]["total_sales"] == 640

        active = client.get("/api/pos-sessions/active").get_json()["data"]
        assert active["session_number"] == "SE1-001"

        resp = client.post(f"/api/pos-sessions/{session_id}/close",
                           json={"closing_balance": 1490}, headers=auth_headers)
        assert resp.get_json()["data"]["status"] == "Closed"

        resp = client.post(f"/api/pos-sessions/{session_id}/sales", json={"amount": 10}, headers=auth_headers)
        assert resp.status_code == 409
        assert client.get("/api/pos-sessions/active").get_json()["data"] is None

    def test_start_requires_auth(self, client, db_session):
        resp = client.post("/api/pos-sessions/start", json={"register": "Front Desk", "opened_by": "Anita"})
        assert resp.status_code == 401
