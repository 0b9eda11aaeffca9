# Overview: Flask API routes for POS register sessions.

"""
POS session routes

- GET  ""                     list (status, from_date, to_date)
- GET  /active                the In-Progress session or null
- GET  /generate-number       next SE1-NNN preview
- POST /start                 {register, opened_by, opening_balance}
- GET  /<id>
- POST /<id>/close            {closing_balance, cash_in, cash_out}
- POST /<id>/cash-movement    {type: in|out, amount}
- POST /<id>/sales            {amount}
"""

from flask import Blueprint, request

from ..decorators import handle_service_errors, require_auth, success
from ..services import pos_service
from .common import json_body, organization_id

pos_sessions_bp = Blueprint("pos_sessions", __name__, url_prefix="/api/pos-sessions")


@pos_sessions_bp.get("")
@handle_service_errors
def list_sessions_route():
    sessions = pos_service.list_sessions(
        organization_id=organization_id(),
        status=request.args.get("status"),
        from_date=request.args.get("from_date"),
        to_date=request.args.get("to_date"),
    )
    return success([s.to_dict() for s in sessions], count=len(sessions))


@pos_sessions_bp.get("/active")
@handle_service_errors
def active_session_route():
    session = pos_service.get_active_session(organization_id=organization_id())
    return success(session.to_dict() if session else None)


@pos_sessions_bp.get("/generate-number")
@handle_service_errors
def generate_number_route():
    return success({"session_number": pos_service.generate_session_number(organization_id=organization_id())})


@pos_sessions_bp.post("/start")
@require_auth
@handle_service_errors
def start_session_route():
    data = json_body()
    session = pos_service.start_session(
        organization_id=organization_id(),
        register=data.get("register"),
        opened_by=data.get("opened_by"),
        opening_balance=data.get("opening_balance", 0),
    )
    return success(session.to_dict(), message="Session started successfully", status=201)


@pos_sessions_bp.get("/<int:session_id>")
@handle_service_errors
def get_session_route(session_id: int):
    return success(pos_service.get_session(session_id, organization_id=organization_id()).to_dict())


@pos_sessions_bp.post("/<int:session_id>/close")
@require_auth
@handle_service_errors
def close_session_route(session_id: int):
    data = json_body()
    session = pos_service.close_session(
        session_id,
        organization_id=organization_id(),
        closing_balance=data.get("closing_balance"),
        cash_in=data.get("cash_in"),
        cash_out=data.get("cash_out"),
    )
    return success(session.to_dict(), message="Session closed successfully")


@pos_sessions_bp.post("/<int:session_id>/cash-movement")
@require_auth
@handle_service_errors
def cash_movement_route(session_id: int):
    data = json_body()
    session = pos_service.record_cash_movement(
        session_id, data.get("type"), data.get("amount"), organization_id=organization_id()
    )
    return success(session.to_dict(), message="Cash movement recorded successfully")


@pos_sessions_bp.post("/<int:session_id>/sales")
@require_auth
@handle_service_errors
def session_sales_route(session_id: int):
    data = json_body()
    session = pos_service.update_session_sales(session_id, data.get("amount"), organization_id=organization_id())
    return success(session.to_dict(), message="Session sales updated successfully")
