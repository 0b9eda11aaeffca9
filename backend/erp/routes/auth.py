# Overview: Flask API routes for auth; staff and technician login, registration, token checks.

"""
Authentication API routes

- POST /register            staff (email + password) or technician (phone + PIN)
- POST /login               email + password -> {token, user}
- POST /technician-login    phone + 4-digit PIN -> {token, user}
- GET  /verify              bearer token -> user
- POST /logout              revoke the bearer token
- POST /change-password     requires a bearer token; revokes every other session
"""

from flask import Blueprint, g, request

from ..decorators import bearer_token, failure, handle_service_errors, require_auth, success
from ..services import auth_service, session_service
from .common import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _issue_token(user):
    _, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return success({"token": token, "user": user.to_dict()})


@auth_bp.post("/register")
@handle_service_errors
def register_route():
    data = json_body()
    user = auth_service.register_user(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        phone=data.get("phone"),
        pin=data.get("pin"),
        role=data.get("role"),
        department=data.get("department"),
    )
    return success(user.to_dict(), message="User registered successfully", status=201)


@auth_bp.post("/login")
@handle_service_errors
def login_route():
    data = json_body()
    user = auth_service.authenticate(data.get("email"), data.get("password"))
    return _issue_token(user)


@auth_bp.post("/technician-login")
@handle_service_errors
def technician_login_route():
    data = json_body()
    user = auth_service.authenticate_technician(data.get("phone"), data.get("pin"))
    return _issue_token(user)


@auth_bp.get("/verify")
@require_auth
def verify_route():
    return success({"user": g.current_user.to_dict()})


@auth_bp.post("/logout")
@handle_service_errors
def logout_route():
    token = bearer_token()
    if not token:
        return failure("Authentication required", 401)
    session_service.revoke_session(token)
    return success(None, message="Logged out successfully")


@auth_bp.post("/change-password")
@require_auth
@handle_service_errors
def change_password_route():
    data = json_body()
    user = g.current_user
    auth_service.change_password(user, data.get("currentPassword"), data.get("newPassword"))
    session_service.revoke_all_user_sessions(user.id, reason="Password changed")
    return success(None, message="Password changed successfully")
