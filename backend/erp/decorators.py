# Overview: Request decorators for API routes: bearer auth and service-error mapping.

from __future__ import annotations

from functools import wraps

from flask import current_app, g, jsonify, request

from .extensions import db
from .services import session_service
from .services.auth_service import AccountInactiveError, AuthenticationError
from .services.document_writer import DocumentWriteError
from .services.pos_service import SessionStateError
from .validation import ConflictError, NotFoundError, ValidationError


def success(data=None, *, message: str | None = None, status: int = 200, **extra):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return jsonify(body), status


def failure(error: str, status: int, **extra):
    body = {"success": False, "error": error}
    body.update(extra)
    return jsonify(body), status


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext (user + token record)

    Returns 401 if the header is missing or the token is invalid, expired,
    revoked, or belongs to a deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return failure("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context:
            return failure("Invalid or expired token", 401)

        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


# Most specific first: PasswordValidationError is a ValidationError
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AccountInactiveError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (SessionStateError, 409),
    (DocumentWriteError, 500),
)


def handle_service_errors(f):
    """
    Map service exceptions to the JSON envelope.

    Anything not in the table rolls back the session, is logged with its
    traceback and returns 500 with the message only.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except tuple(error for error, _ in _STATUS_BY_ERROR) as exc:
            status = next(code for error, code in _STATUS_BY_ERROR if isinstance(exc, error))
            if status >= 500:
                current_app.logger.error("%s %s failed: %s", request.method, request.path, exc)
            return failure(str(exc), status)
        except Exception as exc:
            db.session.rollback()
            current_app.logger.exception("Unhandled error in %s %s", request.method, request.path)
            return failure(str(exc) or "Internal server error", 500)

    return decorated_function
