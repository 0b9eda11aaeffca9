"""
POS Register Sessions

One session per register shift, numbered SE1-001, SE1-002, ...

DESIGN:
- At most one In-Progress session at a time (checked under lock on start)
- Closed sessions are immutable: close, cash movements and sales updates
  all require In-Progress
- Numbers come from the highest SE1-NNN among the last 100 sessions, so
  a stray hand-typed number does not reset the sequence
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from ..extensions import db
from ..models import PosSession
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_date, optional_text, to_number
from .concurrency import lock_for_update
from .document_service import allocate_number, generate_number

logger = logging.getLogger(__name__)

SESSION_PREFIX = "SE1-"
SESSION_PAD = 3
SESSION_SCAN = 100

IN_PROGRESS = "In-Progress"
CLOSED = "Closed"


class SessionStateError(Exception):
    """Raised when a session is not in a state that allows the operation."""
    pass


def generate_session_number(*, organization_id: str) -> str:
    return generate_number(
        PosSession, "session_number", SESSION_PREFIX, SESSION_PAD,
        organization_id=organization_id, scan=SESSION_SCAN, anchored=True,
    )


def get_active_session(*, organization_id: str) -> PosSession | None:
    return (
        db.session.query(PosSession)
        .filter_by(organization_id=organization_id, status=IN_PROGRESS)
        .order_by(PosSession.opened_at.desc(), PosSession.id.desc())
        .first()
    )


def get_session(session_id: int, *, organization_id: str) -> PosSession:
    session = db.session.query(PosSession).filter_by(id=session_id, organization_id=organization_id).first()
    if session is None:
        raise NotFoundError("Session not found")
    return session


def _locked_open_session(session_id: int, organization_id: str) -> PosSession:
    session = lock_for_update(
        db.session.query(PosSession).filter_by(id=session_id, organization_id=organization_id)
    ).first()
    if session is None:
        raise NotFoundError("Session not found")
    if session.status != IN_PROGRESS:
        raise SessionStateError(f"Session {session.session_number} is not in progress")
    return session


def start_session(
    *,
    organization_id: str,
    register: str,
    opened_by: str,
    opening_balance=0,
) -> PosSession:
    register = optional_text(register)
    opened_by = optional_text(opened_by)
    if not register:
        raise ValidationError("Register name is required")
    if not opened_by:
        raise ValidationError("Opened by is required")

    active = lock_for_update(
        db.session.query(PosSession).filter_by(organization_id=organization_id, status=IN_PROGRESS)
    ).first()
    if active is not None:
        db.session.rollback()
        raise ConflictError("An active session already exists. Please close it before starting a new one.")

    session_number = allocate_number(
        "pos_sessions", PosSession, "session_number", SESSION_PREFIX, SESSION_PAD,
        organization_id=organization_id, scan=SESSION_SCAN, anchored=True,
    )
    session = PosSession(
        organization_id=organization_id,
        session_number=session_number,
        register=register,
        opened_by=opened_by,
        opened_at=utcnow(),
        status=IN_PROGRESS,
        opening_balance=to_number(opening_balance),
        cash_in=0,
        cash_out=0,
        total_sales=0,
    )
    db.session.add(session)
    db.session.commit()

    logger.info("POS session %s opened on %s by %s", session_number, register, opened_by)
    return session


def close_session(
    session_id: int,
    *,
    organization_id: str,
    closing_balance=None,
    cash_in=None,
    cash_out=None,
) -> PosSession:
    session = _locked_open_session(session_id, organization_id)

    session.status = CLOSED
    session.closed_at = utcnow()
    session.closing_balance = to_number(closing_balance)
    if cash_in is not None:
        session.cash_in = to_number(cash_in)
    if cash_out is not None:
        session.cash_out = to_number(cash_out)
    db.session.commit()

    logger.info("POS session %s closed", session.session_number)
    return session


def record_cash_movement(session_id: int, movement: str, amount, *, organization_id: str) -> PosSession:
    """Add `amount` to cash_in (movement "in") or cash_out (movement "out")."""
    if movement not in ("in", "out"):
        raise ValidationError("Valid type (in/out) is required")
    value = to_number(amount)
    if value <= 0:
        raise ValidationError("Valid amount is required")

    session = _locked_open_session(session_id, organization_id)
    if movement == "in":
        session.cash_in = (session.cash_in or 0) + value
    else:
        session.cash_out = (session.cash_out or 0) + value
    db.session.commit()
    return session


def update_session_sales(session_id: int, amount, *, organization_id: str) -> PosSession:
    if amount is None or amount == "":
        raise ValidationError("Sale amount is required")

    session = _locked_open_session(session_id, organization_id)
    session.total_sales = (session.total_sales or 0) + to_number(amount)
    db.session.commit()
    return session


def list_sessions(
    *,
    organization_id: str,
    status: str | None = None,
    from_date=None,
    to_date=None,
) -> list[PosSession]:
    query = db.session.query(PosSession).filter(PosSession.organization_id == organization_id)
    if status:
        query = query.filter(PosSession.status == status)

    start = coerce_date("from_date", from_date)
    end = coerce_date("to_date", to_date)
    if start:
        query = query.filter(PosSession.opened_at >= datetime.combine(start, time.min))
    if end:
        query = query.filter(PosSession.opened_at < datetime.combine(end + timedelta(days=1), time.min))

    return query.order_by(PosSession.opened_at.desc(), PosSession.id.desc()).all()
