# Overview: Bearer session tokens: issue, validate, revoke, clean up.

"""
Login sessions for staff and technicians.

The client holds a random 64-hex-char token; only its SHA-256 digest is
stored. A session ends when it passes SESSION_ABSOLUTE_TIMEOUT_HOURS, sits
unused for SESSION_IDLE_TIMEOUT_HOURS, the user logs out or changes their
password, or the account is deactivated.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow

# Dead sessions are kept this long for audit before cleanup deletes them
RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """What validate_session hands to require_auth."""
    user: User
    session: SessionToken


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token), is_revoked=False,
    ).first()


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Returns (row, plaintext token). The plaintext is never persisted."""
    token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 168),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its user, touching last_used_at.

    Idle sessions and sessions of deactivated users are revoked here, so a
    later request with the same token fails fast at the lookup.
    """
    session = _live_session(token)
    now = utcnow()
    if session is None or session.expires_at < now:
        return None

    reason = None
    if now - session.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 24):
        reason = "Idle timeout"
    elif session.user is None or not session.user.is_active:
        reason = "User account deactivated"
    if reason:
        _revoke(session, reason)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = _live_session(token)
    if session is None:
        return False
    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        _revoke(session, reason)
    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """Delete expired or revoked sessions created more than RETENTION ago."""
    now = utcnow()
    deleted = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < now - RETENTION,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
