from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class User(SerializableMixin, db.Model):
    """
    Application user.

    Office staff authenticate with email + password. Field technicians are
    registered with phone + 4-digit PIN and log in through technician-login.
    Both secrets are bcrypt hashed; neither is ever serialized.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_status", "status"),
        {"sqlite_autoincrement": True},
    )
    __hidden_fields__ = ("password_hash", "pin_hash")

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)
    phone = db.Column(db.String(32), nullable=True, unique=True)

    password_hash = db.Column(db.String(255), nullable=True)
    pin_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.String(64), nullable=False, default="Staff")
    department = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Active")  # Active, Inactive

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def is_active(self) -> bool:
        return self.status == "Active"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"


class SessionToken(SerializableMixin, db.Model):
    """
    Bearer token record. Only the SHA-256 hash of the token is stored.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_revoked", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )
    __hidden_fields__ = ("token_hash",)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(128), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))
