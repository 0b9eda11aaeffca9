# Overview: User registration and credential checks for office staff and field technicians.

"""
Authentication Service

Two kinds of account share the users table:
- office staff: email + password
- technicians: phone + 4-digit PIN (email/password optional)

SECURITY NOTES:
- Passwords and PINs hashed with bcrypt (BCRYPT_ROUNDS, default 12)
- Passwords must be 8+ chars with upper, lower, digit and special char
- Phone numbers are stored normalized (no spaces/dashes, no +91 prefix)
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import logging
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError, optional_text

logger = logging.getLogger(__name__)

PIN_PATTERN = re.compile(r"^\d{4}$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthenticationError(Exception):
    """Raised when credentials do not match an account (401)."""
    pass


class AccountInactiveError(Exception):
    """Raised when the account exists but has been deactivated (403)."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def normalize_phone(phone) -> str | None:
    """'+91 98765-43210' -> '9876543210'"""
    text = optional_text(phone)
    if text is None:
        return None
    text = re.sub(r"[\s\-]", "", text)
    return re.sub(r"^\+91", "", text) or None


def normalize_email(email) -> str | None:
    text = optional_text(email)
    return text.lower() if text else None


def _hash_secret(secret: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(secret.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def hash_password(password: str) -> str:
    """Hash password with bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    return _hash_secret(password)


def hash_pin(pin: str) -> str:
    if not PIN_PATTERN.match(pin or ""):
        raise ValidationError("PIN must be 4 digits")
    return _hash_secret(pin)


def verify_secret(secret: str, hashed: str | None) -> bool:
    """Timing-safe bcrypt comparison; a missing or malformed hash never matches."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(secret.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        return False


def register_user(
    *,
    name,
    email=None,
    password=None,
    phone=None,
    pin=None,
    role=None,
    department=None,
) -> User:
    """
    Create a user. A payload with both phone and pin registers a technician
    and may omit email/password; anything else needs email + password.

    Raises:
        ValidationError: missing name/credentials, bad PIN, weak password
        ConflictError: email or phone already registered
    """
    name = optional_text(name)
    if not name:
        raise ValidationError("Name is required")

    email = normalize_email(email)
    phone = normalize_phone(phone)
    pin = optional_text(pin)
    is_technician = bool(phone and pin)

    if not is_technician and (not email or not password):
        raise ValidationError("Email and password are required")
    if pin and not PIN_PATTERN.match(pin):
        raise ValidationError("PIN must be 4 digits")

    if email and db.session.query(User.id).filter_by(email=email).first():
        raise ConflictError("User with this email already exists")
    if phone and db.session.query(User.id).filter_by(phone=phone).first():
        raise ConflictError("User with this phone number already exists")

    user = User(
        name=name,
        email=email,
        phone=phone,
        password_hash=hash_password(password) if password else None,
        pin_hash=hash_pin(pin) if pin else None,
        role=optional_text(role) or "Staff",
        department=optional_text(department),
        status="Active",
    )
    db.session.add(user)
    db.session.commit()

    logger.info("Registered user %s (%s)", user.id, "technician" if is_technician else "staff")
    return user


def _touch_login(user: User) -> User:
    user.last_login_at = utcnow()
    db.session.commit()
    return user


def authenticate(email, password) -> User:
    """
    Email + password login. Updates last_login_at on success.

    Raises ValidationError (missing input), AuthenticationError (no match)
    or AccountInactiveError (status other than Active).
    """
    email = normalize_email(email)
    password = optional_text(password)
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = db.session.query(User).filter_by(email=email).first()
    if user is None:
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AccountInactiveError("Your account has been deactivated. Please contact administrator.")
    if not verify_secret(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    return _touch_login(user)


def authenticate_technician(phone, pin) -> User:
    phone = normalize_phone(phone)
    pin = optional_text(pin)
    if not phone or not pin:
        raise ValidationError("Phone number and PIN are required")
    if not PIN_PATTERN.match(pin):
        raise ValidationError("PIN must be 4 digits")

    user = db.session.query(User).filter_by(phone=phone).first()
    if user is None:
        raise AuthenticationError("Invalid phone number or PIN")
    if not user.is_active:
        raise AccountInactiveError("Your account has been deactivated. Please contact supervisor.")
    if not user.pin_hash:
        raise AuthenticationError("PIN not set. Please contact supervisor.")
    if not verify_secret(pin, user.pin_hash):
        raise AuthenticationError("Invalid phone number or PIN")

    return _touch_login(user)


def change_password(user: User, current_password, new_password) -> None:
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")
    if not verify_secret(str(current_password), user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = hash_password(str(new_password))
    db.session.commit()
