from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from erp.time_utils import parse_iso_date, parse_iso_datetime


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level conflict (duplicate document number, bin code, email...)."""


class NotFoundError(LookupError):
    """404-level: lookup by id returned nothing."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """Which columns a client may set, and which must be present on create."""
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


_TRUTHY = {"1", "true", "yes", "on"}


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def to_number(value: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion used for document amounts: anything unparseable becomes `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_optional_id(value: Any) -> int | None:
    """Optional foreign reference: a positive integer id or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_text(payload: dict, key: str, message: str) -> str:
    value = payload.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return str(value).strip()


def require_date(payload: dict, key: str, message: str) -> date:
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(message)
    return coerce_date(key, value)


def coerce_date(key: str, value: Any) -> date | None:
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an ISO-8601 date")


def _coerce_value(col, value: Any):
    """Convert one JSON value to the Python type its column stores."""
    coltype = col.type

    if isinstance(coltype, Boolean):
        return _truthy(value)

    # Ids and counters: plain integers only, "3" is fine, 3.5 and "1e3" are not
    if isinstance(coltype, Integer):
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, (Float, Numeric)):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        try:
            parsed = parse_iso_datetime(value) if isinstance(value, str) else None
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
        return parsed

    if isinstance(coltype, Date):
        return coerce_date(col.key, value)

    if isinstance(coltype, (String, Text)):
        text = str(value).strip()
        if not text and not col.nullable:
            raise ValidationError(f"{col.key} cannot be blank")
        if coltype.length and len(text) > coltype.length:
            raise ValidationError(f"{col.key} exceeds max length {coltype.length}")
        return text

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Clean a client payload into column values for `model`.

    Keys outside the policy's writable columns are dropped, so clients can
    send back a whole row (id, timestamps, joined names) on update. On create
    (partial=False) every required field must be present and non-empty.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    patch: dict = {}
    for key, raw in payload.items():
        col = columns.get(key)
        if col is None or key not in policy.writable_fields:
            continue
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _coerce_value(col, raw)
    return patch


def coerce_filter_value(col, value: Any):
    """Query-string filter value coerced to the column's type (`?is_active=false`, `?vendor_id=3`)."""
    if isinstance(col.type, Boolean):
        return _truthy(str(value))
    if isinstance(col.type, Integer):
        parsed = to_optional_id(value)
        if parsed is None:
            raise ValidationError(f"{col.key} must be a positive integer")
        return parsed
    return str(value).strip()
