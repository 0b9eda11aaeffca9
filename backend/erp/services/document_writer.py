# Overview: Header + line-item document writes (bills, orders, challans, transfers, payments).

"""
Transactional Document Writer

Every numbered business document is a header row plus owned line rows.
The per-type differences (required fields, defaults, side effects) are
described by a DocumentKind; the write path itself is shared.

CREATE:
1. validate (ValidationError, nothing written)
2. take the supplied number or allocate one
3. normalize header fields (amounts -> float, optional ids -> int | None)
4. insert header
5. insert lines (+ attach_lines hook, e.g. bin allocations)
   Any failure in 4-5 rolls back the whole transaction: no header row
   survives without its lines.
6. commit, then run after_create (stock side effects) in its own
   transaction; a failure there is logged, never raised
7. re-read and return header + items

UPDATE writes only the keys present in the payload. A present `items`
list (even empty) replaces all lines in the same transaction.

DELETE removes lines, then the header, and reports success whether or not
the row existed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_date,
    coerce_filter_value,
    optional_text,
    require_date,
    require_text,
    to_number,
    to_optional_id,
)
from .document_service import allocate_number, generate_number

logger = logging.getLogger(__name__)


class DocumentWriteError(Exception):
    """Header or line write failed; the transaction has been rolled back."""
    pass


@dataclass(frozen=True)
class DocumentKind:
    key: str
    label: str
    model: Any
    number_field: str
    prefix: str
    pad: int
    line_model: Any = None
    line_fk: str | None = None
    lines_key: str = "items"
    date_field: str | None = None
    filter_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ()
    validate: Callable[[dict, bool], None] | None = None
    normalize_header: Callable[[dict, bool], dict] | None = None
    normalize_line: Callable[[dict], dict] | None = None
    attach_lines: Callable[[list, list], None] | None = None
    after_create: Callable[[Any, list], None] | None = None


def _store_message(exc: Exception) -> str:
    return str(getattr(exc, "orig", None) or exc)


def check_required(payload: dict, partial: bool, *, text: dict | None = None, dates: dict | None = None) -> None:
    """Raise the given message for each required field; on update only keys present are checked."""
    for key, message in (text or {}).items():
        if not partial or key in payload:
            require_text(payload, key, message)
    for key, message in (dates or {}).items():
        if not partial or key in payload:
            require_date(payload, key, message)


def header_fields(
    payload: dict,
    partial: bool,
    *,
    text: tuple[str, ...] = (),
    numbers: tuple[str, ...] = (),
    ids: tuple[str, ...] = (),
    dates: tuple[str, ...] = (),
    raw: tuple[str, ...] = (),
    defaults: dict | None = None,
) -> dict:
    """
    Coerce the header keys present in payload.

    On create, keys still missing (or None) after coercion take their
    default; on update only the supplied keys are returned.
    """
    out: dict = {}
    for key in text:
        if key in payload:
            out[key] = optional_text(payload[key])
    for key in numbers:
        if key in payload:
            out[key] = to_number(payload[key])
    for key in ids:
        if key in payload:
            out[key] = to_optional_id(payload[key])
    for key in dates:
        if key in payload:
            out[key] = coerce_date(key, payload[key])
    for key in raw:
        if key in payload:
            out[key] = payload[key]

    if not partial:
        for key, value in (defaults or {}).items():
            if out.get(key) is None:
                out[key] = value
    return out


def _number_taken(kind: DocumentKind, number: str, organization_id: str) -> bool:
    return db.session.query(kind.model.id).filter(
        kind.model.organization_id == organization_id,
        getattr(kind.model, kind.number_field) == number,
    ).first() is not None


def _get_header(kind: DocumentKind, document_id: int, organization_id: str):
    doc = db.session.query(kind.model).filter_by(id=document_id, organization_id=organization_id).first()
    if doc is None:
        raise NotFoundError(f"{kind.label.capitalize()} not found")
    return doc


def _lines_query(kind: DocumentKind, document_id: int):
    fk = getattr(kind.line_model, kind.line_fk)
    return db.session.query(kind.line_model).filter(fk == document_id).order_by(kind.line_model.id)


def _extract_lines(kind: DocumentKind, payload: dict) -> list[dict]:
    items = payload.get(kind.lines_key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError(f"{kind.lines_key} must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"Each entry in {kind.lines_key} must be an object")
    return items


def _insert_lines(kind: DocumentKind, document_id: int, items: list[dict]) -> list:
    lines = []
    for raw in items:
        values = kind.normalize_line(raw) if kind.normalize_line else dict(raw)
        values[kind.line_fk] = document_id
        line = kind.line_model(**values)
        db.session.add(line)
        lines.append(line)
    db.session.flush()

    if kind.attach_lines:
        kind.attach_lines(lines, items)
        db.session.flush()
    return lines


def _delete_lines(kind: DocumentKind, document_id: int) -> None:
    # ORM deletes so owned rows (bin allocations) cascade with their line
    for line in _lines_query(kind, document_id).all():
        db.session.delete(line)
    db.session.flush()


def _run_after_create(kind: DocumentKind, doc, lines: list) -> None:
    try:
        kind.after_create(doc, lines)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Post-create side effect failed for %s id=%s", kind.label, doc.id)


def next_number(kind: DocumentKind, *, organization_id: str) -> str:
    """Preview of the number the next created document would receive."""
    return generate_number(
        kind.model, kind.number_field, kind.prefix, kind.pad,
        organization_id=organization_id,
    )


def create_document(kind: DocumentKind, payload: dict, *, organization_id: str) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = _extract_lines(kind, payload) if kind.line_model else []
    if kind.validate:
        kind.validate(payload, False)
    header = kind.normalize_header(payload, False) if kind.normalize_header else {}

    number = optional_text(payload.get(kind.number_field))
    if number is None:
        number = allocate_number(
            kind.key, kind.model, kind.number_field, kind.prefix, kind.pad,
            organization_id=organization_id,
        )

    doc = kind.model(**header)
    doc.organization_id = organization_id
    setattr(doc, kind.number_field, number)

    try:
        db.session.add(doc)
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        if _number_taken(kind, number, organization_id):
            raise ConflictError(f"{kind.label.capitalize()} number {number} already exists") from exc
        raise DocumentWriteError(f"Failed to create {kind.label}: {_store_message(exc)}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DocumentWriteError(f"Failed to create {kind.label}: {_store_message(exc)}") from exc

    document_id = doc.id
    lines = []
    if items:
        try:
            lines = _insert_lines(kind, document_id, items)
        except ValidationError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Rolled back %s %s: line insert failed (%s)", kind.label, number, _store_message(exc))
            raise DocumentWriteError(
                f"Failed to create {kind.label} items: {_store_message(exc)}"
            ) from exc

    db.session.commit()

    if kind.after_create:
        _run_after_create(kind, doc, lines)

    return get_document(kind, document_id, organization_id=organization_id)


def update_document(kind: DocumentKind, document_id: int, payload: dict, *, organization_id: str) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    doc = _get_header(kind, document_id, organization_id)
    if kind.validate:
        kind.validate(payload, True)

    replace_lines = bool(kind.line_model) and payload.get(kind.lines_key) is not None
    items = _extract_lines(kind, payload) if replace_lines else []

    patch = kind.normalize_header(payload, True) if kind.normalize_header else {}
    number = optional_text(payload.get(kind.number_field))
    if number and number != getattr(doc, kind.number_field):
        if _number_taken(kind, number, organization_id):
            raise ConflictError(f"{kind.label.capitalize()} number {number} already exists")
        patch[kind.number_field] = number
    for key, value in patch.items():
        setattr(doc, key, value)

    try:
        db.session.flush()
        if replace_lines:
            _delete_lines(kind, document_id)
            if items:
                _insert_lines(kind, document_id, items)
        db.session.commit()
    except ValidationError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        number = patch.get(kind.number_field)
        if number and _number_taken(kind, number, organization_id):
            raise ConflictError(f"{kind.label.capitalize()} number {number} already exists") from exc
        raise DocumentWriteError(f"Failed to update {kind.label}: {_store_message(exc)}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DocumentWriteError(f"Failed to update {kind.label}: {_store_message(exc)}") from exc

    return get_document(kind, document_id, organization_id=organization_id)


def delete_document(kind: DocumentKind, document_id: int, *, organization_id: str) -> bool:
    """Returns True if a row was removed; a missing row is not an error."""
    doc = db.session.query(kind.model).filter_by(id=document_id, organization_id=organization_id).first()
    if doc is None:
        return False

    try:
        if kind.line_model:
            _delete_lines(kind, document_id)
        db.session.delete(doc)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DocumentWriteError(f"Failed to delete {kind.label}: {_store_message(exc)}") from exc
    return True


def get_document(kind: DocumentKind, document_id: int, *, organization_id: str) -> dict:
    doc = _get_header(kind, document_id, organization_id)
    data = doc.to_dict()
    if kind.line_model:
        data[kind.lines_key] = [line.to_dict() for line in _lines_query(kind, document_id).all()]
    return data


def list_documents(
    kind: DocumentKind,
    *,
    organization_id: str,
    filters: dict | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list, int]:
    """
    Headers for one document type, newest first.

    filters: equality on kind.filter_fields, from_date/to_date on
    kind.date_field, and `search` (case-insensitive substring over
    kind.search_fields).
    """
    filters = filters or {}
    model = kind.model
    query = db.session.query(model).filter(model.organization_id == organization_id)

    for field in kind.filter_fields:
        value = filters.get(field)
        if value in (None, ""):
            continue
        column = getattr(model, field)
        query = query.filter(column == coerce_filter_value(column.property.columns[0], value))

    if kind.date_field:
        date_col = getattr(model, kind.date_field)
        from_date = coerce_date("from_date", filters.get("from_date"))
        to_date = coerce_date("to_date", filters.get("to_date"))
        if from_date:
            query = query.filter(date_col >= from_date)
        if to_date:
            query = query.filter(date_col <= to_date)

    search = optional_text(filters.get("search"))
    if search and kind.search_fields:
        pattern = f"%{search}%"
        query = query.filter(or_(*[getattr(model, f).ilike(pattern) for f in kind.search_fields]))

    total = query.count()
    query = query.order_by(model.created_at.desc(), model.id.desc())
    if limit is not None:
        query = query.limit(limit).offset(offset)
    return query.all(), total
