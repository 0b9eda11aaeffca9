# Overview: Human-readable document numbers (BILL-0001, SO-00001, SE1-001...).

"""
Document Number Generator

Two entry points:

- generate_number(): non-reserving peek. Reads the most recently created
  number for the table, parses the numeric suffix after the prefix,
  increments it and re-pads. No prior row, or a latest value that does not
  match the prefix, yields the seed (prefix + "0001" for pad=4). The POS
  variant scans the last 100 rows and takes the highest matching suffix.

- allocate_number(): what document creation uses. Bumps a locked
  DocumentSequence counter inside the caller's transaction. The allocated
  suffix is max(counter, scanned suffix + 1), so numbers typed in by hand
  still move the sequence forward.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def format_number(prefix: str, value: int, pad: int) -> str:
    return f"{prefix}{value:0{pad}d}"


def _parse_suffix(value: str | None, prefix: str, anchored: bool) -> int | None:
    if not value:
        return None
    if anchored:
        match = re.match(rf"^{re.escape(prefix)}(\d+)$", value)
    else:
        match = re.search(rf"{re.escape(prefix)}(\d+)", value)
    return int(match.group(1)) if match else None


def next_suffix(
    model,
    column: str,
    prefix: str,
    *,
    organization_id: str | None = None,
    scan: int = 1,
    anchored: bool = False,
) -> int:
    """Numeric suffix the next document of this type should carry, based on existing rows."""
    col = getattr(model, column)
    query = db.session.query(col).filter(col.isnot(None))
    if organization_id is not None:
        query = query.filter(model.organization_id == organization_id)

    rows = query.order_by(model.created_at.desc(), model.id.desc()).limit(scan).all()
    if not rows:
        return 1

    if scan == 1:
        current = _parse_suffix(rows[0][0], prefix, anchored)
        return current + 1 if current is not None else 1

    suffixes = [s for s in (_parse_suffix(r[0], prefix, anchored) for r in rows) if s is not None]
    return max(suffixes, default=0) + 1


def generate_number(
    model,
    column: str,
    prefix: str,
    pad: int,
    *,
    organization_id: str | None = None,
    scan: int = 1,
    anchored: bool = False,
) -> str:
    """
    Peek at the next number for a document table without reserving it.

    Query errors propagate to the caller.
    """
    value = next_suffix(
        model, column, prefix,
        organization_id=organization_id, scan=scan, anchored=anchored,
    )
    return format_number(prefix, value, pad)


def allocate_number(
    document_type: str,
    model,
    column: str,
    prefix: str,
    pad: int,
    *,
    organization_id: str,
    scan: int = 1,
    anchored: bool = False,
) -> str:
    """
    Reserve the next number for (organization_id, document_type).

    Must run before anything else is written in the enclosing transaction:
    the first-use insert race is resolved by rolling the session back.
    Does not commit.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not organization_id:
        raise DocumentSequenceError("organization_id is required")

    def _sequence_query():
        return lock_for_update(
            db.session.query(DocumentSequence).filter_by(
                organization_id=organization_id,
                document_type=document_type,
            )
        )

    def _op() -> str:
        scanned = next_suffix(
            model, column, prefix,
            organization_id=organization_id, scan=scan, anchored=anchored,
        )

        seq = _sequence_query().first()
        if seq is None:
            seq = DocumentSequence(
                organization_id=organization_id,
                document_type=document_type,
                next_number=scanned,
            )
            db.session.add(seq)
            try:
                db.session.flush()
            except IntegrityError:
                db.session.rollback()
                seq = _sequence_query().first()
                if seq is None:
                    raise

        value = max(seq.next_number, scanned)
        if value != seq.next_number:
            logger.info(
                "Sequence %s advanced from %s to %s to skip existing numbers",
                document_type, seq.next_number, value,
            )
        seq.next_number = value + 1
        db.session.flush()
        return format_number(prefix, value, pad)

    return run_with_retry(_op)
