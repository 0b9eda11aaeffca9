# Overview: Row locks for counters and balances, and the retry wrapper around number allocation.

"""
Rows that are read and then rewritten from the same request are locked
first, so two concurrent writers serialize on them:

- the DocumentSequence row while a document number is reserved;
- an Invoice while a received payment lowers its balance_due;
- an Item while current_stock moves with a bill, invoice or manual adjustment;
- a PosSession while cash movements and sales are added, and the open
  session while a new one is started.
"""

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """SELECT ... FOR UPDATE on PostgreSQL/MySQL. SQLite takes a database-wide write lock instead."""
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run `func`, retrying when the sequence row lock times out or deadlocks.

    allocate_number wraps its read-bump-write of the counter in this. The
    session is rolled back between attempts, so `func` starts from a clean
    transaction each time.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt == attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.info("Number allocation contended (attempt %s of %s), retrying in %.2fs: %s",
                        attempt + 1, attempts, delay, exc)
            time.sleep(delay)
