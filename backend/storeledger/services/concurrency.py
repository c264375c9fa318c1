# Overview: Transaction helpers shared by the write paths; map database failures to domain errors.

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError

from ..extensions import db
from ..validation import ConflictError, TransientError

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic(operation: str):
    """
    Run the block as one database transaction.

    Commits on success. On any failure the whole unit (record, audit row,
    payment, lock row) is rolled back:
    - IntegrityError (unique / CHECK violation) -> ConflictError
    - OperationalError (lock timeout, deadlock, lost connection) -> TransientError
    - anything else is re-raised unchanged

    Nothing is retried here; retrying is the caller's decision.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("%s rolled back on integrity conflict: %s", operation, exc.orig)
        raise ConflictError(f"{operation} conflicts with existing data") from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.warning("%s rolled back on transient database error: %s", operation, exc.orig)
        raise TransientError(f"{operation} could not complete, try again") from exc
    except Exception:
        db.session.rollback()
        raise
