# Overview: Per-(store, kind) document numbering; allocates MAX+1 under a transaction-scoped lock and inserts the record with its "created" audit row.

from __future__ import annotations

import hashlib
import logging

from sqlalchemy import func, insert, text, update

from ..extensions import db
from ..kinds import RecordKind, get_binding
from ..models import SequenceLock
from ..time_utils import utcnow
from ..validation import ValidationError
from .audit_service import CreatedDetails, append_audit
from .concurrency import atomic
from .settlement_service import add_payment_row

logger = logging.getLogger(__name__)


def sequence_lock_key(store_id: int, kind: RecordKind | str) -> int:
    """
    Deterministic signed 64-bit lock key for a (store, kind) sequence.

    Stable across processes and restarts (unlike hash()), and different for
    each kind of the same store.
    """
    kind_value = RecordKind(kind).value
    digest = hashlib.blake2b(f"{store_id}:{kind_value}".encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def acquire_sequence_lock(store_id: int, kind: RecordKind | str) -> None:
    """
    Serialize numbering for (store, kind) until the current transaction ends.

    PostgreSQL: pg_advisory_xact_lock, released automatically at commit or
    rollback. Elsewhere: write the sequence_locks row for the key, which holds
    the row (SQLite: database) write lock for the rest of the transaction.
    """
    kind_value = RecordKind(kind).value
    key = sequence_lock_key(store_id, kind_value)

    if db.engine.dialect.name == "postgresql":
        db.session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
        return

    now = utcnow()
    result = db.session.execute(
        update(SequenceLock).where(SequenceLock.lock_key == key).values(acquired_at=now)
    )
    if not result.rowcount:
        # First use of this sequence. A concurrent first insert surfaces as
        # IntegrityError and rolls back the whole create.
        db.session.execute(
            insert(SequenceLock).values(lock_key=key, store_id=store_id, kind=kind_value, acquired_at=now)
        )
    db.session.flush()


def next_document_number(kind: RecordKind | str, store_id: int) -> int:
    """
    MAX(number) + 1 for the store, 1 for the first record.

    Only meaningful while the sequence lock is held.
    """
    binding = get_binding(kind)
    number_col = getattr(binding.model, binding.number_column)
    current = (
        db.session.query(func.coalesce(func.max(number_col), 0))
        .filter(binding.model.store_id == store_id)
        .scalar()
    )
    return int(current) + 1


def create_record(
    kind: RecordKind | str,
    *,
    store_id: int,
    actor_id: int,
    fields: dict,
    initial_payment: dict | None = None,
):
    """
    Create a ledger record with the next document number.

    One transaction: lock -> MAX+1 -> insert -> "created" audit row -> commit.
    Any failure rolls back all of it (see concurrency.atomic).

    fields must already be validated; it carries amount_cents, currency and
    the kind's own columns. Status and paid_at are set here.

    initial_payment ({"amount_cents", "notes"}) is recorded in the same
    transaction, after the "created" row; it never changes the status.

    Returns the committed model instance.
    """
    binding = get_binding(kind)
    now = utcnow()

    with atomic(f"Create {binding.kind.value}"):
        acquire_sequence_lock(store_id, binding.kind)
        number = next_document_number(binding.kind, store_id)

        record = binding.model(**fields)
        record.store_id = store_id
        record.created_by = actor_id
        record.status = binding.initial_status
        record.paid_at = now if binding.initial_status == binding.settled_status else None
        record.created_at = now
        record.updated_at = now
        setattr(record, binding.number_column, number)
        db.session.add(record)
        db.session.flush()

        append_audit(binding.kind, record.id, actor_id, CreatedDetails(document_number=number))

        if initial_payment is not None:
            if not binding.accepts_payments:
                raise ValidationError(f"{binding.label} records do not accept payments")
            add_payment_row(
                binding,
                record,
                amount_cents=initial_payment["amount_cents"],
                currency=None,
                notes=initial_payment.get("notes"),
                actor_id=actor_id,
            )

    logger.info("Created %s %s for store %s (id=%s)", binding.kind.value, number, store_id, record.id)
    return record
