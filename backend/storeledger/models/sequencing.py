from __future__ import annotations

from ..extensions import db


class SequenceLock(db.Model):
    """
    Lock row per (store, kind) numbering sequence.

    Used on databases without transaction-scoped advisory locks: writing the
    row holds its write lock until the surrounding transaction commits or
    rolls back. Holds no counter; the next number is always MAX + 1 of the
    records themselves.
    """
    __tablename__ = "sequence_locks"

    lock_key = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    kind = db.Column(db.String(20), nullable=False)
    acquired_at = db.Column(db.DateTime(timezone=True), nullable=False)
