"""
Shared columns for money-movement records (expenses, purchases, sales,
receivables), their payments and their audit logs.

Invariants (enforced by the database, not only by services):
- <kind>_number is unique per store
- amount_cents >= 0, payment amount_cents > 0
- status is one of the kind's statuses
- paid_at is set exactly when status is the kind's settled status
"""

from __future__ import annotations

from ..extensions import db
from storeledger.time_utils import to_utc_z
from storeledger.validation import format_cents


def ledger_constraints(table: str, number_column: str, statuses: tuple[str, ...], settled: str) -> tuple:
    status_list = ", ".join(f"'{s}'" for s in statuses)
    return (
        db.UniqueConstraint("store_id", number_column, name=f"uq_{table}_store_number"),
        db.CheckConstraint("amount_cents >= 0", name=f"ck_{table}_amount_non_negative"),
        db.CheckConstraint(f"status IN ({status_list})", name=f"ck_{table}_status"),
        db.CheckConstraint(
            f"(status = '{settled}' AND paid_at IS NOT NULL) OR (status <> '{settled}' AND paid_at IS NULL)",
            name=f"ck_{table}_paid_at_matches_status",
        ),
        db.Index(f"ix_{table}_store_created", "store_id", "created_at"),
    )


class LedgerRecordMixin:
    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    amount_cents = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="USD")
    status = db.Column(db.String(20), nullable=False, index=True)

    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    number_column = ""

    @property
    def document_number(self) -> int:
        return getattr(self, self.number_column)

    def base_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "document_number": self.document_number,
            self.number_column: self.document_number,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "currency": self.currency,
            "status": self.status,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class LedgerPaymentMixin:
    """Immutable partial payment against a record."""
    id = db.Column(db.Integer, primary_key=True)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="USD")
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    parent_column = ""

    @property
    def record_id(self) -> int:
        return getattr(self, self.parent_column)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            self.parent_column: self.record_id,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "currency": self.currency,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class LedgerLogMixin:
    """Append-only audit row. Never updated or deleted."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    action = db.Column(db.String(32), nullable=False)
    details = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    parent_column = ""

    @property
    def record_id(self) -> int:
        return getattr(self, self.parent_column)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            self.parent_column: self.record_id,
            "user_id": self.user_id,
            "action": self.action,
            "details": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }


def payment_constraints(table: str) -> tuple:
    return (
        db.CheckConstraint("amount_cents > 0", name=f"ck_{table}_amount_positive"),
    )
