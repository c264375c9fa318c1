from __future__ import annotations

from ..extensions import db
from storeledger.time_utils import to_iso_date
from .ledger import LedgerLogMixin, LedgerPaymentMixin, LedgerRecordMixin, ledger_constraints, payment_constraints

RECEIVABLE_STATUSES = ("pending", "paid", "cancelled")


class Receivable(LedgerRecordMixin, db.Model):
    """Account receivable: money a customer owes the store."""
    __tablename__ = "receivables"
    __table_args__ = (
        *ledger_constraints("receivables", "receivable_number", RECEIVABLE_STATUSES, "paid"),
        {"sqlite_autoincrement": True},
    )

    number_column = "receivable_number"

    receivable_number = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("income_categories.id"), nullable=True, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(50), nullable=True)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.Date, nullable=True)

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "category_id": self.category_id,
            "client_id": self.client_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "description": self.description,
            "due_date": to_iso_date(self.due_date),
        })
        return data


class ReceivablePayment(LedgerPaymentMixin, db.Model):
    __tablename__ = "receivable_payments"
    __table_args__ = (
        *payment_constraints("receivable_payments"),
        {"sqlite_autoincrement": True},
    )

    parent_column = "receivable_id"

    receivable_id = db.Column(
        db.Integer, db.ForeignKey("receivables.id", ondelete="CASCADE"), nullable=False, index=True
    )


class ReceivableLog(LedgerLogMixin, db.Model):
    __tablename__ = "receivables_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    parent_column = "receivable_id"

    receivable_id = db.Column(
        db.Integer, db.ForeignKey("receivables.id", ondelete="CASCADE"), nullable=False, index=True
    )
