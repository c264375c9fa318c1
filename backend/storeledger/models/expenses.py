from __future__ import annotations

from ..extensions import db
from storeledger.time_utils import to_iso_date
from .ledger import LedgerLogMixin, LedgerPaymentMixin, LedgerRecordMixin, ledger_constraints, payment_constraints

EXPENSE_STATUSES = ("pending", "paid", "cancelled")


class Expense(LedgerRecordMixin, db.Model):
    """
    Expense / account payable.

    Created "pending"; settled by an explicit status change to "paid".
    Partial payments are tracked in expense_payments and never change status.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        *ledger_constraints("expenses", "expense_number", EXPENSE_STATUSES, "paid"),
        {"sqlite_autoincrement": True},
    )

    number_column = "expense_number"

    expense_number = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id"), nullable=True, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=True)
    vendor_phone = db.Column(db.String(50), nullable=True)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.Date, nullable=True, index=True)

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "category_id": self.category_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "vendor_phone": self.vendor_phone,
            "description": self.description,
            "due_date": to_iso_date(self.due_date),
        })
        return data


class ExpensePayment(LedgerPaymentMixin, db.Model):
    __tablename__ = "expense_payments"
    __table_args__ = (
        *payment_constraints("expense_payments"),
        {"sqlite_autoincrement": True},
    )

    parent_column = "expense_id"

    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)


class ExpenseLog(LedgerLogMixin, db.Model):
    __tablename__ = "expenses_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    parent_column = "expense_id"

    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
