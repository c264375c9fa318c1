from __future__ import annotations

from ..extensions import db
from .ledger import LedgerLogMixin, LedgerRecordMixin, ledger_constraints

SALE_STATUSES = ("completed", "refunded", "cancelled")


class Sale(LedgerRecordMixin, db.Model):
    """
    Point-of-sale sale, paid in full at creation.

    WHY: Sales are documents with their own per-store number and audit trail,
    the same way payables and receivables are.
    """
    __tablename__ = "sales"
    __table_args__ = (
        *ledger_constraints("sales", "sale_number", SALE_STATUSES, "completed"),
        {"sqlite_autoincrement": True},
    )

    number_column = "sale_number"

    sale_number = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("income_categories.id"), nullable=True, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    items = db.Column(db.JSON, nullable=False, default=list)
    payment_method = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "category_id": self.category_id,
            "client_id": self.client_id,
            "items": self.items or [],
            "payment_method": self.payment_method,
            "notes": self.notes,
        })
        return data


class SaleLog(LedgerLogMixin, db.Model):
    __tablename__ = "sales_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    parent_column = "sale_id"

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
