from __future__ import annotations

from ..extensions import db
from .ledger import LedgerLogMixin, LedgerRecordMixin, ledger_constraints

PURCHASE_STATUSES = ("completed", "refunded", "cancelled")


class Purchase(LedgerRecordMixin, db.Model):
    """
    Cash purchase from a vendor.

    Recorded already settled ("completed", paid_at = creation time); it can
    later be refunded or cancelled, which clears paid_at.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        *ledger_constraints("purchases", "purchase_number", PURCHASE_STATUSES, "completed"),
        {"sqlite_autoincrement": True},
    )

    number_column = "purchase_number"

    purchase_number = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id"), nullable=True, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    items = db.Column(db.JSON, nullable=False, default=list)
    payment_method = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "category_id": self.category_id,
            "vendor_id": self.vendor_id,
            "description": self.description,
            "items": self.items or [],
            "payment_method": self.payment_method,
            "notes": self.notes,
        })
        return data


class PurchaseLog(LedgerLogMixin, db.Model):
    __tablename__ = "purchases_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    parent_column = "purchase_id"

    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
