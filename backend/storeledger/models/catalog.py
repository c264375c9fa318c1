from __future__ import annotations

from ..extensions import db
from storeledger.time_utils import to_utc_z


class _FinanceCategoryColumns:
    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(30), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class IncomeCategory(_FinanceCategoryColumns, db.Model):
    """Category for money coming in (sales, receivables)."""
    __tablename__ = "income_categories"
    __table_args__ = (
        db.UniqueConstraint("store_id", "name", name="uq_income_categories_store_name"),
        {"sqlite_autoincrement": True},
    )


class ExpenseCategory(_FinanceCategoryColumns, db.Model):
    """Category for money going out (expenses, purchases)."""
    __tablename__ = "expense_categories"
    __table_args__ = (
        db.UniqueConstraint("store_id", "name", name="uq_expense_categories_store_name"),
        {"sqlite_autoincrement": True},
    )


class _ContactColumns:
    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    identity_document = db.Column(db.String(50), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "identity_document": self.identity_document,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Vendor(_ContactColumns, db.Model):
    """Supplier the store pays (expenses, purchases)."""
    __tablename__ = "vendors"
    __table_args__ = (
        db.UniqueConstraint("store_id", "phone", name="uq_vendors_store_phone"),
        {"sqlite_autoincrement": True},
    )


class Client(_ContactColumns, db.Model):
    """Customer the store charges (sales, receivables)."""
    __tablename__ = "clients"
    __table_args__ = (
        db.UniqueConstraint("store_id", "phone", name="uq_clients_store_phone"),
        {"sqlite_autoincrement": True},
    )
