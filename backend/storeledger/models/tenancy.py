from __future__ import annotations

from ..extensions import db
from storeledger.time_utils import to_utc_z


class Store(db.Model):
    """
    Store: the tenant boundary.

    WHY: Every financial record, category, vendor and client belongs to exactly
    one store, and every query and document-number sequence is scoped by it.
    The creator of a store implicitly holds every permission in it.
    """
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StoreUser(db.Model):
    """Membership of a user in a store (grants are stored separately)."""
    __tablename__ = "store_users"
    __table_args__ = (
        db.UniqueConstraint("store_id", "user_id", name="uq_store_users_store_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("members", lazy=True))
    user = db.relationship("User", backref=db.backref("store_memberships", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
