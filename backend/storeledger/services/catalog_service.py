# Overview: Store-scoped finance categories, vendors and clients referenced by ledger records.

"""
Catalog Service

WHY: Ledger records point at a category and at a vendor or client of the
same store. Categories come in two closed types: income (sales,
receivables) and expense (expenses, purchases).

DESIGN:
- Category names are unique per store, compared case-insensitively
- Vendor / client phones are unique per store when given
- A category still referenced by records cannot be deleted
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Client, Expense, ExpenseCategory, IncomeCategory, Purchase, Receivable, Sale, Vendor
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from .concurrency import atomic


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


_CATEGORY_MODELS = {
    CategoryType.INCOME: IncomeCategory,
    CategoryType.EXPENSE: ExpenseCategory,
}

# Record models that reference each category type
_CATEGORY_USERS = {
    CategoryType.INCOME: (Sale, Receivable),
    CategoryType.EXPENSE: (Expense, Purchase),
}

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description", "color"}),
    required_on_create=frozenset({"name"}),
)

CONTACT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "phone", "email", "address", "identity_document", "notes"}),
    required_on_create=frozenset({"name"}),
)


def category_type(value) -> CategoryType:
    try:
        return CategoryType(value)
    except ValueError:
        raise ValidationError("Category type must be 'income' or 'expense'")


def _category_model(kind):
    return _CATEGORY_MODELS[category_type(kind)]


def _strip_store(payload: dict | None) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    payload.pop("store_id", None)
    return payload


# =============================================================================
# FINANCE CATEGORIES
# =============================================================================

def list_categories(kind, store_id: int) -> list:
    model = _category_model(kind)
    return db.session.query(model).filter_by(store_id=store_id).order_by(model.name.asc()).all()


def get_category(kind, category_id: int, store_id: int):
    model = _category_model(kind)
    category = db.session.query(model).filter_by(id=category_id, store_id=store_id).first()
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _ensure_unique_name(model, store_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(model.id).filter(
        model.store_id == store_id,
        func.lower(model.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A category with this name already exists")


def create_category(kind, store_id: int, payload: dict | None):
    model = _category_model(kind)
    fields = validate_payload(model=model, payload=_strip_store(payload), policy=CATEGORY_POLICY, partial=False)
    if not fields.get("name"):
        raise ValidationError("name is required")

    with atomic("Create category"):
        _ensure_unique_name(model, store_id, fields["name"])
        category = model(store_id=store_id, **fields)
        db.session.add(category)
    return category


def update_category(kind, category_id: int, store_id: int, payload: dict | None):
    model = _category_model(kind)
    fields = validate_payload(model=model, payload=_strip_store(payload), policy=CATEGORY_POLICY, partial=True)
    if "name" in fields and not fields["name"]:
        raise ValidationError("name cannot be blank")

    with atomic("Update category"):
        category = get_category(kind, category_id, store_id)
        if "name" in fields:
            _ensure_unique_name(model, store_id, fields["name"], exclude_id=category.id)
        for key, value in fields.items():
            setattr(category, key, value)
    return category


def delete_category(kind, category_id: int, store_id: int) -> None:
    ctype = category_type(kind)
    with atomic("Delete category"):
        category = get_category(ctype, category_id, store_id)
        for record_model in _CATEGORY_USERS[ctype]:
            in_use = db.session.query(record_model.id).filter_by(category_id=category.id).first()
            if in_use is not None:
                raise ConflictError("Category is in use and cannot be deleted")
        db.session.delete(category)


# =============================================================================
# VENDORS / CLIENTS
# =============================================================================

def _contact_model(contact_type: str):
    if contact_type == "vendor":
        return Vendor
    if contact_type == "client":
        return Client
    raise ValidationError(f"Unknown contact type: {contact_type}")


def list_contacts(contact_type: str, store_id: int, search: str | None = None) -> list:
    model = _contact_model(contact_type)
    query = db.session.query(model).filter(model.store_id == store_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(model.name.ilike(pattern), model.phone.ilike(pattern)))
    return query.order_by(model.name.asc(), model.id.asc()).all()


def get_contact(contact_type: str, contact_id: int, store_id: int):
    model = _contact_model(contact_type)
    contact = db.session.query(model).filter_by(id=contact_id, store_id=store_id).first()
    if contact is None:
        raise NotFoundError(f"{contact_type.capitalize()} not found")
    return contact


def _ensure_unique_phone(model, store_id: int, phone: str | None, exclude_id: int | None = None) -> None:
    if not phone:
        return
    query = db.session.query(model.id).filter(model.store_id == store_id, model.phone == phone)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A contact with this phone already exists")


def create_contact(contact_type: str, store_id: int, payload: dict | None):
    model = _contact_model(contact_type)
    fields = validate_payload(model=model, payload=_strip_store(payload), policy=CONTACT_POLICY, partial=False)
    if not fields.get("name"):
        raise ValidationError("name is required")

    with atomic(f"Create {contact_type}"):
        _ensure_unique_phone(model, store_id, fields.get("phone"))
        contact = model(store_id=store_id, **fields)
        db.session.add(contact)
    return contact


def update_contact(contact_type: str, contact_id: int, store_id: int, payload: dict | None):
    model = _contact_model(contact_type)
    fields = validate_payload(model=model, payload=_strip_store(payload), policy=CONTACT_POLICY, partial=True)

    with atomic(f"Update {contact_type}"):
        contact = get_contact(contact_type, contact_id, store_id)
        if "phone" in fields:
            _ensure_unique_phone(model, store_id, fields["phone"], exclude_id=contact.id)
        for key, value in fields.items():
            setattr(contact, key, value)
    return contact
