# Overview: Stores, memberships and per-store permission grants.

from __future__ import annotations

from ..extensions import db
from ..models import Permission, Store, StoreUser, StoreUserPermission, User
from ..permissions import PERMISSION_DEFINITIONS, get_all_permission_codes, validate_permission_code
from ..validation import NotFoundError, ValidationError
from .concurrency import atomic


def ensure_permission_catalog() -> int:
    """
    Upsert every permission definition. Safe to call repeatedly.

    Returns the number of permissions created. Does not commit.
    """
    existing = {p.code: p for p in db.session.query(Permission).all()}
    created = 0
    for code, name, module in PERMISSION_DEFINITIONS:
        perm = existing.get(code)
        if perm is None:
            db.session.add(Permission(code=code, name=name, module=module))
            created += 1
        else:
            perm.name = name
            perm.module = module
    db.session.flush()
    return created


def create_store(name: str, owner: User, description: str | None = None) -> Store:
    if not name or not name.strip():
        raise ValidationError("Store name is required")

    with atomic("Create store"):
        store = Store(name=name.strip(), description=description, created_by_user_id=owner.id)
        db.session.add(store)
        db.session.flush()
        db.session.add(StoreUser(store_id=store.id, user_id=owner.id))
    return store


def get_store(store_id: int) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if store is None:
        raise NotFoundError("Store not found")
    return store


def list_user_stores(user: User) -> list[Store]:
    """Stores the user created or is a member of (all stores for admins)."""
    query = db.session.query(Store)
    if not user.is_admin:
        member_ids = db.session.query(StoreUser.store_id).filter(StoreUser.user_id == user.id)
        query = query.filter((Store.created_by_user_id == user.id) | Store.id.in_(member_ids))
    return query.order_by(Store.name.asc(), Store.id.asc()).all()


def add_member(store: Store, user: User, permission_codes: list[str] | None = None) -> list[str]:
    """
    Add a user to a store and grant the given permissions.

    Existing membership and grants are kept; granting twice is a no-op.
    Returns the user's resulting permission codes in the store.
    """
    codes = list(dict.fromkeys(permission_codes or []))
    unknown = [c for c in codes if not validate_permission_code(c)]
    if unknown:
        raise ValidationError(f"Unknown permission codes: {', '.join(unknown)}")

    with atomic("Add store member"):
        ensure_permission_catalog()

        membership = db.session.query(StoreUser).filter_by(store_id=store.id, user_id=user.id).first()
        if membership is None:
            db.session.add(StoreUser(store_id=store.id, user_id=user.id))

        if codes:
            permissions = db.session.query(Permission).filter(Permission.code.in_(codes)).all()
            granted = {
                row.permission_id
                for row in db.session.query(StoreUserPermission).filter_by(store_id=store.id, user_id=user.id)
            }
            for perm in permissions:
                if perm.id not in granted:
                    db.session.add(StoreUserPermission(store_id=store.id, user_id=user.id, permission_id=perm.id))

    return sorted(user_permission_codes(store, user))


def is_member(store: Store, user: User) -> bool:
    if store.created_by_user_id == user.id:
        return True
    return db.session.query(StoreUser.id).filter_by(store_id=store.id, user_id=user.id).first() is not None


def user_permission_codes(store: Store, user: User) -> set[str]:
    """
    Effective permission codes of a user in a store.

    Store creator and platform admins: every code. Other members: their
    grants. Non-members: none.
    """
    if user.is_admin or store.created_by_user_id == user.id:
        return set(get_all_permission_codes())
    rows = (
        db.session.query(Permission.code)
        .join(StoreUserPermission, StoreUserPermission.permission_id == Permission.id)
        .join(
            StoreUser,
            (StoreUser.store_id == StoreUserPermission.store_id) & (StoreUser.user_id == StoreUserPermission.user_id),
        )
        .filter(StoreUserPermission.store_id == store.id, StoreUserPermission.user_id == user.id)
        .all()
    )
    return {code for (code,) in rows}


def has_permission(store: Store, user: User, code: str) -> bool:
    return code in user_permission_codes(store, user)
