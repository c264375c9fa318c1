# Overview: Store-scoped record lookup shared by the ledger services.

from __future__ import annotations

from ..extensions import db
from ..kinds import KindBinding
from ..validation import NotFoundError
from .concurrency import lock_for_update


def load_record(binding: KindBinding, record_id: int, store_id: int, *, for_update: bool = False):
    """
    Fetch a record that belongs to store_id.

    A record of another store is reported exactly like a missing one, so ids
    never leak across tenants.
    """
    model = binding.model
    query = db.session.query(model).filter(model.id == record_id, model.store_id == store_id)
    if for_update:
        query = lock_for_update(query)
    record = query.first()
    if record is None:
        raise NotFoundError(f"{binding.label} not found")
    return record
