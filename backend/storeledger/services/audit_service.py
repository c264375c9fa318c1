# Overview: Append-only audit trail for ledger records; rows are written in the caller's transaction.

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar

from ..extensions import db
from ..kinds import AuditAction, KindBinding, RecordKind, get_binding
from ..models import User
from ..time_utils import to_iso_date, to_utc_z, utcnow
from ..validation import ValidationError
from .record_lookup import load_record

"""
Audit Log Invariants

- Rows are only ever inserted; there is no update or delete path.
- A row is flushed in the same transaction as the mutation it records, so
  both commit or neither does. This module never commits.
- details follow a closed schema per action (the dataclasses below).
- Readers order by (created_at, id).
"""


@dataclass(frozen=True)
class CreatedDetails:
    ACTION: ClassVar[str] = AuditAction.CREATED
    document_number: int


@dataclass(frozen=True)
class UpdatedDetails:
    ACTION: ClassVar[str] = AuditAction.UPDATED
    changes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class StatusChangeDetails:
    """Action is the kind's action for to_status (marked_paid, cancelled, refunded)."""
    ACTION: ClassVar[str | None] = None
    from_status: str
    to_status: str
    changes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentDetails:
    ACTION: ClassVar[str] = AuditAction.PAYMENT
    payment_id: int
    amount_cents: int
    currency: str
    notes: str | None = None


AuditDetails = CreatedDetails | UpdatedDetails | StatusChangeDetails | PaymentDetails


def jsonable(value: Any) -> Any:
    """Make a field value safe for the JSON details column."""
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return to_iso_date(value)
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


def _resolve_action(binding: KindBinding, details) -> str:
    if isinstance(details, StatusChangeDetails):
        action = binding.status_actions.get(details.to_status)
        if action is None:
            raise ValidationError(f"No audit action for status {details.to_status!r}")
        return action
    if isinstance(details, (CreatedDetails, UpdatedDetails, PaymentDetails)):
        return details.ACTION
    raise ValidationError(f"Unsupported audit details: {type(details).__name__}")


def append_audit(kind: RecordKind | str, record_id: int, actor_id: int | None, details):
    """
    Append one audit row for a record inside the current transaction.

    Raises ValidationError if the details type or resulting action is not
    legal for the kind (e.g. a payment row on a sale).
    """
    binding = get_binding(kind)
    action = _resolve_action(binding, details)
    if action not in binding.audit_actions:
        raise ValidationError(f"Action {action!r} is not valid for {binding.kind.value}")

    row = binding.log_model(
        user_id=actor_id,
        action=action,
        details=jsonable(asdict(details)),
        created_at=utcnow(),
    )
    setattr(row, binding.parent_column, record_id)
    db.session.add(row)
    db.session.flush()  # surfaces FK / constraint errors inside the caller's transaction
    return row


def list_audit_entries(kind: RecordKind | str, record_id: int, store_id: int) -> list[dict]:
    """Audit rows of one record, oldest first, with the actor's current name."""
    binding = get_binding(kind)
    load_record(binding, record_id, store_id)

    log_model = binding.log_model
    rows = (
        db.session.query(log_model, User.name)
        .outerjoin(User, User.id == log_model.user_id)
        .filter(getattr(log_model, binding.parent_column) == record_id)
        .order_by(log_model.created_at.asc(), log_model.id.asc())
        .all()
    )
    result = []
    for entry, user_name in rows:
        data = entry.to_dict()
        data["user_name"] = user_name
        result.append(data)
    return result
