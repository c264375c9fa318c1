# Overview: Status state machine and field edits for ledger records; keeps paid_at consistent with status.

from __future__ import annotations

import logging
from typing import Any

from ..kinds import KindBinding, RecordKind, get_binding
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from .audit_service import StatusChangeDetails, UpdatedDetails, append_audit, jsonable
from .concurrency import atomic
from .record_lookup import load_record

logger = logging.getLogger(__name__)


def validate_status(binding: KindBinding, status: Any) -> str:
    if not isinstance(status, str) or status not in binding.statuses:
        raise ValidationError(
            f"Invalid status for {binding.kind.value}. Must be one of: {', '.join(binding.statuses)}"
        )
    return status


def _apply_status(binding: KindBinding, record, new_status: str, now) -> dict:
    """
    The only writer of status and paid_at.

    Entering the settled status stamps paid_at; leaving it clears paid_at.
    """
    record.status = new_status
    record.paid_at = now if new_status == binding.settled_status else None
    return {"status": new_status, "paid_at": record.paid_at}


def _check_transition(binding: KindBinding, current: str, target: str) -> None:
    if not binding.can_transition(current, target):
        raise ConflictError(f"Cannot change {binding.kind.value} status from {current} to {target}")


def change_status(kind: RecordKind | str, record_id: int, store_id: int, status: Any, actor_id: int):
    """
    Move a record to another status.

    Same status is a no-op (no write, no audit row). A status that exists but
    is not reachable from the current one raises ConflictError.
    """
    return update_record(kind, record_id, store_id, {"status": status}, actor_id)


def update_record(kind: RecordKind | str, record_id: int, store_id: int, changes: dict, actor_id: int):
    """
    Apply validated field changes and an optional status transition.

    Writes exactly one audit row: the target status's action when the status
    changes, otherwise "updated". Fields equal to their current value are
    dropped; if nothing is left the record is returned untouched.
    """
    binding = get_binding(kind)
    changes = dict(changes)
    target_status = None
    if "status" in changes:
        target_status = validate_status(binding, changes.pop("status"))

    with atomic(f"Update {binding.kind.value}"):
        record = load_record(binding, record_id, store_id, for_update=True)
        current_status = record.status

        if target_status == current_status:
            target_status = None
        if target_status is not None:
            _check_transition(binding, current_status, target_status)

        field_changes = {k: v for k, v in changes.items() if getattr(record, k) != v}
        if not field_changes and target_status is None:
            return record

        now = utcnow()
        for key, value in field_changes.items():
            setattr(record, key, value)
        record.updated_by = actor_id
        record.updated_at = now

        if target_status is not None:
            applied = dict(field_changes)
            applied.update(_apply_status(binding, record, target_status, now))
            details = StatusChangeDetails(
                from_status=current_status,
                to_status=target_status,
                changes=jsonable(applied),
            )
        else:
            details = UpdatedDetails(changes=jsonable(field_changes))

        append_audit(binding.kind, record.id, actor_id, details)

    if target_status is not None:
        logger.info(
            "%s %s status %s -> %s", binding.kind.value, record_id, current_status, target_status
        )
    return record
