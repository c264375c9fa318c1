# Overview: Validation and read models for ledger records; routes call this, it calls the sequencer and the status service.

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..extensions import db
from ..kinds import KindBinding, RecordKind, get_binding
from ..models import Client, User, Vendor
from ..validation import (
    DEFAULT_CURRENCY,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_amount_cents,
    parse_currency,
    validate_payload,
)
from . import sequence_service, settlement_service, status_service
from .record_lookup import load_record

_CONTACT_DISPLAY = {"vendor_id": (Vendor, "vendor"), "client_id": (Client, "client")}


def _policy(binding: KindBinding) -> ModelValidationPolicy:
    return ModelValidationPolicy(writable_fields=binding.editable_fields)


def _check_references(binding: KindBinding, store_id: int, fields: dict) -> None:
    """Category / vendor / client ids must point into the same store."""
    for key, ref_model in binding.reference_fields.items():
        ref_id = fields.get(key)
        if ref_id is None:
            continue
        exists = db.session.query(ref_model.id).filter_by(id=ref_id, store_id=store_id).first()
        if exists is None:
            raise NotFoundError(f"{key.removesuffix('_id').capitalize()} not found")


def parse_record_payload(binding: KindBinding, store_id: int, payload: dict | None, *, partial: bool) -> dict:
    """
    Turn a client payload into model column values.

    "amount" (decimal) becomes amount_cents; currency defaults to USD on
    create; "status" is only accepted on updates and is passed through for
    the status service to check.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    payload.pop("store_id", None)

    fields: dict = {}
    if "amount" in payload:
        fields["amount_cents"] = parse_amount_cents(payload.pop("amount"))
    elif not partial:
        raise ValidationError("amount is required")

    if "currency" in payload:
        fields["currency"] = parse_currency(payload.pop("currency"))
    elif not partial:
        fields["currency"] = DEFAULT_CURRENCY

    if partial and "status" in payload:
        fields["status"] = payload.pop("status")

    fields.update(validate_payload(model=binding.model, payload=payload, policy=_policy(binding), partial=partial))
    _check_references(binding, store_id, fields)
    return fields


def _materialize_many(binding: KindBinding, records: list) -> list[dict]:
    """
    Serialize records with display names resolved at read time.

    One query per lookup table, whatever the number of records.
    """
    if not records:
        return []

    user_ids = {r.created_by for r in records} | {r.updated_by for r in records if r.updated_by}
    users = dict(db.session.query(User.id, User.name).filter(User.id.in_(user_ids)).all())

    category_model = binding.reference_fields["category_id"]
    category_ids = {r.category_id for r in records if r.category_id}
    categories = {
        c.id: c
        for c in db.session.query(category_model).filter(category_model.id.in_(category_ids)).all()
    } if category_ids else {}

    contacts: dict[str, dict[int, str]] = {}
    for key, (contact_model, _prefix) in _CONTACT_DISPLAY.items():
        if key not in binding.reference_fields:
            continue
        ids = {getattr(r, key) for r in records if getattr(r, key)}
        contacts[key] = dict(
            db.session.query(contact_model.id, contact_model.name).filter(contact_model.id.in_(ids)).all()
        ) if ids else {}

    balances = settlement_service.get_balances(binding.kind, records) if binding.accepts_payments else {}

    result = []
    for record in records:
        data = record.to_dict()
        data["kind"] = binding.kind.value
        data["created_by_name"] = users.get(record.created_by)
        data["updated_by_name"] = users.get(record.updated_by) if record.updated_by else None

        category = categories.get(record.category_id)
        data["category_name"] = category.name if category else None
        data["category_color"] = category.color if category else None

        for key, names in contacts.items():
            prefix = _CONTACT_DISPLAY[key][1]
            contact_name = names.get(getattr(record, key))
            # Free-text name on the record wins over the linked contact
            if not data.get(f"{prefix}_name"):
                data[f"{prefix}_name"] = contact_name

        if record.id in balances:
            data.update(balances[record.id].to_dict())
        result.append(data)
    return result


def materialize(binding: KindBinding, record) -> dict:
    return _materialize_many(binding, [record])[0]


def _parse_initial_payment(binding: KindBinding, raw) -> dict | None:
    """{"amount": > 0, "notes"?} on create; only payable kinds accept it."""
    if raw is None:
        return None
    if not binding.accepts_payments:
        raise ValidationError(f"{binding.label} records do not accept payments")
    if not isinstance(raw, dict):
        raise ValidationError("initial_payment must be an object")
    unknown = set(raw) - {"amount", "notes"}
    if unknown:
        raise ValidationError(f"Unknown initial_payment fields: {', '.join(sorted(unknown))}")

    notes = raw.get("notes")
    if notes is not None:
        notes = str(notes).strip() or None
    return {
        "amount_cents": parse_amount_cents(raw.get("amount"), field="initial_payment.amount", allow_zero=False),
        "notes": notes,
    }


def create(kind: RecordKind | str, store_id: int, actor_id: int, payload: dict | None) -> dict:
    binding = get_binding(kind)
    initial_payment = None
    if isinstance(payload, dict) and "initial_payment" in payload:
        payload = dict(payload)
        initial_payment = _parse_initial_payment(binding, payload.pop("initial_payment"))
    fields = parse_record_payload(binding, store_id, payload, partial=False)
    record = sequence_service.create_record(
        binding.kind,
        store_id=store_id,
        actor_id=actor_id,
        fields=fields,
        initial_payment=initial_payment,
    )
    # Read back the committed row so the response reflects what is stored
    db.session.expire(record)
    return materialize(binding, load_record(binding, record.id, store_id))


def get(kind: RecordKind | str, record_id: int, store_id: int) -> dict:
    binding = get_binding(kind)
    return materialize(binding, load_record(binding, record_id, store_id))


def list_records(
    kind: RecordKind | str,
    store_id: int,
    *,
    status: str | None = None,
    references: dict | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[dict], int]:
    """Records of a store, newest first, with total count for pagination."""
    binding = get_binding(kind)
    model = binding.model

    query = db.session.query(model).filter(model.store_id == store_id)
    if status:
        query = query.filter(model.status == status_service.validate_status(binding, status))
    for key, value in (references or {}).items():
        if value is None:
            continue
        if key not in binding.reference_fields:
            raise ValidationError(f"Unknown filter: {key}")
        query = query.filter(getattr(model, key) == value)
    if date_from:
        query = query.filter(model.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(model.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    total = query.count()
    records = (
        query.order_by(model.created_at.desc(), model.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return _materialize_many(binding, records), total


def update(kind: RecordKind | str, record_id: int, store_id: int, actor_id: int, payload: dict | None) -> dict:
    binding = get_binding(kind)
    changes = parse_record_payload(binding, store_id, payload, partial=True)
    record = status_service.update_record(binding.kind, record_id, store_id, changes, actor_id)
    return materialize(binding, record)
