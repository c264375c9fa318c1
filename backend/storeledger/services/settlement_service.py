# Overview: Partial payments against payable records and the balances derived from them.

"""
Settlement Service

WHY: Expenses and receivables are often settled in several installments.
Each installment is an immutable payment row; the balance is always derived
from them at read time and never stored.

DESIGN PRINCIPLES:
- outstanding = amount - sum(payments), never clamped (overpayment is negative)
- A payment and its "payment" audit row commit together
- Payments never change status; settling is an explicit status change
- Reads take no locks; a balance may be momentarily stale
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func

from ..extensions import db
from ..kinds import KindBinding, RecordKind, get_binding
from ..models import User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError, format_cents
from .audit_service import PaymentDetails, append_audit
from .concurrency import atomic
from .record_lookup import load_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Balance:
    total_paid_cents: int
    outstanding_cents: int

    def to_dict(self) -> dict:
        return {
            "total_paid_cents": self.total_paid_cents,
            "total_paid": format_cents(self.total_paid_cents),
            "outstanding_cents": self.outstanding_cents,
            "outstanding": format_cents(self.outstanding_cents),
        }


def _payable_binding(kind: RecordKind | str) -> KindBinding:
    binding = get_binding(kind)
    if not binding.accepts_payments:
        raise ValidationError(f"{binding.label} records do not accept payments")
    return binding


def add_payment_row(
    binding: KindBinding,
    record,
    *,
    amount_cents: int,
    currency: str | None,
    notes: str | None,
    actor_id: int,
):
    """
    Insert a payment and its "payment" audit row in the caller's transaction.

    currency defaults to the record's; a different currency is rejected so
    balances never subtract across currencies. Does not commit.
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise ValidationError("amount must be > 0")
    if currency is None:
        currency = record.currency
    elif currency != record.currency:
        raise ValidationError(
            f"Payment currency {currency} does not match {binding.kind.value} currency {record.currency}"
        )

    payment = binding.payment_model(
        amount_cents=amount_cents,
        currency=currency,
        notes=notes,
        created_by=actor_id,
        created_at=utcnow(),
    )
    setattr(payment, binding.parent_column, record.id)
    db.session.add(payment)
    db.session.flush()

    append_audit(
        binding.kind,
        record.id,
        actor_id,
        PaymentDetails(
            payment_id=payment.id,
            amount_cents=amount_cents,
            currency=currency,
            notes=notes,
        ),
    )
    return payment


def record_payment(
    kind: RecordKind | str,
    record_id: int,
    store_id: int,
    *,
    amount_cents: int,
    currency: str | None = None,
    notes: str | None = None,
    actor_id: int,
):
    """
    Record one partial payment and its "payment" audit row atomically.

    Raises:
        ValidationError: kind has no payments, amount_cents <= 0, or a
            currency other than the record's
        NotFoundError: record is not in the store
        ConflictError: record is cancelled
    """
    binding = _payable_binding(kind)
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise ValidationError("amount must be > 0")

    with atomic(f"Record {binding.kind.value} payment"):
        record = load_record(binding, record_id, store_id, for_update=True)
        if record.status == "cancelled":
            raise ConflictError(f"Cannot add payment to a cancelled {binding.kind.value}")

        payment = add_payment_row(
            binding, record, amount_cents=amount_cents, currency=currency, notes=notes, actor_id=actor_id
        )

    logger.info("Recorded payment %s on %s %s", payment.id, binding.kind.value, record_id)
    return payment


def _paid_sums(binding: KindBinding, record_ids: list[int]) -> dict[int, int]:
    payment_model = binding.payment_model
    parent_col = getattr(payment_model, binding.parent_column)
    rows = (
        db.session.query(parent_col, func.coalesce(func.sum(payment_model.amount_cents), 0))
        .filter(parent_col.in_(record_ids))
        .group_by(parent_col)
        .all()
    )
    return {rid: int(total) for rid, total in rows}


def get_balance(kind: RecordKind | str, record) -> Balance:
    binding = _payable_binding(kind)
    paid = _paid_sums(binding, [record.id]).get(record.id, 0)
    return Balance(total_paid_cents=paid, outstanding_cents=record.amount_cents - paid)


def get_balances(kind: RecordKind | str, records: Iterable) -> dict[int, Balance]:
    """Balances for many records with one grouped query (list views)."""
    binding = _payable_binding(kind)
    records = list(records)
    if not records:
        return {}
    sums = _paid_sums(binding, [r.id for r in records])
    return {
        r.id: Balance(total_paid_cents=sums.get(r.id, 0), outstanding_cents=r.amount_cents - sums.get(r.id, 0))
        for r in records
    }


def list_payments(kind: RecordKind | str, record_id: int, store_id: int) -> list[dict]:
    """Payments of one record in creation order, with the recorder's name."""
    binding = _payable_binding(kind)
    load_record(binding, record_id, store_id)

    payment_model = binding.payment_model
    rows = (
        db.session.query(payment_model, User.name)
        .outerjoin(User, User.id == payment_model.created_by)
        .filter(getattr(payment_model, binding.parent_column) == record_id)
        .order_by(payment_model.created_at.asc(), payment_model.id.asc())
        .all()
    )
    result = []
    for payment, user_name in rows:
        data = payment.to_dict()
        data["created_by_name"] = user_name
        result.append(data)
    return result


def pending_totals_by_currency(kind: RecordKind | str, store_id: int) -> list[dict]:
    """
    Outstanding amount of all pending records of the store, per currency.

    Uses each record's own currency; payments are subtracted as recorded.
    """
    binding = _payable_binding(kind)
    model = binding.model
    payment_model = binding.payment_model
    parent_col = getattr(payment_model, binding.parent_column)

    paid_subq = (
        db.session.query(
            parent_col.label("record_id"),
            func.sum(payment_model.amount_cents).label("paid_cents"),
        )
        .group_by(parent_col)
        .subquery()
    )

    rows = (
        db.session.query(
            model.currency,
            func.coalesce(func.sum(model.amount_cents - func.coalesce(paid_subq.c.paid_cents, 0)), 0),
            func.count(model.id),
        )
        .outerjoin(paid_subq, paid_subq.c.record_id == model.id)
        .filter(model.store_id == store_id, model.status == "pending")
        .group_by(model.currency)
        .order_by(model.currency.asc())
        .all()
    )
    return [
        {
            "currency": currency,
            "outstanding_cents": int(total),
            "outstanding": format_cents(int(total)),
            "count": int(count),
        }
        for currency, total, count in rows
    ]
