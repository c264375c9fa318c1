# Overview: Per-currency financial summary of a store built from ledger records and payments.

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy import func

from ..extensions import db
from ..kinds import RecordKind
from ..models import Expense, ExpensePayment, Purchase, Receivable, ReceivablePayment, Sale
from ..time_utils import to_iso_date
from ..validation import ValidationError, format_cents
from .settlement_service import pending_totals_by_currency

_FLOW_KEYS = (
    "sales_revenue_cents",
    "purchases_spent_cents",
    "expenses_paid_cents",
    "receivables_collected_cents",
    "payables_outstanding_cents",
    "receivables_outstanding_cents",
)


def _bounds(date_from: date | None, date_to: date | None) -> tuple[datetime | None, datetime | None]:
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must be on or before date_to")
    start = datetime.combine(date_from, time.min) if date_from else None
    end = datetime.combine(date_to + timedelta(days=1), time.min) if date_to else None
    return start, end


def _in_range(query, column, start, end):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column < end)
    return query


def _completed_totals(model, store_id: int, start, end) -> dict[str, int]:
    query = db.session.query(model.currency, func.coalesce(func.sum(model.amount_cents), 0)).filter(
        model.store_id == store_id,
        model.status == "completed",
    )
    query = _in_range(query, model.created_at, start, end)
    return {currency: int(total) for currency, total in query.group_by(model.currency).all()}


def _payment_totals(record_model, payment_model, parent_column: str, store_id: int, start, end) -> dict[str, int]:
    query = (
        db.session.query(payment_model.currency, func.coalesce(func.sum(payment_model.amount_cents), 0))
        .join(record_model, record_model.id == getattr(payment_model, parent_column))
        .filter(record_model.store_id == store_id)
    )
    query = _in_range(query, payment_model.created_at, start, end)
    return {currency: int(total) for currency, total in query.group_by(payment_model.currency).all()}


def financial_summary(store_id: int, date_from: date | None = None, date_to: date | None = None) -> dict:
    """
    Money in and out of a store, per currency.

    Flows (sales, purchases, payments) are filtered by creation date,
    inclusive on both ends. Outstanding balances are as of now.
    Currencies are never converted or mixed.
    """
    start, end = _bounds(date_from, date_to)

    flows = {
        "sales_revenue_cents": _completed_totals(Sale, store_id, start, end),
        "purchases_spent_cents": _completed_totals(Purchase, store_id, start, end),
        "expenses_paid_cents": _payment_totals(Expense, ExpensePayment, "expense_id", store_id, start, end),
        "receivables_collected_cents": _payment_totals(
            Receivable, ReceivablePayment, "receivable_id", store_id, start, end
        ),
        "payables_outstanding_cents": {
            row["currency"]: row["outstanding_cents"]
            for row in pending_totals_by_currency(RecordKind.EXPENSE, store_id)
        },
        "receivables_outstanding_cents": {
            row["currency"]: row["outstanding_cents"]
            for row in pending_totals_by_currency(RecordKind.RECEIVABLE, store_id)
        },
    }

    currencies = sorted({currency for totals in flows.values() for currency in totals})
    rows = []
    for currency in currencies:
        row = {"currency": currency}
        for key in _FLOW_KEYS:
            row[key] = flows[key].get(currency, 0)
        row["net_cash_flow_cents"] = (
            row["sales_revenue_cents"]
            + row["receivables_collected_cents"]
            - row["purchases_spent_cents"]
            - row["expenses_paid_cents"]
        )
        row["net_cash_flow"] = format_cents(row["net_cash_flow_cents"])
        rows.append(row)

    return {
        "store_id": store_id,
        "date_from": to_iso_date(date_from),
        "date_to": to_iso_date(date_to),
        "currencies": rows,
    }
