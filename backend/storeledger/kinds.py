"""
Closed set of money-movement record kinds and their static bindings.

WHY: Every service takes a RecordKind and looks up its KindBinding instead of
building table or column names from strings. Adding a kind means adding a
model and one entry in BINDINGS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .models import (
    Client,
    Expense,
    ExpenseCategory,
    ExpenseLog,
    ExpensePayment,
    IncomeCategory,
    Purchase,
    PurchaseLog,
    Receivable,
    ReceivableLog,
    ReceivablePayment,
    Sale,
    SaleLog,
    Vendor,
)
from .models.expenses import EXPENSE_STATUSES
from .models.purchases import PURCHASE_STATUSES
from .models.receivables import RECEIVABLE_STATUSES
from .models.sales import SALE_STATUSES
from .validation import ValidationError


class RecordKind(str, Enum):
    EXPENSE = "expense"
    PURCHASE = "purchase"
    SALE = "sale"
    RECEIVABLE = "receivable"


class AuditAction:
    CREATED = "created"
    UPDATED = "updated"
    MARKED_PAID = "marked_paid"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PAYMENT = "payment"


@dataclass(frozen=True)
class KindBinding:
    kind: RecordKind
    label: str
    collection: str
    model: type
    log_model: type
    payment_model: type | None
    statuses: tuple[str, ...]
    initial_status: str
    settled_status: str
    transitions: dict[str, frozenset[str]]
    status_actions: dict[str, str]
    editable_fields: frozenset[str]
    reference_fields: dict[str, type] = field(default_factory=dict)
    permission_module: str = ""

    @property
    def number_column(self) -> str:
        return self.model.number_column

    @property
    def parent_column(self) -> str:
        return self.log_model.parent_column

    @property
    def accepts_payments(self) -> bool:
        return self.payment_model is not None

    @property
    def audit_actions(self) -> frozenset[str]:
        actions = {AuditAction.CREATED, AuditAction.UPDATED, *self.status_actions.values()}
        if self.accepts_payments:
            actions.add(AuditAction.PAYMENT)
        return frozenset(actions)

    def can_transition(self, from_status: str, to_status: str) -> bool:
        return to_status in self.transitions.get(from_status, frozenset())


_PAYABLE_TRANSITIONS = {
    "pending": frozenset({"paid", "cancelled"}),
    "paid": frozenset(),
    "cancelled": frozenset(),
}

_PAYABLE_ACTIONS = {
    "paid": AuditAction.MARKED_PAID,
    "cancelled": AuditAction.CANCELLED,
}

_COMPLETED_TRANSITIONS = {
    "completed": frozenset({"refunded", "cancelled"}),
    "refunded": frozenset(),
    "cancelled": frozenset(),
}

_COMPLETED_ACTIONS = {
    "refunded": AuditAction.REFUNDED,
    "cancelled": AuditAction.CANCELLED,
}


BINDINGS: dict[RecordKind, KindBinding] = {
    RecordKind.EXPENSE: KindBinding(
        kind=RecordKind.EXPENSE,
        label="Expense",
        collection="expenses",
        model=Expense,
        log_model=ExpenseLog,
        payment_model=ExpensePayment,
        statuses=EXPENSE_STATUSES,
        initial_status="pending",
        settled_status="paid",
        transitions=_PAYABLE_TRANSITIONS,
        status_actions=_PAYABLE_ACTIONS,
        editable_fields=frozenset({
            "category_id", "vendor_id", "vendor_name", "vendor_phone", "description", "due_date",
        }),
        reference_fields={"category_id": ExpenseCategory, "vendor_id": Vendor},
        permission_module="expenses",
    ),
    RecordKind.PURCHASE: KindBinding(
        kind=RecordKind.PURCHASE,
        label="Purchase",
        collection="purchases",
        model=Purchase,
        log_model=PurchaseLog,
        payment_model=None,
        statuses=PURCHASE_STATUSES,
        initial_status="completed",
        settled_status="completed",
        transitions=_COMPLETED_TRANSITIONS,
        status_actions=_COMPLETED_ACTIONS,
        editable_fields=frozenset({
            "category_id", "vendor_id", "description", "items", "payment_method", "notes",
        }),
        reference_fields={"category_id": ExpenseCategory, "vendor_id": Vendor},
        permission_module="purchases",
    ),
    RecordKind.SALE: KindBinding(
        kind=RecordKind.SALE,
        label="Sale",
        collection="sales",
        model=Sale,
        log_model=SaleLog,
        payment_model=None,
        statuses=SALE_STATUSES,
        initial_status="completed",
        settled_status="completed",
        transitions=_COMPLETED_TRANSITIONS,
        status_actions=_COMPLETED_ACTIONS,
        editable_fields=frozenset({"category_id", "client_id", "items", "payment_method", "notes"}),
        reference_fields={"category_id": IncomeCategory, "client_id": Client},
        permission_module="sales",
    ),
    RecordKind.RECEIVABLE: KindBinding(
        kind=RecordKind.RECEIVABLE,
        label="Receivable",
        collection="receivables",
        model=Receivable,
        log_model=ReceivableLog,
        payment_model=ReceivablePayment,
        statuses=RECEIVABLE_STATUSES,
        initial_status="pending",
        settled_status="paid",
        transitions=_PAYABLE_TRANSITIONS,
        status_actions=_PAYABLE_ACTIONS,
        editable_fields=frozenset({
            "category_id", "client_id", "customer_name", "customer_phone", "description", "due_date",
        }),
        reference_fields={"category_id": IncomeCategory, "client_id": Client},
        permission_module="receivables",
    ),
}


def get_binding(kind: RecordKind | str) -> KindBinding:
    try:
        return BINDINGS[RecordKind(kind)]
    except ValueError:
        raise ValidationError(f"Unknown record kind: {kind}")
