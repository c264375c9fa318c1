# Overview: Pytest coverage for partial payments and derived balances.

"""
Settlement Tests

Verifies:
- outstanding = amount - sum(payments), including overpayment below zero
- A payment writes exactly one "payment" audit row and never changes status
- Cancelled records and kinds without payments reject payments
- Payments use the record's currency; pending totals are grouped by currency
"""

import pytest

from storeledger.kinds import RecordKind
from storeledger.models import ExpenseLog, ExpensePayment, ReceivableLog
from storeledger.services import sequence_service, settlement_service, status_service
from storeledger.validation import ConflictError, NotFoundError, ValidationError


def _create(kind, store, user, amount_cents, currency="USD"):
    return sequence_service.create_record(
        kind,
        store_id=store.id,
        actor_id=user.id,
        fields={"amount_cents": amount_cents, "currency": currency},
    )


def _pay(kind, record, store, user, amount_cents, currency="USD", notes=None):
    return settlement_service.record_payment(
        kind,
        record.id,
        store.id,
        amount_cents=amount_cents,
        currency=currency,
        notes=notes,
        actor_id=user.id,
    )


# =============================================================================
# BALANCES
# =============================================================================


class TestBalances:

    def test_no_payments(self, db_session, store_a, owner_a):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 10000)
        balance = settlement_service.get_balance(RecordKind.EXPENSE, expense)
        assert balance.total_paid_cents == 0
        assert balance.outstanding_cents == 10000

    def test_overpayment_goes_negative(self, db_session, store_a, owner_a):
        """Amount 100.00 with payments of 60.00 and 60.00 leaves -20.00."""
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 10000)
        _pay(RecordKind.EXPENSE, expense, store_a, owner_a, 6000)
        _pay(RecordKind.EXPENSE, expense, store_a, owner_a, 6000)

        balance = settlement_service.get_balance(RecordKind.EXPENSE, expense)
        assert balance.total_paid_cents == 12000
        assert balance.outstanding_cents == -2000
        assert balance.to_dict()["outstanding"] == "-20.00"

    def test_batch_balances(self, db_session, store_a, owner_a):
        first = _create(RecordKind.RECEIVABLE, store_a, owner_a, 5000)
        second = _create(RecordKind.RECEIVABLE, store_a, owner_a, 7000)
        _pay(RecordKind.RECEIVABLE, first, store_a, owner_a, 1500)

        balances = settlement_service.get_balances(RecordKind.RECEIVABLE, [first, second])
        assert balances[first.id].outstanding_cents == 3500
        assert balances[second.id].outstanding_cents == 7000
        assert settlement_service.get_balances(RecordKind.RECEIVABLE, []) == {}


# =============================================================================
# RECORDING PAYMENTS
# =============================================================================


class TestRecordPayment:

    def test_payment_writes_audit_row(self, db_session, store_a, owner_a):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 10000)
        payment = _pay(RecordKind.EXPENSE, expense, store_a, owner_a, 2550, notes="First installment")

        logs = db_session.query(ExpenseLog).filter_by(expense_id=expense.id, action="payment").all()
        assert len(logs) == 1
        assert logs[0].details == {
            "payment_id": payment.id,
            "amount_cents": 2550,
            "currency": "USD",
            "notes": "First installment",
        }

    def test_full_payment_does_not_change_status(self, db_session, store_a, owner_a):
        receivable = _create(RecordKind.RECEIVABLE, store_a, owner_a, 4000)
        _pay(RecordKind.RECEIVABLE, receivable, store_a, owner_a, 4000)

        db_session.refresh(receivable)
        assert receivable.status == "pending"
        assert receivable.paid_at is None

    def test_paid_record_still_accepts_payment(self, db_session, store_a, owner_a):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 4000)
        status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "paid", owner_a.id)
        _pay(RecordKind.EXPENSE, expense, store_a, owner_a, 4000)
        assert db_session.query(ExpensePayment).filter_by(expense_id=expense.id).count() == 1

    def test_cancelled_record_rejects_payment(self, db_session, store_a, owner_a):
        receivable = _create(RecordKind.RECEIVABLE, store_a, owner_a, 4000)
        status_service.change_status(RecordKind.RECEIVABLE, receivable.id, store_a.id, "cancelled", owner_a.id)

        with pytest.raises(ConflictError):
            _pay(RecordKind.RECEIVABLE, receivable, store_a, owner_a, 100)
        assert db_session.query(ReceivableLog).filter_by(
            receivable_id=receivable.id, action="payment"
        ).count() == 0

    @pytest.mark.parametrize("amount", [0, -100, True])
    def test_non_positive_amount_rejected(self, db_session, store_a, owner_a, amount):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 4000)
        with pytest.raises(ValidationError):
            _pay(RecordKind.EXPENSE, expense, store_a, owner_a, amount)

    def test_sale_has_no_payments(self, db_session, store_a, owner_a):
        sale = _create(RecordKind.SALE, store_a, owner_a, 4000)
        with pytest.raises(ValidationError):
            _pay(RecordKind.SALE, sale, store_a, owner_a, 100)

    def test_payment_on_other_store_record(self, db_session, store_a, store_b, owner_a, owner_b):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 4000)
        with pytest.raises(NotFoundError):
            _pay(RecordKind.EXPENSE, expense, store_b, owner_b, 100)

    def test_list_payments_in_order(self, db_session, store_a, owner_a):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 9000)
        for cents in (1000, 2000, 3000):
            _pay(RecordKind.EXPENSE, expense, store_a, owner_a, cents)

        payments = settlement_service.list_payments(RecordKind.EXPENSE, expense.id, store_a.id)
        assert [p["amount_cents"] for p in payments] == [1000, 2000, 3000]
        assert payments[0]["created_by_name"] == "Owner A"
        assert payments[0]["amount"] == "10.00"


# =============================================================================
# PAYMENT CURRENCY
# =============================================================================


class TestPaymentCurrency:

    def test_defaults_to_record_currency(self, db_session, store_a, owner_a):
        expense = _create(RecordKind.EXPENSE, store_a, owner_a, 10000, "EUR")
        payment = _pay(RecordKind.EXPENSE, expense, store_a, owner_a, 4000, currency=None)

        assert payment.currency == "EUR"
        log = db_session.query(ExpenseLog).filter_by(expense_id=expense.id, action="payment").one()
        assert log.details["currency"] == "EUR"

        totals = settlement_service.pending_totals_by_currency(RecordKind.EXPENSE, store_a.id)
        assert totals == [{"currency": "EUR", "outstanding_cents": 6000, "outstanding": "60.00", "count": 1}]

    def test_mismatched_currency_rejected(self, db_session, store_a, owner_a):
        receivable = _create(RecordKind.RECEIVABLE, store_a, owner_a, 10000, "VES")

        with pytest.raises(ValidationError):
            _pay(RecordKind.RECEIVABLE, receivable, store_a, owner_a, 4000, currency="USD")
        assert settlement_service.get_balance(RecordKind.RECEIVABLE, receivable).outstanding_cents == 10000
        assert db_session.query(ReceivableLog).filter_by(
            receivable_id=receivable.id, action="payment"
        ).count() == 0


# =============================================================================
# PENDING TOTALS
# =============================================================================


class TestPendingTotals:

    def test_grouped_by_currency(self, db_session, store_a, store_b, owner_a, owner_b):
        usd_1 = _create(RecordKind.EXPENSE, store_a, owner_a, 10000, "USD")
        _create(RecordKind.EXPENSE, store_a, owner_a, 5000, "USD")
        _create(RecordKind.EXPENSE, store_a, owner_a, 300000, "VES")
        paid = _create(RecordKind.EXPENSE, store_a, owner_a, 99900, "USD")
        _create(RecordKind.EXPENSE, store_b, owner_b, 7777, "USD")

        _pay(RecordKind.EXPENSE, usd_1, store_a, owner_a, 2500)
        status_service.change_status(RecordKind.EXPENSE, paid.id, store_a.id, "paid", owner_a.id)

        totals = settlement_service.pending_totals_by_currency(RecordKind.EXPENSE, store_a.id)
        assert totals == [
            {"currency": "USD", "outstanding_cents": 12500, "outstanding": "125.00", "count": 2},
            {"currency": "VES", "outstanding_cents": 300000, "outstanding": "3000.00", "count": 1},
        ]

    def test_empty_store(self, db_session, store_a):
        assert settlement_service.pending_totals_by_currency(RecordKind.RECEIVABLE, store_a.id) == []
