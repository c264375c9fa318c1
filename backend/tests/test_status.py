# Overview: Pytest coverage for the record status state machine and paid_at consistency.

"""
Status Transition Tests

Verifies:
- pending -> paid stamps paid_at; pending -> cancelled leaves it empty
- paid and cancelled are terminal (paid -> cancelled is rejected)
- completed -> refunded / cancelled clears paid_at for sales and purchases
- Same-status requests are no-ops without audit rows
- The database rejects a status / paid_at mismatch written around the services
"""

import pytest
from sqlalchemy.exc import IntegrityError

from storeledger.kinds import RecordKind
from storeledger.models import Expense, ExpenseLog, Sale, SaleLog
from storeledger.services import sequence_service, status_service
from storeledger.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def expense(db_session, store_a, owner_a):
    return sequence_service.create_record(
        RecordKind.EXPENSE,
        store_id=store_a.id,
        actor_id=owner_a.id,
        fields={"amount_cents": 10000, "currency": "USD", "description": "Electricity"},
    )


@pytest.fixture
def sale(db_session, store_a, owner_a):
    return sequence_service.create_record(
        RecordKind.SALE,
        store_id=store_a.id,
        actor_id=owner_a.id,
        fields={"amount_cents": 2500, "currency": "USD", "items": []},
    )


def _actions(db_session, log_model, column, record_id):
    rows = (
        db_session.query(log_model)
        .filter(getattr(log_model, column) == record_id)
        .order_by(log_model.id.asc())
        .all()
    )
    return [r.action for r in rows]


# =============================================================================
# PAYABLE KINDS
# =============================================================================


class TestPayableTransitions:

    def test_mark_paid_sets_paid_at(self, db_session, store_a, owner_a, expense):
        record = status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "paid", owner_a.id)

        assert record.status == "paid"
        assert record.paid_at is not None
        assert record.updated_by == owner_a.id
        assert _actions(db_session, ExpenseLog, "expense_id", expense.id) == ["created", "marked_paid"]

    def test_status_log_details(self, db_session, store_a, owner_a, expense):
        status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "cancelled", owner_a.id)

        log = db_session.query(ExpenseLog).filter_by(expense_id=expense.id, action="cancelled").one()
        assert log.details["from_status"] == "pending"
        assert log.details["to_status"] == "cancelled"
        assert log.details["changes"]["status"] == "cancelled"
        assert log.details["changes"]["paid_at"] is None

    def test_paid_to_cancelled_rejected(self, db_session, store_a, owner_a, expense):
        status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "paid", owner_a.id)

        with pytest.raises(ConflictError):
            status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "cancelled", owner_a.id)

        db_session.expire_all()
        record = db_session.get(Expense, expense.id)
        assert record.status == "paid"
        assert record.paid_at is not None
        assert _actions(db_session, ExpenseLog, "expense_id", expense.id) == ["created", "marked_paid"]

    def test_cancelled_is_terminal(self, db_session, store_a, owner_a, expense):
        status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "cancelled", owner_a.id)
        with pytest.raises(ConflictError):
            status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "pending", owner_a.id)

    def test_same_status_is_noop(self, db_session, store_a, owner_a, expense):
        record = status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "pending", owner_a.id)

        assert record.status == "pending"
        assert record.updated_by is None
        assert _actions(db_session, ExpenseLog, "expense_id", expense.id) == ["created"]

    @pytest.mark.parametrize("bad_status", ["PAID", "refunded", "", None, 3])
    def test_unknown_status_rejected(self, db_session, store_a, owner_a, expense, bad_status):
        with pytest.raises(ValidationError):
            status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, bad_status, owner_a.id)

    def test_other_store_cannot_transition(self, db_session, store_b, owner_b, expense):
        with pytest.raises(NotFoundError):
            status_service.change_status(RecordKind.EXPENSE, expense.id, store_b.id, "paid", owner_b.id)


# =============================================================================
# FIELD EDITS
# =============================================================================


class TestUpdateRecord:

    def test_field_edit_logs_updated(self, db_session, store_a, owner_a, expense):
        record = status_service.update_record(
            RecordKind.EXPENSE, expense.id, store_a.id, {"description": "Power bill", "amount_cents": 12000}, owner_a.id
        )

        assert record.description == "Power bill"
        assert record.amount_cents == 12000
        log = db_session.query(ExpenseLog).filter_by(expense_id=expense.id, action="updated").one()
        assert log.details == {"changes": {"description": "Power bill", "amount_cents": 12000}}

    def test_fields_and_status_write_one_row(self, db_session, store_a, owner_a, expense):
        status_service.update_record(
            RecordKind.EXPENSE, expense.id, store_a.id, {"description": "Paid in cash", "status": "paid"}, owner_a.id
        )

        assert _actions(db_session, ExpenseLog, "expense_id", expense.id) == ["created", "marked_paid"]
        log = db_session.query(ExpenseLog).filter_by(expense_id=expense.id, action="marked_paid").one()
        assert log.details["changes"]["description"] == "Paid in cash"

    def test_unchanged_fields_are_noop(self, db_session, store_a, owner_a, expense):
        status_service.update_record(
            RecordKind.EXPENSE, expense.id, store_a.id, {"description": "Electricity"}, owner_a.id
        )
        assert _actions(db_session, ExpenseLog, "expense_id", expense.id) == ["created"]

    def test_rejected_transition_keeps_field_edits_out(self, db_session, store_a, owner_a, expense):
        status_service.change_status(RecordKind.EXPENSE, expense.id, store_a.id, "paid", owner_a.id)
        with pytest.raises(ConflictError):
            status_service.update_record(
                RecordKind.EXPENSE, expense.id, store_a.id, {"description": "x", "status": "cancelled"}, owner_a.id
            )
        db_session.expire_all()
        assert db_session.get(Expense, expense.id).description == "Electricity"


# =============================================================================
# COMPLETED KINDS
# =============================================================================


class TestCompletedTransitions:

    def test_refund_clears_paid_at(self, db_session, store_a, owner_a, sale):
        record = status_service.change_status(RecordKind.SALE, sale.id, store_a.id, "refunded", owner_a.id)

        assert record.status == "refunded"
        assert record.paid_at is None
        assert _actions(db_session, SaleLog, "sale_id", sale.id) == ["created", "refunded"]

    def test_cancel_then_refund_rejected(self, db_session, store_a, owner_a, sale):
        status_service.change_status(RecordKind.SALE, sale.id, store_a.id, "cancelled", owner_a.id)
        with pytest.raises(ConflictError):
            status_service.change_status(RecordKind.SALE, sale.id, store_a.id, "refunded", owner_a.id)

    def test_sale_cannot_be_marked_paid(self, db_session, store_a, owner_a, sale):
        with pytest.raises(ValidationError):
            status_service.change_status(RecordKind.SALE, sale.id, store_a.id, "paid", owner_a.id)


# =============================================================================
# STORAGE CONSTRAINT
# =============================================================================


class TestPaidAtConstraint:

    def test_paid_without_paid_at_rejected(self, db_session, expense):
        record = db_session.get(Expense, expense.id)
        record.status = "paid"
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_completed_sale_without_paid_at_rejected(self, db_session, sale):
        record = db_session.get(Sale, sale.id)
        record.paid_at = None
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
