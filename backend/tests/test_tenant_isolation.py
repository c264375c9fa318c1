# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that one store's users cannot read or change another
store's ledger.

Two stores with separate owners are created; every attempt by Owner A on
Store B must be denied (403) or look like the record does not exist (404),
and nothing in Store B may change.
"""

import pytest

from conftest import auth_headers
from storeledger.kinds import RecordKind
from storeledger.models import Expense, ExpenseLog, ExpensePayment
from storeledger.services import record_service, store_service
from storeledger.validation import ValidationError


@pytest.fixture
def expense_b(db_session, store_b, owner_b):
    """A pending expense in Store B."""
    return record_service.create(RecordKind.EXPENSE, store_b.id, owner_b.id, {"amount": "80.00"})


class TestStorePermissions:

    def test_owner_has_every_permission(self, db_session, store_a, owner_a):
        assert store_service.has_permission(store_a, owner_a, "expenses.create")
        assert store_service.has_permission(store_a, owner_a, "stores.manage_users")

    def test_owner_has_nothing_in_other_store(self, db_session, store_a, store_b, owner_a):
        assert not store_service.is_member(store_b, owner_a)
        assert store_service.user_permission_codes(store_b, owner_a) == set()

    def test_admin_bypasses_membership(self, db_session, make_user, store_b):
        admin = make_user("Admin", "admin@example.com", is_admin=True)
        assert store_service.has_permission(store_b, admin, "reports.view")

    def test_unknown_permission_code(self, db_session, make_user, store_a):
        cashier = make_user("Cashier", "cashier@example.com")
        with pytest.raises(ValidationError):
            store_service.add_member(store_a, cashier, ["expenses.fly"])


class TestCrossStoreApi:
    """Owner A targets Store B through every route shape."""

    def test_list_denied(self, client, headers_a, store_a, expense_b, store_b):
        resp = client.get(f"/api/expenses?store_id={store_b.id}", headers=headers_a)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "expenses.view"

    def test_record_id_with_own_store_is_not_found(self, client, headers_a, store_a, expense_b):
        resp = client.get(f"/api/expenses/{expense_b['id']}?store_id={store_a.id}", headers=headers_a)
        assert resp.status_code == 404

    def test_status_change_across_stores(self, db_session, client, headers_a, store_a, expense_b):
        resp = client.post(
            f"/api/expenses/{expense_b['id']}/status",
            json={"store_id": store_a.id, "status": "paid"},
            headers=headers_a,
        )
        assert resp.status_code == 404

        expense = db_session.query(Expense).filter_by(id=expense_b["id"]).one()
        assert expense.status == "pending"
        assert expense.paid_at is None

    def test_payment_across_stores(self, db_session, client, headers_a, store_a, expense_b):
        resp = client.post(
            f"/api/expenses/{expense_b['id']}/payments",
            json={"store_id": store_a.id, "amount": "10.00"},
            headers=headers_a,
        )
        assert resp.status_code == 404
        assert db_session.query(ExpensePayment).count() == 0
        # Only the creation row exists for Store B's expense
        assert db_session.query(ExpenseLog).filter_by(expense_id=expense_b["id"]).count() == 1

    def test_logs_across_stores(self, client, headers_a, store_a, expense_b):
        resp = client.get(f"/api/expenses/{expense_b['id']}/logs?store_id={store_a.id}", headers=headers_a)
        assert resp.status_code == 404

    def test_add_member_to_foreign_store(self, client, headers_a, store_b, owner_a):
        resp = client.post(
            f"/api/stores/{store_b.id}/members",
            json={"email": owner_a.email, "permissions": ["expenses.view"]},
            headers=headers_a,
        )
        assert resp.status_code == 403

    def test_store_permissions_route(self, client, headers_a, store_a, store_b):
        resp = client.get(f"/api/stores/{store_a.id}/permissions", headers=headers_a)
        assert resp.status_code == 200
        assert "reports.view" in resp.json["permissions"]

        resp = client.get(f"/api/stores/{store_b.id}/permissions", headers=headers_a)
        assert resp.status_code == 403

    def test_granted_member_can_read(self, client, headers_a, store_a, store_b, owner_a, token_b):
        resp = client.post(
            f"/api/stores/{store_b.id}/members",
            json={"email": owner_a.email, "permissions": ["expenses.view"]},
            headers=auth_headers(token_b),
        )
        assert resp.status_code == 201
        assert resp.json["permissions"] == ["expenses.view"]

        resp = client.get(f"/api/expenses?store_id={store_b.id}", headers=headers_a)
        assert resp.status_code == 200

        resp = client.post(
            "/api/expenses", json={"store_id": store_b.id, "amount": "1.00"}, headers=headers_a
        )
        assert resp.status_code == 403
