# Overview: Pytest coverage for the health endpoint and the Flask CLI commands.

from storeledger.models import Permission, StoreUser, User
from storeledger.permissions import get_all_permission_codes
from storeledger.services import store_service


class TestHealth:

    def test_healthy(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["permissions_initialized"] is True

    def test_degraded_without_permissions(self, client, db_session):
        db_session.query(Permission).delete()
        db_session.commit()

        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"


class TestCli:

    def test_init_permissions_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init-permissions"])
        assert result.exit_code == 0
        assert "0 created" in result.output
        assert db_session.query(Permission).count() == len(get_all_permission_codes())

    def test_create_user_store_and_grant(self, app, db_session, owner_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create", "--name", "Cashier", "--email", "cashier@example.com", "--password", "Password123!",
        ])
        assert result.exit_code == 0, result.output
        cashier = db_session.query(User).filter_by(email="cashier@example.com").one()

        result = runner.invoke(args=["stores", "create", "--name", "Kiosk", "--owner-email", owner_a.email])
        assert result.exit_code == 0, result.output
        store = store_service.list_user_stores(owner_a)[0]
        assert store.name == "Kiosk"

        result = runner.invoke(args=[
            "stores", "grant", "--store-id", str(store.id), "--email", cashier.email,
            "--permission", "sales.view", "--permission", "sales.create",
        ])
        assert result.exit_code == 0, result.output
        assert "sales.create, sales.view" in result.output
        assert db_session.query(StoreUser).filter_by(store_id=store.id, user_id=cashier.id).count() == 1

    def test_weak_password_fails(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--name", "Weak", "--email", "weak@example.com", "--password", "weak",
        ])
        assert result.exit_code != 0
        assert db_session.query(User).filter_by(email="weak@example.com").count() == 0

    def test_grant_unknown_store(self, app, db_session, owner_a):
        result = app.test_cli_runner().invoke(args=[
            "stores", "grant", "--store-id", "999999", "--email", owner_a.email, "--permission", "sales.view",
        ])
        assert result.exit_code != 0
        assert "Store not found" in result.output
