"""
Pytest fixtures for Store Ledger backend tests.

Provides test database setup, two stores with their owners, session tokens
and the test client.
"""

import pytest

from storeledger import create_app
from storeledger.extensions import db
from storeledger.models import User
from storeledger.services import session_service, store_service
from storeledger.services.auth_service import hash_password

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        store_service.ensure_permission_catalog()
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session, password_hash):
    """Factory: create an active user with the shared test password."""
    def _make(name: str, email: str, *, is_admin: bool = False) -> User:
        user = User(name=name, email=email, password_hash=password_hash, is_active=True, is_admin=is_admin)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def owner_a(make_user):
    """Owner of Store A (holds every permission there)."""
    return make_user("Owner A", "owner_a@example.com")


@pytest.fixture(scope='function')
def owner_b(make_user):
    """Owner of Store B."""
    return make_user("Owner B", "owner_b@example.com")


@pytest.fixture(scope='function')
def store_a(db_session, owner_a):
    return store_service.create_store("Store A", owner_a)


@pytest.fixture(scope='function')
def store_b(db_session, owner_b):
    return store_service.create_store("Store B", owner_b)


@pytest.fixture(scope='function')
def token_a(db_session, owner_a):
    _session, token = session_service.create_session(owner_a.id)
    return token


@pytest.fixture(scope='function')
def token_b(db_session, owner_b):
    _session, token = session_service.create_session(owner_b.id)
    return token


@pytest.fixture(scope='function')
def headers_a(token_a):
    return auth_headers(token_a)


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
