"""
Pytest fixtures for HomeBake backend tests.

Provides the app on an in-memory database, per-test table wipe, a bakery
with one user per role, and auth helpers.
"""

from datetime import datetime

import pytest
from homebake import create_app
from homebake.cache import get_cache
from homebake.config import TestingConfig
from homebake.extensions import db
from homebake.services import bread_type_service
from homebake.services.auth_service import create_user, register_bakery


PASSWORD = "Password123"

# 13:00 bakery-local (UTC+1): morning shift of 2026-03-10
MORNING_NOW = datetime(2026, 3, 10, 12, 0)
# 00:30 bakery-local on the 11th: still the night shift of 2026-03-10
NIGHT_NOW = datetime(2026, 3, 10, 23, 30)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database (and empty query cache) for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        get_cache().clear()

        yield db.session

        db.session.rollback()


@pytest.fixture
def fixed_now():
    return MORNING_NOW


@pytest.fixture(scope='function')
def bakery_and_owner(db_session):
    return register_bakery(bakery_name="Sunrise Bakery", name="Olu Owner", email="owner@sunrise.test", password=PASSWORD)


@pytest.fixture(scope='function')
def bakery(bakery_and_owner):
    return bakery_and_owner[0]


@pytest.fixture(scope='function')
def owner(bakery_and_owner):
    return bakery_and_owner[1]


@pytest.fixture(scope='function')
def manager(db_session, bakery, owner):
    return create_user(
        bakery_id=bakery.id,
        name="Mara Manager",
        email="manager@sunrise.test",
        password=PASSWORD,
        role="manager",
        created_by_user_id=owner.id,
    )


@pytest.fixture(scope='function')
def sales_rep(db_session, bakery, owner):
    return create_user(
        bakery_id=bakery.id,
        name="Sam Sales",
        email="sales@sunrise.test",
        password=PASSWORD,
        role="sales_rep",
        created_by_user_id=owner.id,
    )


@pytest.fixture(scope='function')
def other_owner(db_session):
    """Owner of a second bakery (another tenant)."""
    _, user = register_bakery(bakery_name="Moonlight Bakery", name="Other Owner", email="owner@moonlight.test", password=PASSWORD)
    return user


@pytest.fixture(scope='function')
def bread_type(db_session, bakery, owner):
    return bread_type_service.create_bread_type(
        bakery_id=bakery.id,
        user_id=owner.id,
        payload={"name": "Agege Loaf", "size": "large", "unit_price_cents": 50000},
    )


@pytest.fixture(scope='function')
def owner_headers(client, owner):
    return auth_headers(get_auth_token(client, owner.email, PASSWORD))


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(get_auth_token(client, manager.email, PASSWORD))


@pytest.fixture(scope='function')
def sales_headers(client, sales_rep):
    return auth_headers(get_auth_token(client, sales_rep.email, PASSWORD))


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json["data"]["token"]
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
