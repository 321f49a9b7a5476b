"""
Pytest fixtures for stockbill backend tests.

Provides an in-memory database, users, session tokens and sample products.
"""

import pytest

from stockbill import create_app
from stockbill.extensions import db
from stockbill.services.auth_service import create_user
from stockbill.services.catalog_service import CatalogLedger
from stockbill.services.invoice_service import InvoiceCompiler
from stockbill.services.session_service import create_session

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        # bcrypt minimum; keeps user fixtures fast
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def catalog(db_session):
    return CatalogLedger(db_session)


@pytest.fixture(scope='function')
def compiler(db_session, catalog):
    return InvoiceCompiler(db_session, catalog)


@pytest.fixture(scope='function')
def admin_user(db_session):
    """Create an admin account."""
    return create_user(
        db_session,
        name="Admin User",
        email="admin@example.com",
        password=TEST_PASSWORD,
        role="admin",
        bcrypt_rounds=4,
    )


@pytest.fixture(scope='function')
def staff_user(db_session):
    """Create a staff account."""
    return create_user(
        db_session,
        name="Staff User",
        email="staff@example.com",
        password=TEST_PASSWORD,
        role="staff",
        bcrypt_rounds=4,
    )


@pytest.fixture(scope='function')
def admin_headers(db_session, admin_user):
    _, token = create_session(db_session, admin_user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def staff_headers(db_session, staff_user):
    _, token = create_session(db_session, staff_user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def widget(catalog, admin_user):
    """Product priced at Rs 100 with 10 units on hand."""
    return catalog.create(
        {
            "name": "Widget",
            "category": "Hardware",
            "price_inr": 100,
            "stock": 10,
            "low_stock_threshold": 3,
            "sku": "WID-001",
        },
        created_by_user_id=admin_user.id,
    )


@pytest.fixture(scope='function')
def gadget(catalog, admin_user):
    """Product priced at Rs 250 with 2 units on hand."""
    return catalog.create(
        {
            "name": "Gadget",
            "category": "Electronics",
            "price_inr": 250,
            "stock": 2,
            "low_stock_threshold": 5,
            "sku": "GAD-001",
        },
        created_by_user_id=admin_user.id,
    )


def get_auth_token(client, email: str, password: str) -> str:
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
