"""
Pytest fixtures for ERP backend tests.

Provides test database setup, an authenticated user and the test client.
"""

import pytest

from erp import create_app
from erp.extensions import db
from erp.models import BinLocation, Item
from erp.services import session_service
from erp.services.auth_service import register_user

ORG = "00000000-0000-0000-0000-000000000000"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'ORGANIZATION_ID': ORG,
        'READ_ONLY_MODE': False,
        'BCRYPT_ROUNDS': 4,
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
def org_id():
    return ORG


@pytest.fixture(scope='function')
def staff_user(db_session):
    return register_user(
        name="Office Admin",
        email="admin@erp.local",
        password="Password123!",
        role="Admin",
    )


@pytest.fixture(scope='function')
def auth_headers(staff_user):
    """Bearer header for staff_user."""
    _, token = session_service.create_session(staff_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def item(db_session):
    row = Item(organization_id=ORG, name="Brake Cable", sku="BC-01", current_stock=0, reorder_point=5,
               selling_price=120.0, cost_price=80.0)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def warehouse_bins(db_session):
    """Two active bins in 'Main' and one in 'Annex'."""
    bins = [
        BinLocation(bin_code="M-A1", warehouse="Main", status="active"),
        BinLocation(bin_code="M-A2", warehouse="Main", status="active"),
        BinLocation(bin_code="X-B1", warehouse="Annex", status="active"),
    ]
    db_session.add_all(bins)
    db_session.commit()
    return bins
