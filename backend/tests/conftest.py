"""
Pytest fixtures for KhataPlus backend tests.

Provides test database setup, tenant fixtures (two organizations), stock
items, khata customers and the test client.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from khataplus import create_app
from khataplus.extensions import db
from khataplus.models import Organization, InventoryItem, Customer, Supplier

# A fixed instant: 11:30 on 1 March 2026 in Asia/Kolkata
SALE_TIME = datetime(2026, 3, 1, 6, 0, 0)

SELLER_GSTIN = "27AAPFU0939F1ZV"  # Maharashtra
BUYER_GSTIN_SAME_STATE = "27AABCT1332L1ZT"
BUYER_GSTIN_OTHER_STATE = "29AABCT1332L1ZT"  # Karnataka


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


def _org(db_session, **fields) -> Organization:
    values = dict(timezone="Asia/Kolkata", gst_enabled=True, gst_inclusive=False, is_active=True)
    values.update(fields)
    org = Organization(**values)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_a(db_session):
    """Organization A: GST registered in Maharashtra, exclusive pricing."""
    return _org(db_session, name="Sharma Kirana", slug="sharma-kirana", gstin=SELLER_GSTIN, state_code="27")


@pytest.fixture(scope='function')
def org_b(db_session):
    """Organization B (second tenant)."""
    return _org(db_session, name="Gupta Medical", slug="gupta-medical", state_code="07")


@pytest.fixture(scope='function')
def inclusive_org(db_session):
    """Organization whose shelf prices already include GST."""
    return _org(db_session, name="Patel Mobiles", slug="patel-mobiles", state_code="24", gst_inclusive=True)


def make_item(db_session, org, *, sku="PHN-001", name="Phone charger", buy_price="80.00",
              gst="18", stock=10, hsn_code="8517", min_stock=None) -> InventoryItem:
    item = InventoryItem(
        org_id=org.id,
        sku=sku,
        name=name,
        buy_price=Decimal(buy_price),
        sell_price=None,
        gst_percentage=Decimal(gst),
        hsn_code=hsn_code,
        stock=stock,
        min_stock=min_stock,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def item_a(db_session, org_a):
    """18% item in Organization A with 10 on hand, bought at 80."""
    return make_item(db_session, org_a)


@pytest.fixture(scope='function')
def item_b(db_session, org_b):
    """Item in Organization B."""
    return make_item(db_session, org_b, sku="MED-001", name="Paracetamol", buy_price="20.00", gst="12", hsn_code="3004")


@pytest.fixture(scope='function')
def customer_a(db_session, org_a):
    """Khata customer in Organization A with a zero balance."""
    customer = Customer(org_id=org_a.id, name="Ramesh", phone="9800000001", balance=Decimal("0.00"))
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, org_b):
    """Khata customer in Organization B."""
    customer = Customer(org_id=org_b.id, name="Suresh", balance=Decimal("0.00"))
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def supplier_a(db_session, org_a):
    supplier = Supplier(org_id=org_a.id, name="Metro Wholesale", balance=Decimal("0.00"))
    db_session.add(supplier)
    db_session.commit()
    return supplier


def tenant_headers(org, profile=None) -> dict:
    """Helper to create tenant headers as forwarded by the sign-in layer."""
    headers = {'X-Org-Id': str(org.id)}
    if profile is not None:
        headers['X-Profile-Id'] = str(profile.id)
    return headers
