"""
Pytest fixtures for tillpoint backend tests.

Provides test database setup, a demo store with catalog, and a test client.
"""

from decimal import Decimal

import pytest
from tillpoint import create_app
from tillpoint.extensions import db
from tillpoint.models import Store, Product, Customer, DiscountRule
from tillpoint.models.promotions import DISCOUNT_FIXED_AMOUNT, DISCOUNT_PERCENTAGE

STAFF_ID = "staff-001"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CHECKOUT_RETRY_BACKOFF': 0.0,
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
def staff_headers():
    return {'X-Staff-Id': STAFF_ID}


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
def store(db_session):
    """Store with an 8% tax rate."""
    store = Store(name="Main Store", code="MAIN", tax_rate_bps=800)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    store = Store(name="Other Store", code="OTHER", tax_rate_bps=0)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def product_a(db_session, store):
    """$10.00 product, 20 on hand."""
    product = Product(
        store_id=store.id,
        name="Product A",
        sku="PROD-A-001",
        barcode="0000000000017",
        price=Decimal("10.00"),
        cost=Decimal("6.00"),
        stock_quantity=20,
        min_stock_level=2,
        is_active=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, store):
    """$5.00 product, 10 on hand."""
    product = Product(
        store_id=store.id,
        name="Product B",
        sku="PROD-B-001",
        barcode="0000000000024",
        price=Decimal("5.00"),
        cost=Decimal("2.50"),
        stock_quantity=10,
        min_stock_level=10,
        is_active=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer(db_session, store):
    customer = Customer(
        store_id=store.id,
        name="Loyal Customer",
        email="loyal@example.com",
        total_spent=Decimal("150.00"),
        visit_count=4,
        loyalty_points=100,
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def percent_off(db_session, store):
    """10% off, no minimum."""
    rule = DiscountRule(
        store_id=store.id,
        name="10% off",
        discount_type=DISCOUNT_PERCENTAGE,
        discount_value=Decimal("10"),
        is_active=True,
    )
    db_session.add(rule)
    db_session.commit()
    return rule


@pytest.fixture(scope='function')
def five_off_over_fifty(db_session, store):
    """$5 off orders of $50 or more."""
    rule = DiscountRule(
        store_id=store.id,
        name="$5 off $50",
        discount_type=DISCOUNT_FIXED_AMOUNT,
        discount_value=Decimal("5"),
        min_order_amount=Decimal("50"),
        is_active=True,
    )
    db_session.add(rule)
    db_session.commit()
    return rule
