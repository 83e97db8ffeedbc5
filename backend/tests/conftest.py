"""
Pytest fixtures for Smart Inventory backend tests.

Provides the application on an in-memory database, per-test table wipes,
users with auth headers, and catalog fixtures.
"""

import pytest
from smart_inventory import create_app
from smart_inventory.extensions import db
from smart_inventory.models import Category, Customer, Product, UserRole
from smart_inventory.services.auth_service import create_user

TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
def admin_user(db_session):
    return create_user(
        username="admin",
        email="admin@shop.test",
        full_name="Ada Admin",
        password=TEST_PASSWORD,
        role=UserRole.ADMIN,
    )


@pytest.fixture(scope='function')
def staff_user(db_session):
    return create_user(
        username="staff",
        email="staff@shop.test",
        full_name="Sam Staff",
        password=TEST_PASSWORD,
        role=UserRole.SALES_STAFF,
    )


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", TEST_PASSWORD))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, "staff", TEST_PASSWORD))


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Accessories", description="Cables and peripherals")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(code, stock=20, min_level=10, price_cents=1000)."""
    def _make(code: str, stock: int = 20, min_level: int = 10, price_cents: int = 1000, **extra):
        product = Product(
            code=code,
            name=extra.pop("name", f"Product {code}"),
            price_cents=price_cents,
            stock_quantity=stock,
            min_stock_level=min_level,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """Product with 20 on hand, minimum 10, priced 10.00."""
    return make_product("WIDGET-1", name="Widget")


@pytest.fixture(scope='function')
def customer(db_session):
    c = Customer(name="Carla Customer", email="carla@example.com")
    db_session.add(c)
    db_session.commit()
    return c


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}

