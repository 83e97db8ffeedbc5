"""
Concurrency tests for stock decrements and invoice numbering.

Runs real threads against a file-backed SQLite database; each thread has its
own application context and therefore its own session and connection.
"""

import threading

import pytest

from smart_inventory import create_app
from smart_inventory.extensions import db
from smart_inventory.models import Invoice, Product, StockTransaction, UserRole
from smart_inventory.services.auth_service import create_user
from smart_inventory.services.invoice_service import create_invoice
from smart_inventory.services.product_ledger_service import reserve_and_decrement
from smart_inventory.validation import InsufficientStockError


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.sqlite3'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'connect_args': {'check_same_thread': False, 'timeout': 30},
        },
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _seed_product(app, stock):
    with app.app_context():
        product = Product(code="RACE-1", name="Contested", price_cents=500, stock_quantity=stock, min_stock_level=0)
        db.session.add(product)
        db.session.commit()
        return product.id


def _run_threads(count, target):
    barrier = threading.Barrier(count)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        result = target()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


@pytest.mark.parametrize("threads,stock", [(12, 5), (4, 10)])
def test_concurrent_decrements_never_oversell(file_app, threads, stock):
    product_id = _seed_product(file_app, stock)

    def take_one():
        with file_app.app_context():
            try:
                reserve_and_decrement(product_id, 1)
                db.session.commit()
                return "ok"
            except InsufficientStockError:
                db.session.rollback()
                return "short"

    outcomes = _run_threads(threads, take_one)

    assert outcomes.count("ok") == min(threads, stock)
    assert outcomes.count("short") == threads - min(threads, stock)
    with file_app.app_context():
        final = db.session.get(Product, product_id).stock_quantity
    assert final == stock - min(threads, stock)
    assert final >= 0


def test_concurrent_invoices_get_unique_numbers(file_app):
    product_id = _seed_product(file_app, 5)
    with file_app.app_context():
        user_id = create_user(
            username="cashier",
            email="cashier@shop.test",
            full_name="Cash Ier",
            password="Password123",
            role=UserRole.SALES_STAFF,
        ).id

    def sell_one():
        with file_app.app_context():
            try:
                return create_invoice(user_id=user_id, items=[{"product_id": product_id, "quantity": 1}]).invoice_number
            except InsufficientStockError:
                return None

    outcomes = _run_threads(8, sell_one)
    numbers = [n for n in outcomes if n is not None]

    assert len(numbers) == 5
    assert len(set(numbers)) == 5
    with file_app.app_context():
        assert db.session.query(Invoice).count() == 5
        assert db.session.query(StockTransaction).count() == 5
        assert db.session.get(Product, product_id).stock_quantity == 0
