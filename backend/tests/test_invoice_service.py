"""
Invoice creation tests.

Verifies:
- Totals and price capture
- Stock decrement, Sale transactions and alerts are written with the invoice
- Validation failures leave the database untouched
"""

from datetime import datetime

import pytest
from sqlalchemy import update

from smart_inventory.extensions import db
from smart_inventory.models import Invoice, InvoiceItem, Product, StockAlert, StockTransaction
from smart_inventory.services import invoice_service
from smart_inventory.services.invoice_service import create_invoice, get_invoice, list_invoices
from smart_inventory.validation import InsufficientStockError, NotFoundError, ValidationError

NOW = datetime(2026, 3, 1, 14, 0)


def _fresh(product_id):
    return db.session.get(Product, product_id, populate_existing=True)


def _counts():
    return (
        db.session.query(Invoice).count(),
        db.session.query(InvoiceItem).count(),
        db.session.query(StockTransaction).count(),
        db.session.query(StockAlert).count(),
    )


class TestTotals:
    def test_subtotal_tax_discount(self, db_session, admin_user, make_product):
        a = make_product("A", stock=50, price_cents=1000)
        b = make_product("B", stock=50, price_cents=550)

        invoice = create_invoice(
            user_id=admin_user.id,
            items=[{"product_id": a.id, "quantity": 2}, {"product_id": b.id, "quantity": 1}],
            tax_cents=100,
            discount_cents=200,
            now=NOW,
        )

        assert invoice.subtotal_cents == 2550
        assert invoice.total_cents == 2450
        assert [i.total_price_cents for i in invoice.items] == [2000, 550]
        assert invoice.invoice_number == "INV-20260301-001"
        assert invoice.invoice_date == NOW

    def test_price_is_frozen_on_the_line(self, db_session, admin_user, product):
        invoice = create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 1}], now=NOW)

        product.price_cents = 9999
        db_session.commit()

        reloaded = get_invoice(invoice.id)
        assert reloaded.items[0].unit_price_cents == 1000
        assert reloaded.subtotal_cents == 1000

    def test_walk_in_customer_and_user_name(self, db_session, admin_user, product):
        invoice = create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 1}], now=NOW)
        data = invoice.to_dict()
        assert data["customer_name"] == "Walk-in Customer"
        assert data["user_name"] == "Ada Admin"
        assert data["items"][0]["product_code"] == "WIDGET-1"

    def test_named_customer(self, db_session, admin_user, product, customer):
        invoice = create_invoice(
            user_id=admin_user.id,
            customer_id=customer.id,
            items=[{"product_id": product.id, "quantity": 1}],
            payment_method="Card",
            payment_status="Pending",
            now=NOW,
        )
        assert invoice.customer_name == "Carla Customer"
        assert invoice.payment_method == "Card"
        assert invoice.payment_status == "Pending"

    def test_discount_larger_than_total_rejected(self, db_session, admin_user, product):
        with pytest.raises(ValidationError):
            create_invoice(
                user_id=admin_user.id,
                items=[{"product_id": product.id, "quantity": 1}],
                discount_cents=1001,
            )


class TestFulfilment:
    def test_stock_transactions_and_numbering(self, db_session, admin_user, product):
        first = create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 3}], now=NOW)
        second = create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 2}], now=NOW)

        assert first.invoice_number == "INV-20260301-001"
        assert second.invoice_number == "INV-20260301-002"
        assert _fresh(product.id).stock_quantity == 15

        txs = db_session.query(StockTransaction).order_by(StockTransaction.id).all()
        assert [(t.transaction_type, t.quantity, t.reference_number) for t in txs] == [
            ("Sale", -3, "INV-20260301-001"),
            ("Sale", -2, "INV-20260301-002"),
        ]

    def test_low_stock_alert_raised_on_crossing(self, db_session, admin_user, product):
        create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 11}], now=NOW)

        alerts = db_session.query(StockAlert).all()
        assert len(alerts) == 1
        assert alerts[0].alert_type == "LowStock"
        assert alerts[0].message == (
            "Product 'Widget' is running low on stock. Current quantity: 9, Minimum level: 10"
        )

    def test_selling_out_raises_out_of_stock(self, db_session, admin_user, make_product):
        p = make_product("LOW", stock=5, min_level=10)
        create_invoice(user_id=admin_user.id, items=[{"product_id": p.id, "quantity": 5}], now=NOW)

        alerts = db_session.query(StockAlert).all()
        assert [a.alert_type for a in alerts] == ["OutOfStock"]

    def test_no_alert_above_minimum(self, db_session, admin_user, product):
        create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 5}], now=NOW)
        assert db_session.query(StockAlert).count() == 0


class TestFailuresWriteNothing:
    def test_insufficient_stock(self, db_session, admin_user, make_product):
        p = make_product("SHORT", stock=3)

        with pytest.raises(InsufficientStockError) as exc:
            create_invoice(user_id=admin_user.id, items=[{"product_id": p.id, "quantity": 5}], now=NOW)

        assert str(exc.value) == "Insufficient stock for product 'Product SHORT'. Available: 3, Requested: 5"
        assert exc.value.details["available_quantity"] == 3
        assert _fresh(p.id).stock_quantity == 3
        assert _counts() == (0, 0, 0, 0)

    def test_missing_product_mid_list(self, db_session, admin_user, make_product):
        a = make_product("A", stock=10)
        c = make_product("C", stock=10)

        with pytest.raises(NotFoundError) as exc:
            create_invoice(
                user_id=admin_user.id,
                items=[
                    {"product_id": a.id, "quantity": 1},
                    {"product_id": 999999, "quantity": 1},
                    {"product_id": c.id, "quantity": 1},
                ],
                now=NOW,
            )

        assert "999999" in str(exc.value)
        assert _fresh(a.id).stock_quantity == 10
        assert _fresh(c.id).stock_quantity == 10
        assert _counts() == (0, 0, 0, 0)

    def test_repeated_lines_checked_on_combined_quantity(self, db_session, admin_user, make_product):
        p = make_product("DUP", stock=5)

        with pytest.raises(InsufficientStockError) as exc:
            create_invoice(
                user_id=admin_user.id,
                items=[{"product_id": p.id, "quantity": 3}, {"product_id": p.id, "quantity": 3}],
            )

        assert exc.value.requested == 6
        assert _fresh(p.id).stock_quantity == 5

    def test_failed_invoice_does_not_consume_a_number(self, db_session, admin_user, make_product):
        p = make_product("N", stock=1)
        with pytest.raises(InsufficientStockError):
            create_invoice(user_id=admin_user.id, items=[{"product_id": p.id, "quantity": 2}], now=NOW)

        invoice = create_invoice(user_id=admin_user.id, items=[{"product_id": p.id, "quantity": 1}], now=NOW)
        assert invoice.invoice_number == "INV-20260301-001"

    def test_race_lost_on_later_line_rolls_back_whole_invoice(
        self, db_session, admin_user, make_product, monkeypatch
    ):
        a = make_product("A", stock=10, min_level=5)
        b = make_product("B", stock=10, min_level=5)
        real_decrement = invoice_service.reserve_and_decrement

        def drained_before_b(product_id, quantity, now=None):
            # A concurrent sale empties B after the pre-check passed
            if product_id == b.id:
                db.session.execute(update(Product).where(Product.id == b.id).values(stock_quantity=0))
            return real_decrement(product_id, quantity, now=now)

        monkeypatch.setattr(invoice_service, "reserve_and_decrement", drained_before_b)

        with pytest.raises(InsufficientStockError) as exc:
            create_invoice(
                user_id=admin_user.id,
                items=[{"product_id": a.id, "quantity": 2}, {"product_id": b.id, "quantity": 1}],
                now=NOW,
            )

        assert exc.value.product_id == b.id
        assert _counts() == (0, 0, 0, 0)
        assert _fresh(a.id).stock_quantity == 10

        monkeypatch.setattr(invoice_service, "reserve_and_decrement", real_decrement)
        invoice = create_invoice(user_id=admin_user.id, items=[{"product_id": a.id, "quantity": 1}], now=NOW)
        assert invoice.invoice_number == "INV-20260301-001"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"items": []},
            {"items": [{"product_id": 1, "quantity": 0}]},
            {"items": [{"product_id": 1, "quantity": 1.5}]},
            {"items": [{"product_id": 1}]},
            {"payment_method": "Cheque"},
            {"payment_status": "Refunded"},
            {"tax_cents": -1},
        ],
    )
    def test_invalid_input(self, db_session, admin_user, product, overrides):
        kwargs = {"user_id": admin_user.id, "items": [{"product_id": product.id, "quantity": 1}]}
        kwargs.update(overrides)
        with pytest.raises(ValidationError):
            create_invoice(**kwargs)
        assert _counts() == (0, 0, 0, 0)

    def test_missing_customer(self, db_session, admin_user, product):
        with pytest.raises(NotFoundError):
            create_invoice(
                user_id=admin_user.id,
                customer_id=424242,
                items=[{"product_id": product.id, "quantity": 1}],
            )

    def test_inactive_product_cannot_be_sold(self, db_session, admin_user, make_product):
        p = make_product("GONE", is_active=False)
        with pytest.raises(ValidationError):
            create_invoice(user_id=admin_user.id, items=[{"product_id": p.id, "quantity": 1}])


class TestListing:
    def test_newest_first_and_date_filter(self, db_session, admin_user, product, customer):
        old = create_invoice(user_id=admin_user.id, items=[{"product_id": product.id, "quantity": 1}],
                             now=datetime(2026, 2, 10, 12, 0))
        new = create_invoice(user_id=admin_user.id, customer_id=customer.id,
                             items=[{"product_id": product.id, "quantity": 1}], now=NOW)

        assert [i.id for i in list_invoices()] == [new.id, old.id]
        assert [i.id for i in list_invoices(from_date=datetime(2026, 3, 1))] == [new.id]
        assert [i.id for i in list_invoices(to_date=datetime(2026, 2, 28))] == [old.id]
        assert [i.id for i in list_invoices(customer_id=customer.id)] == [new.id]

    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            get_invoice(12345)
