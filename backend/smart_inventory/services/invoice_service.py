# Overview: Invoice creation (validate, price, number, fulfil) and invoice reads.

"""
Invoice invariants (authoritative)

- An invoice is created in one database transaction together with its items,
  the stock decrements, one Sale StockTransaction per item and any alerts
  those decrements raise. Either all of it commits or none of it does.
- Validation (products exist and are active, stock suffices for the combined
  quantity per product, amounts and enum names are valid) completes before
  the first write.
- Line prices are frozen from Product.price_cents at creation time.
- total_cents = subtotal_cents + tax_cents - discount_cents, where
  subtotal_cents is the sum of line totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import (
    Customer,
    Invoice,
    InvoiceItem,
    PaymentMethod,
    PaymentStatus,
    Product,
    TransactionType,
    User,
)
from ..validation import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    enforce_rules_amounts,
    parse_enum,
    require_int,
)
from smart_inventory.time_utils import utcnow
from .alert_service import raise_alert_if_crossed
from .concurrency import begin_write, rollback_on_error
from .inventory_service import record_transaction
from .invoice_numbering import next_invoice_number
from .product_ledger_service import reserve_and_decrement


@dataclass
class PricedLine:
    product: Product
    quantity: int
    unit_price_cents: int

    @property
    def total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


def _parse_items(items) -> list[tuple[int, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Invoice must contain at least one item")

    parsed = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index} must be an object")
        if "product_id" not in item or "quantity" not in item:
            raise ValidationError(f"Item {index} requires product_id and quantity")
        product_id = require_int(item["product_id"], f"items[{index}].product_id")
        quantity = require_int(item["quantity"], f"items[{index}].quantity")
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be greater than 0")
        parsed.append((product_id, quantity))
    return parsed


def _price_lines(requested: list[tuple[int, int]]) -> list[PricedLine]:
    lines: list[PricedLine] = []
    combined: dict[int, int] = {}

    for product_id, quantity in requested:
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        if not product.is_active:
            raise ValidationError(f"Product '{product.name}' is no longer sold")

        combined[product_id] = combined.get(product_id, 0) + quantity
        if product.stock_quantity < combined[product_id]:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                requested=combined[product_id],
                available=product.stock_quantity,
            )

        lines.append(PricedLine(product=product, quantity=quantity, unit_price_cents=product.price_cents))
    return lines


@rollback_on_error
def create_invoice(
    *,
    user_id: int,
    items,
    customer_id: int | None = None,
    tax_cents: int = 0,
    discount_cents: int = 0,
    payment_method="Cash",
    payment_status="Paid",
    notes: str | None = None,
    now: datetime | None = None,
) -> Invoice:
    """
    Create and fulfil an invoice.

    Raises ValidationError, NotFoundError or InsufficientStockError without
    writing anything. A decrement that loses a race to a concurrent sale also
    raises InsufficientStockError and rolls the whole invoice back.
    """
    requested = _parse_items(items)
    method = parse_enum(PaymentMethod, payment_method, "payment method")
    status = parse_enum(PaymentStatus, payment_status, "payment status")
    enforce_rules_amounts(tax_cents=tax_cents, discount_cents=discount_cents)

    if db.session.get(User, user_id) is None:
        raise NotFoundError(f"User with ID {user_id} not found")
    if customer_id is not None and db.session.get(Customer, customer_id) is None:
        raise NotFoundError(f"Customer with ID {customer_id} not found")

    lines = _price_lines(requested)
    subtotal = sum(line.total_cents for line in lines)
    total = subtotal + tax_cents - discount_cents
    if total < 0:
        raise ValidationError("discount_cents cannot exceed subtotal plus tax")

    now = now or utcnow()
    begin_write()

    invoice = Invoice(
        invoice_number=next_invoice_number(now),
        customer_id=customer_id,
        user_id=user_id,
        invoice_date=now,
        subtotal_cents=subtotal,
        tax_cents=tax_cents,
        discount_cents=discount_cents,
        total_cents=total,
        payment_method=method.value,
        payment_status=status.value,
        notes=notes,
    )
    for line in lines:
        invoice.items.append(
            InvoiceItem(
                product_id=line.product.id,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_price_cents=line.total_cents,
            )
        )
    db.session.add(invoice)
    db.session.flush()

    alerts = []
    for line in lines:
        product, old_stock, new_stock = reserve_and_decrement(line.product.id, line.quantity, now=now)
        record_transaction(
            product_id=product.id,
            user_id=user_id,
            transaction_type=TransactionType.SALE,
            quantity=-line.quantity,
            reference_number=invoice.invoice_number,
            notes=f"Sale via invoice {invoice.invoice_number}",
            now=now,
        )
        alert = raise_alert_if_crossed(product, old_stock, new_stock, now=now)
        if alert is not None:
            alerts.append(alert)

    db.session.commit()

    current_app.logger.info(
        "Invoice created: %s items=%d total_cents=%d user=%s",
        invoice.invoice_number, len(lines), total, user_id,
    )
    for alert in alerts:
        current_app.logger.info("Stock alert raised: %s", alert.message)
    return invoice


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError(f"Invoice with ID {invoice_id} not found")
    return invoice


def list_invoices(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    customer_id: int | None = None,
) -> list[Invoice]:
    """Newest first; both date bounds are inclusive."""
    q = db.session.query(Invoice)
    if from_date is not None:
        q = q.filter(Invoice.invoice_date >= from_date)
    if to_date is not None:
        q = q.filter(Invoice.invoice_date <= to_date)
    if customer_id is not None:
        q = q.filter(Invoice.customer_id == customer_id)
    return q.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()
