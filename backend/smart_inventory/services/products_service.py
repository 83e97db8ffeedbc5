# Overview: Catalog operations for products; stock moves go through product_ledger_service.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Category, Product, TransactionType
from ..validation import ConflictError, NotFoundError, ValidationError
from smart_inventory.time_utils import utcnow
from . import product_ledger_service
from .alert_service import raise_alert_if_crossed, raise_initial_alert
from .concurrency import begin_write, rollback_on_error
from .inventory_service import record_transaction

PRODUCT_CREATE_FIELDS = {"code", *product_ledger_service.EDITABLE_FIELDS}


def _require_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise NotFoundError(f"Category with ID {category_id} not found")


def list_products(
    active_only: bool = True,
    low_stock_only: bool = False,
    category_id: int | None = None,
    search: str | None = None,
) -> list[Product]:
    q = db.session.query(Product)
    if active_only:
        q = q.filter(Product.is_active.is_(True))
    if low_stock_only:
        q = q.filter(Product.stock_quantity <= Product.min_stock_level)
    if category_id is not None:
        q = q.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


@rollback_on_error
def create_product(patch: dict, now: datetime | None = None) -> Product:
    """
    Create a catalog product from a validated patch.

    A product that starts at or below its minimum level gets an alert right
    away, as if its stock had just crossed the threshold.
    """
    code = patch.get("code")
    if not code:
        raise ValidationError("code is required")

    begin_write()
    if db.session.query(Product.id).filter(Product.code == code).first() is not None:
        raise ConflictError(f"Product code '{code}' already exists")
    _require_category(patch.get("category_id"))

    now = now or utcnow()
    product = Product(created_at=now, updated_at=now)
    for field, value in patch.items():
        if field in PRODUCT_CREATE_FIELDS:
            setattr(product, field, value)

    db.session.add(product)
    db.session.flush()

    alert = raise_initial_alert(product, now=now)
    db.session.commit()

    current_app.logger.info("Product created: %s (%s) stock=%s", product.code, product.id, product.stock_quantity)
    if alert is not None:
        current_app.logger.info("Stock alert raised: %s", alert.message)
    return product


@rollback_on_error
def update_product(product_id: int, patch: dict, *, user_id: int, now: datetime | None = None) -> Product:
    """
    Replace editable fields. A stock edit is treated like any other stock
    change: it is logged as an Adjustment by `user_id` and alerted on.
    """
    if "code" in patch:
        raise ValidationError("code cannot be changed")
    _require_category(patch.get("category_id"))

    now = now or utcnow()
    product, old_stock = product_ledger_service.set_fields(product_id, patch, now=now)
    new_stock = product.stock_quantity
    if new_stock != old_stock:
        record_transaction(
            product_id=product.id,
            user_id=user_id,
            transaction_type=TransactionType.ADJUSTMENT,
            quantity=new_stock - old_stock,
            notes="Stock set via product edit",
            now=now,
        )
    alert = raise_alert_if_crossed(product, old_stock, new_stock, now=now)
    db.session.commit()

    if new_stock != old_stock:
        current_app.logger.info(
            "Stock edited: product=%s %s -> %s user=%s", product.id, old_stock, new_stock, user_id,
        )
    if alert is not None:
        current_app.logger.info("Stock alert raised: %s", alert.message)
    return product


@rollback_on_error
def deactivate_product(product_id: int, now: datetime | None = None) -> Product:
    """Soft delete: historical invoice items keep resolving the product."""
    product, _ = product_ledger_service.set_fields(product_id, {"is_active": False}, now=now)
    db.session.commit()
    return product
