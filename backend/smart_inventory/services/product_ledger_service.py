# Overview: The single write path for product stock quantities.

"""
Product ledger invariants (authoritative)

- Product.stock_quantity changes only through this module.
- Decrements are one conditional UPDATE
      SET stock_quantity = stock_quantity - :q
      WHERE id = :id AND stock_quantity >= :q
  and the affected-row count decides success. Two concurrent requests can
  never both consume the same units, and stock never goes negative here.
- Functions flush but never commit; the calling service owns the unit of
  work (invoice creation, manual adjustment, catalog edit).
- Every successful change returns (product, old_stock, new_stock) so the
  caller can log a StockTransaction and run the alert rules.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, InsufficientStockError, NotFoundError, ValidationError, require_int
from smart_inventory.time_utils import utcnow
from .concurrency import begin_write, lock_for_update

EDITABLE_FIELDS = (
    "name",
    "category_id",
    "description",
    "price_cents",
    "stock_quantity",
    "min_stock_level",
    "unit",
    "image_url",
    "is_active",
)


def get_available(product_id: int) -> tuple[Product, int]:
    """
    Load a product with its current on-hand quantity.

    Soft-deleted products are returned too; callers decide whether an
    inactive product is acceptable.
    """
    product = db.session.get(Product, product_id, populate_existing=True)
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product, product.stock_quantity


def _apply_delta(product_id: int, delta: int, now: datetime | None) -> tuple[Product, int, int]:
    begin_write()
    product, _ = get_available(product_id)

    stmt = update(Product).where(Product.id == product_id)
    if delta < 0:
        stmt = stmt.where(Product.stock_quantity >= -delta)
    stmt = stmt.values(
        stock_quantity=Product.stock_quantity + delta,
        version_id=Product.version_id + 1,
        updated_at=now or utcnow(),
    ).execution_options(synchronize_session=False)

    result = db.session.execute(stmt)
    db.session.refresh(product)

    if result.rowcount != 1:
        raise InsufficientStockError(
            product_id=product.id,
            product_name=product.name,
            requested=-delta,
            available=product.stock_quantity,
        )

    new_stock = product.stock_quantity
    return product, new_stock - delta, new_stock


def reserve_and_decrement(product_id: int, quantity: int, now: datetime | None = None) -> tuple[Product, int, int]:
    """Take `quantity` units out of stock or raise InsufficientStockError."""
    quantity = require_int(quantity, "quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    return _apply_delta(product_id, -quantity, now)


def increment(product_id: int, delta: int, now: datetime | None = None) -> tuple[Product, int, int]:
    """
    Add `delta` units (negative for a manual reduction).

    Reductions are conditional like sales: a reduction larger than what is
    on hand raises InsufficientStockError rather than going negative.
    """
    delta = require_int(delta, "quantity")
    return _apply_delta(product_id, delta, now)


def set_fields(product_id: int, patch: dict, now: datetime | None = None) -> tuple[Product, int]:
    """
    Replace the editable catalog fields of a product.

    Returns the product and the stock quantity it had before the edit, for
    the alert rules. The row is locked for the read-modify-write; the
    optimistic version_id check catches a concurrent ledger change on
    databases without row locks.
    """
    begin_write()
    product = (
        lock_for_update(db.session.query(Product).filter_by(id=product_id))
        .populate_existing()
        .first()
    )
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")

    old_stock = product.stock_quantity
    for field in EDITABLE_FIELDS:
        if field in patch:
            setattr(product, field, patch[field])
    product.updated_at = now or utcnow()

    try:
        db.session.flush()
    except StaleDataError:
        raise ConflictError(f"Product {product_id} was changed by another request; reload and retry")
    return product, old_stock
