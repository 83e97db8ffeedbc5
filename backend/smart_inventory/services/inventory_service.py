# Overview: Manual stock adjustments and the append-only stock transaction log.

"""
Stock transaction invariants (authoritative)

- Every change to Product.stock_quantity appends exactly one StockTransaction
  in the same database transaction, with the signed delta that was applied.
- Sale rows are written only by invoice creation and reference the invoice
  number; manual adjustments use Purchase, Adjustment or Return.
- Rows are never updated or deleted.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import MANUAL_TRANSACTION_TYPES, StockTransaction, TransactionType, User
from ..validation import NotFoundError, ValidationError, enforce_rules_stock_adjustment, parse_enum
from smart_inventory.time_utils import utcnow
from .alert_service import raise_alert_if_crossed
from .concurrency import rollback_on_error
from .product_ledger_service import increment


def record_transaction(
    *,
    product_id: int,
    user_id: int,
    transaction_type: TransactionType,
    quantity: int,
    reference_number: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> StockTransaction:
    tx = StockTransaction(
        product_id=product_id,
        user_id=user_id,
        transaction_type=transaction_type.value,
        quantity=quantity,
        transaction_date=now or utcnow(),
        reference_number=reference_number,
        notes=notes,
    )
    db.session.add(tx)
    db.session.flush()
    return tx


@rollback_on_error
def adjust_stock(
    *,
    product_id: int,
    quantity_delta,
    transaction_type,
    user_id: int,
    notes: str | None = None,
    now: datetime | None = None,
) -> tuple:
    """
    Apply a manual stock change and log it.

    Returns (product, transaction, alert_or_None). A reduction larger than the
    stock on hand raises InsufficientStockError; nothing is written.
    """
    tx_type = parse_enum(TransactionType, transaction_type, "transaction type")
    if tx_type not in MANUAL_TRANSACTION_TYPES:
        raise ValidationError("Sale transactions are recorded by invoices, not manual adjustments")
    delta = enforce_rules_stock_adjustment(quantity_delta)

    if db.session.get(User, user_id) is None:
        raise NotFoundError(f"User with ID {user_id} not found")

    now = now or utcnow()
    product, old_stock, new_stock = increment(product_id, delta, now=now)
    tx = record_transaction(
        product_id=product.id,
        user_id=user_id,
        transaction_type=tx_type,
        quantity=delta,
        notes=notes,
        now=now,
    )
    alert = raise_alert_if_crossed(product, old_stock, new_stock, now=now)
    db.session.commit()

    current_app.logger.info(
        "Stock adjusted: product=%s %s %+d (%s -> %s)",
        product.id, tx_type.value, delta, old_stock, new_stock,
    )
    if alert is not None:
        current_app.logger.info("Stock alert raised: %s", alert.message)
    return product, tx, alert


def list_transactions(
    product_id: int | None = None,
    transaction_type=None,
    limit: int = 200,
) -> list[StockTransaction]:
    q = db.session.query(StockTransaction)
    if product_id is not None:
        q = q.filter(StockTransaction.product_id == product_id)
    if transaction_type is not None:
        tx_type = parse_enum(TransactionType, transaction_type, "transaction type")
        q = q.filter(StockTransaction.transaction_type == tx_type.value)
    return (
        q.order_by(StockTransaction.transaction_date.desc(), StockTransaction.id.desc())
        .limit(limit)
        .all()
    )
