# Overview: Persistence and lifecycle of stock alerts.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Product, StockAlert
from ..validation import NotFoundError
from smart_inventory.time_utils import utcnow
from . import stock_alerts
from .concurrency import rollback_on_error


def _persist(product: Product, alert_type, stock: int, now: datetime | None) -> StockAlert:
    alert = StockAlert(
        product_id=product.id,
        alert_type=alert_type.value,
        message=stock_alerts.build_message(product.name, alert_type, stock, product.min_stock_level),
        is_resolved=False,
        created_at=now or utcnow(),
    )
    db.session.add(alert)
    db.session.flush()
    return alert


def raise_alert_if_crossed(
    product: Product,
    old_stock: int,
    new_stock: int,
    now: datetime | None = None,
) -> StockAlert | None:
    """
    Persist an unresolved alert when the change old_stock -> new_stock crosses
    a threshold. Flushes only; the caller owns the commit.
    """
    alert_type = stock_alerts.evaluate(old_stock, new_stock, product.min_stock_level)
    if alert_type is None:
        return None
    return _persist(product, alert_type, new_stock, now)


def raise_initial_alert(product: Product, now: datetime | None = None) -> StockAlert | None:
    alert_type = stock_alerts.evaluate_initial(product.stock_quantity, product.min_stock_level)
    if alert_type is None:
        return None
    return _persist(product, alert_type, product.stock_quantity, now)


def list_alerts(unresolved_only: bool = True) -> list[StockAlert]:
    q = db.session.query(StockAlert)
    if unresolved_only:
        q = q.filter(StockAlert.is_resolved.is_(False))
    return q.order_by(StockAlert.created_at.desc(), StockAlert.id.desc()).all()


def count_open_alerts() -> int:
    return db.session.query(StockAlert).filter(StockAlert.is_resolved.is_(False)).count()


@rollback_on_error
def resolve_alert(alert_id: int, now: datetime | None = None) -> StockAlert:
    """
    Mark an alert resolved. Resolving twice keeps the first resolved_at.
    """
    alert = db.session.get(StockAlert, alert_id)
    if alert is None:
        raise NotFoundError(f"Stock alert {alert_id} not found")

    if not alert.is_resolved:
        alert.is_resolved = True
        alert.resolved_at = now or utcnow()
        db.session.commit()
    return alert
