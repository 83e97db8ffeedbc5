"""
Stock alert derivation rules.

Pure functions: nothing here touches the database. Callers persist the
alert (see alert_service.raise_alert_if_crossed).

Two downward thresholds are watched:
- the product's minimum stock level: crossing from above it to at-or-below
  it raises LowStock, or OutOfStock when the new level is exactly zero;
- zero itself: dropping from a positive level to zero raises OutOfStock
  even when stock was already below the minimum.

Moving around inside a band (e.g. 9 -> 5 with a minimum of 10) never
re-alerts, and increases never alert.
"""
from __future__ import annotations

from ..models import AlertType


def evaluate(old_stock: int, new_stock: int, min_level: int) -> AlertType | None:
    """Alert on a downward crossing of the minimum level, or of zero."""
    if new_stock >= old_stock:
        return None

    crossed_minimum = old_stock > min_level and new_stock <= min_level
    reached_zero = old_stock > 0 and new_stock == 0

    if not (crossed_minimum or reached_zero):
        return None
    if new_stock == 0:
        return AlertType.OUT_OF_STOCK
    return AlertType.LOW_STOCK


def evaluate_initial(stock: int, min_level: int) -> AlertType | None:
    """A product catalogued at or below its minimum counts as a crossing."""
    if stock > min_level:
        return None
    if stock == 0:
        return AlertType.OUT_OF_STOCK
    return AlertType.LOW_STOCK


def build_message(product_name: str, alert_type: AlertType, new_stock: int, min_level: int) -> str:
    state = "out of stock" if alert_type == AlertType.OUT_OF_STOCK else "running low on stock"
    return (
        f"Product '{product_name}' is {state}. "
        f"Current quantity: {new_stock}, Minimum level: {min_level}"
    )
