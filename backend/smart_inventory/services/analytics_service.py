# Overview: Sales and stock aggregates for the dashboard.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Product
from ..validation import ValidationError
from smart_inventory.time_utils import start_of_day, start_of_month, utcnow
from .alert_service import count_open_alerts

TOP_PRODUCTS_LIMIT = 10


def _sum_totals_since(since: datetime) -> int:
    return int(
        db.session.query(func.coalesce(func.sum(Invoice.total_cents), 0))
        .filter(Invoice.invoice_date >= since)
        .scalar()
    )


def dashboard(now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)

    return {
        "today_sales_cents": _sum_totals_since(today),
        "today_invoices": db.session.query(Invoice).filter(Invoice.invoice_date >= today).count(),
        "month_sales_cents": _sum_totals_since(start_of_month(now)),
        "low_stock_products": (
            db.session.query(Product)
            .filter(Product.is_active.is_(True), Product.stock_quantity <= Product.min_stock_level)
            .count()
        ),
        "active_products": db.session.query(Product).filter(Product.is_active.is_(True)).count(),
        "total_customers": db.session.query(Customer).count(),
        "open_alerts": count_open_alerts(),
    }


def _sales_by_period(fmt: str, start: datetime, end: datetime | None) -> list[dict]:
    period = func.strftime(fmt, Invoice.invoice_date)
    q = (
        db.session.query(
            period.label("period"),
            func.coalesce(func.sum(Invoice.total_cents), 0).label("total_sales_cents"),
            func.count(Invoice.id).label("total_invoices"),
        )
        .filter(Invoice.invoice_date >= start)
    )
    if end is not None:
        q = q.filter(Invoice.invoice_date <= end)
    rows = q.group_by(period).order_by(period.asc()).all()
    return [
        {
            "period": row.period,
            "total_sales_cents": int(row.total_sales_cents),
            "total_invoices": int(row.total_invoices),
        }
        for row in rows
    ]


def daily_sales(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """Per-day totals; defaults to the last 30 days."""
    now = now or utcnow()
    start = from_date or start_of_day(now) - timedelta(days=30)
    end = to_date or now
    if end < start:
        raise ValidationError("to_date must not be before from_date")
    return _sales_by_period("%Y-%m-%d", start, end)


def monthly_sales(months: int = 12, now: datetime | None = None) -> list[dict]:
    if months < 1:
        raise ValidationError("months must be at least 1")
    now = now or utcnow()
    year, month = now.year, now.month - (months - 1)
    while month < 1:
        month += 12
        year -= 1
    return _sales_by_period("%Y-%m", datetime(year, month, 1), None)


def top_products(days: int = 30, now: datetime | None = None) -> list[dict]:
    """Best sellers by revenue over the trailing window."""
    if days < 1:
        raise ValidationError("days must be at least 1")
    since = (now or utcnow()) - timedelta(days=days)

    revenue = func.sum(InvoiceItem.total_price_cents)
    rows = (
        db.session.query(
            Product.id,
            Product.code,
            Product.name,
            func.sum(InvoiceItem.quantity).label("quantity_sold"),
            revenue.label("revenue_cents"),
        )
        .join(InvoiceItem, InvoiceItem.product_id == Product.id)
        .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
        .filter(Invoice.invoice_date >= since)
        .group_by(Product.id, Product.code, Product.name)
        .order_by(revenue.desc(), Product.id.asc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )
    return [
        {
            "product_id": row.id,
            "product_code": row.code,
            "product_name": row.name,
            "total_quantity_sold": int(row.quantity_sold),
            "total_revenue_cents": int(row.revenue_cents),
        }
        for row in rows
    ]
