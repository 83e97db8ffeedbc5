# Overview: Flask API routes for dashboard figures and sales aggregates.

from flask import Blueprint, request

from ..decorators import require_auth
from ..services import analytics_service
from ..validation import ValidationError
from .invoices import parse_date_range

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/dashboard")
@require_auth
def dashboard_route():
    return analytics_service.dashboard(), 200


@analytics_bp.get("/daily-sales")
@require_auth
def daily_sales_route():
    """from_date/to_date default to the last 30 days."""
    try:
        from_dt, to_dt = parse_date_range(request.args)
        rows = analytics_service.daily_sales(from_date=from_dt, to_date=to_dt)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": rows}, 200


@analytics_bp.get("/monthly-sales")
@require_auth
def monthly_sales_route():
    try:
        rows = analytics_service.monthly_sales(months=request.args.get("months", 12, type=int))
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": rows}, 200


@analytics_bp.get("/top-products")
@require_auth
def top_products_route():
    try:
        rows = analytics_service.top_products(days=request.args.get("days", 30, type=int))
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": rows}, 200
