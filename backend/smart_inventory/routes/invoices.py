# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from datetime import timedelta

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth
from ..services import invoice_service
from ..time_utils import parse_iso_datetime
from ..validation import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
)

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def parse_date_range(args) -> tuple:
    """
    from_date/to_date query params as UTC datetimes.

    A bare date for to_date covers that whole day.
    """
    raw_from = args.get("from_date")
    raw_to = args.get("to_date")
    try:
        from_dt = parse_iso_datetime(raw_from)
        to_dt = parse_iso_datetime(raw_to)
    except ValueError:
        raise ValidationError("from_date and to_date must be ISO-8601 dates")

    if to_dt is not None and len(raw_to.strip()) == 10:
        to_dt = to_dt + timedelta(days=1) - timedelta(microseconds=1)
    return from_dt, to_dt


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    Query params:
    - from_date, to_date: ISO-8601 (inclusive)
    - customer_id: int
    """
    try:
        from_dt, to_dt = parse_date_range(request.args)
    except ValidationError as e:
        return {"error": str(e)}, 400

    invoices = invoice_service.list_invoices(
        from_date=from_dt,
        to_date=to_dt,
        customer_id=request.args.get("customer_id", type=int),
    )
    return {
        "items": [inv.to_dict(include_items=False) for inv in invoices],
        "count": len(invoices),
    }, 200


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return invoice.to_dict(), 200


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create an invoice and take its items out of stock.

    Body:
    {
      "customer_id": int | null,
      "items": [{"product_id": int, "quantity": int}, ...],
      "tax_cents": int, "discount_cents": int,
      "payment_method": "Cash|Card|BankTransfer|Other",
      "payment_status": "Paid|Pending|Partial",
      "notes": str
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        invoice = invoice_service.create_invoice(
            user_id=g.current_user.id,
            items=data.get("items"),
            customer_id=data.get("customer_id"),
            tax_cents=data.get("tax_cents", 0),
            discount_cents=data.get("discount_cents", 0),
            payment_method=data.get("payment_method", "Cash"),
            payment_status=data.get("payment_status", "Paid"),
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStockError as e:
        return {"error": str(e), "details": e.details}, 409
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return {"error": "Internal server error"}, 500

    return invoice.to_dict(), 201
