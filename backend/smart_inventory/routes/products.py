# Overview: Flask API routes for the product catalog and manual stock adjustments.

# backend/smart_inventory/routes/products.py
"""
Product routes.

All routes require authentication. Catalog edits and stock adjustments
require the Admin role; reads are open to sales staff.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_admin
from ..models import Product
from ..services import inventory_service, products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientStockError,
)

PRODUCT_EDITABLE_FIELDS = {
    "name",
    "category_id",
    "description",
    "price_cents",
    "stock_quantity",
    "min_stock_level",
    "unit",
    "image_url",
    "is_active",
}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"code", *PRODUCT_EDITABLE_FIELDS},
    required_on_create={"code", "name", "price_cents"},
)

# PUT replaces the record: the core fields must all be present
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_EDITABLE_FIELDS,
    required_on_create={"name", "price_cents", "stock_quantity", "min_stock_level"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(name: str, default: bool) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Query params:
    - active_only: bool (default true)
    - low_stock_only: bool (default false)
    - category_id: int
    - q: substring of name or code
    """
    products = products_service.list_products(
        active_only=_flag("active_only", True),
        low_stock_only=_flag("low_stock_only", False),
        category_id=request.args.get("category_id", type=int),
        search=request.args.get("q"),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}, 200


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return product.to_dict(), 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.create_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.update_product(product_id, patch, user_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    """Soft delete: the product is deactivated, never removed."""
    try:
        products_service.deactivate_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200


@products_bp.post("/adjust-stock")
@require_auth
@require_admin
def adjust_stock_route():
    """
    Manual stock change.

    Body: {product_id, quantity, transaction_type, notes?}
    quantity is signed; transaction_type is Purchase, Adjustment or Return.
    """
    data = request.get_json(silent=True) or {}
    if "product_id" not in data or "quantity" not in data or "transaction_type" not in data:
        return {"error": "product_id, quantity and transaction_type required"}, 400

    try:
        product, tx, alert = inventory_service.adjust_stock(
            product_id=data["product_id"],
            quantity_delta=data["quantity"],
            transaction_type=data["transaction_type"],
            user_id=g.current_user.id,
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStockError as e:
        return {"error": str(e), "details": e.details}, 409
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return {"error": "Internal server error"}, 500

    return {
        "message": "Stock adjusted successfully",
        "new_stock": product.stock_quantity,
        "transaction": tx.to_dict(),
        "alert": alert.to_dict() if alert else None,
    }, 200


@products_bp.get("/<int:product_id>/transactions")
@require_auth
def list_product_transactions_route(product_id: int):
    try:
        products_service.get_product(product_id)
        txs = inventory_service.list_transactions(
            product_id=product_id,
            transaction_type=request.args.get("transaction_type"),
            limit=min(request.args.get("limit", 200, type=int), 1000),
        )
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"items": [tx.to_dict() for tx in txs], "count": len(txs)}, 200
