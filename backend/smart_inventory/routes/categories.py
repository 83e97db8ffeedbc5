# Overview: Flask API routes for product categories.

from flask import Blueprint, request

from ..decorators import require_auth, require_admin
from ..models import Category
from ..services import category_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    rows = category_service.list_categories_with_counts()
    return {
        "items": [category.to_dict(product_count=count) for category, count in rows],
        "count": len(rows),
    }, 200


@categories_bp.post("")
@require_auth
@require_admin
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        category = category_service.create_category(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return category.to_dict(product_count=0), 201
