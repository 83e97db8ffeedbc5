# Overview: Flask API routes for customer records.

from flask import Blueprint, request

from ..decorators import require_auth, require_admin
from ..models import Customer
from ..services import customer_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, NotFoundError

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    customers = customer_service.list_customers(search=request.args.get("q"))
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}, 200


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return customer.to_dict(), 200


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    customer = customer_service.create_customer(patch)
    return customer.to_dict(), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        customer = customer_service.update_customer(customer_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return customer.to_dict(), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_admin
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"ok": True}, 200
