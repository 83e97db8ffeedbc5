# Overview: Flask API routes for stock alerts.

from flask import Blueprint, request

from ..decorators import require_auth
from ..services import alert_service
from ..validation import NotFoundError

alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.get("")
@require_auth
def list_alerts_route():
    """Query params: unresolved_only (default true)."""
    raw = request.args.get("unresolved_only", "true")
    unresolved_only = raw.strip().lower() not in {"0", "false", "no"}

    alerts = alert_service.list_alerts(unresolved_only=unresolved_only)
    return {"items": [a.to_dict() for a in alerts], "count": len(alerts)}, 200


@alerts_bp.post("/<int:alert_id>/resolve")
@require_auth
def resolve_alert_route(alert_id: int):
    try:
        alert = alert_service.resolve_alert(alert_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"message": "Alert resolved", "alert": alert.to_dict()}, 200
