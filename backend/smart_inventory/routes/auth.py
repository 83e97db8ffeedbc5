# Overview: Flask API routes for login, logout and user registration.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import bearer_token, require_auth, require_admin
from ..services import auth_service, session_service
from ..services.auth_service import AuthenticationError
from ..validation import ValidationError, ConflictError
from ..time_utils import to_utc_z

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and open a session.

    Returns the plaintext token once; clients send it as
    `Authorization: Bearer <token>`.
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")
        if not username or not password:
            return jsonify({"error": "username and password required"}), 400

        user = auth_service.authenticate(username, password)
        session, token = session_service.create_session(user.id)

        current_app.logger.info("User logged in: %s", user.username)
        return jsonify({
            "token": token,
            "expires_at": to_utc_z(session.expires_at),
            "user": user.to_dict(),
        }), 200

    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token):
        return jsonify({"error": "Invalid or expired token"}), 401
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/register")
@require_auth
@require_admin
def register_route():
    """Create a staff account. Admin only; there is no self-registration."""
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.create_user(
            username=data.get("username"),
            email=data.get("email"),
            full_name=data.get("full_name"),
            password=data.get("password"),
            role=data.get("role", "SalesStaff"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User created: %s (%s)", user.username, user.role)
    return jsonify({"user": user.to_dict()}), 201
