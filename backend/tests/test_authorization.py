"""
Authentication and authorization tests.

Verifies:
- Unauthenticated requests return 401
- Sales staff are denied Admin-only operations (403)
- Login, logout and session validation
"""

from datetime import timedelta

import pytest

from smart_inventory.services.session_service import create_session, validate_session
from smart_inventory.time_utils import utcnow


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/register"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/1"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("POST", "/api/products/adjust-stock"),
            ("GET", "/api/products/1/transactions"),
            ("GET", "/api/invoices"),
            ("POST", "/api/invoices"),
            ("GET", "/api/alerts"),
            ("POST", "/api/alerts/1/resolve"),
            ("GET", "/api/customers"),
            ("GET", "/api/categories"),
            ("GET", "/api/analytics/dashboard"),
            ("GET", "/api/analytics/top-products"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# SALES STAFF DENIED ADMIN OPERATIONS — 403
# =============================================================================


class TestStaffDeniedAdminOperations:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/auth/register"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("POST", "/api/products/adjust-stock"),
            ("DELETE", "/api/customers/1"),
            ("POST", "/api/categories"),
        ],
    )
    def test_forbidden(self, client, staff_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=staff_headers)
        assert resp.status_code == 403

    def test_staff_can_sell_and_read(self, client, staff_headers, product):
        assert client.get("/api/products", headers=staff_headers).status_code == 200
        resp = client.post(
            "/api/invoices",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=staff_headers,
        )
        assert resp.status_code == 201


# =============================================================================
# LOGIN / LOGOUT / SESSIONS
# =============================================================================


class TestLogin:
    def test_login_returns_token_and_user(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "Password123"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert len(body["token"]) == 64
        assert body["user"]["role"] == "Admin"
        assert "password_hash" not in body["user"]

    def test_wrong_password(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid username or password"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"username": "admin"}).status_code == 400

    def test_disabled_user(self, client, admin_user, db_session):
        admin_user.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "Password123"})
        assert resp.status_code == 401

    def test_me_and_logout(self, client, admin_headers):
        me = client.get("/api/auth/me", headers=admin_headers)
        assert me.get_json()["user"]["username"] == "admin"

        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 200
        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 401


class TestSessions:
    def test_expired_session_rejected(self, db_session, admin_user):
        past = utcnow() - timedelta(hours=9)
        _, token = create_session(admin_user.id, now=past)
        assert validate_session(token) is None

    def test_deactivated_user_session_revoked(self, db_session, admin_user):
        session, token = create_session(admin_user.id)
        admin_user.is_active = False
        db_session.commit()

        assert validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True

    def test_valid_session_touches_last_used(self, db_session, admin_user):
        session, token = create_session(admin_user.id, now=utcnow() - timedelta(hours=1))
        context = validate_session(token)
        assert context.user.id == admin_user.id
        assert context.session.last_used_at > session.created_at


class TestRegister:
    def test_admin_registers_staff(self, client, admin_headers):
        resp = client.post(
            "/api/auth/register",
            json={
                "username": "newbie",
                "email": "newbie@shop.test",
                "full_name": "New Bie",
                "password": "Password456",
                "role": "SalesStaff",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["user"]["role"] == "SalesStaff"

        login = client.post("/api/auth/login", json={"username": "newbie", "password": "Password456"})
        assert login.status_code == 200

    def test_duplicate_username(self, client, admin_headers):
        resp = client.post(
            "/api/auth/register",
            json={"username": "admin", "email": "x@shop.test", "full_name": "X", "password": "Password456"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "overrides",
        [{"password": "short1"}, {"password": "lettersonly"}, {"role": "Manager"}, {"full_name": ""}],
    )
    def test_invalid_registration(self, client, admin_headers, overrides):
        payload = {
            "username": "other",
            "email": "other@shop.test",
            "full_name": "Other",
            "password": "Password456",
        }
        payload.update(overrides)
        resp = client.post("/api/auth/register", json=payload, headers=admin_headers)
        assert resp.status_code == 400
