# Overview: Password hashing, credential checks and user management.

"""
Authentication service.

- Passwords are hashed with bcrypt; the cost factor comes from the
  BCRYPT_ROUNDS config value (tests lower it).
- Usernames and emails are unique across the installation.
- Session tokens are handled in session_service.py.
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, UserRole
from ..validation import ConflictError, ValidationError, parse_enum
from smart_inventory.time_utils import utcnow

MIN_PASSWORD_LENGTH = 8


class AuthenticationError(Exception):
    """Credentials rejected. The message is safe to show to the client."""


def validate_password_strength(password: str) -> None:
    """
    Require at least 8 characters with a letter and a digit.

    Raises ValidationError otherwise.
    """
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Za-z]", password):
        raise ValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check; malformed hashes simply fail."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def authenticate(username: str, password: str) -> User:
    user = db.session.query(User).filter_by(username=(username or "").strip()).first()
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid username or password")
    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def create_user(
    *,
    username: str,
    email: str,
    full_name: str,
    password: str,
    role=UserRole.SALES_STAFF,
) -> User:
    """
    Create a user. Raises ConflictError on a taken username or email and
    ValidationError on a weak password or unknown role.
    """
    user_role = parse_enum(UserRole, role, "role")
    username = (username or "").strip()
    email = (email or "").strip()
    full_name = (full_name or "").strip()
    if not username or not email or not full_name:
        raise ValidationError("username, email and full_name are required")

    if db.session.query(User.id).filter_by(username=username).first():
        raise ConflictError("Username already exists")
    if db.session.query(User.id).filter_by(email=email).first():
        raise ConflictError("Email already exists")

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role=user_role.value,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc()).all()
