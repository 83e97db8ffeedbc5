# Overview: Opaque bearer tokens for authenticated API sessions.

"""
Session tokens.

- Tokens are 32 random bytes (hex); only their SHA-256 is stored.
- Sessions expire SESSION_TTL_HOURS after login and can be revoked on logout.
- validate_session records activity and commits, so a request never starts
  its own work inside a transaction left open by authentication.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from smart_inventory.time_utils import utcnow


@dataclass
class SessionContext:
    user: User
    session: SessionToken


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int, now: datetime | None = None) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token); the client keeps the token."""
    now = now or utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 8))
    token = generate_token()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str, now: datetime | None = None) -> SessionContext | None:
    """
    Returns None for unknown, expired or revoked tokens and for deactivated
    users.
    """
    if not token:
        return None
    now = now or utcnow()

    session = (
        db.session.query(SessionToken)
        .filter_by(token_hash=hash_token(token), is_revoked=False)
        .first()
    )
    if session is None or session.expires_at <= now:
        return None

    user = session.user
    if user is None or not user.is_active:
        session.is_revoked = True
        session.revoked_at = now
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str, now: datetime | None = None) -> bool:
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if session is None or session.is_revoked:
        return False
    session.is_revoked = True
    session.revoked_at = now or utcnow()
    db.session.commit()
    return True
