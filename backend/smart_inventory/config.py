# backend/smart_inventory/config.py
from __future__ import annotations
import os


def _split_origins(raw: str) -> set[str]:
    return {origin.strip() for origin in raw.split(",") if origin.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/smart_inventory.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///smart_inventory.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Absolute lifetime of a login session
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "8"))

    # bcrypt cost factor; tests lower this to keep hashing fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Single-page client dev servers
    CORS_ALLOWED_ORIGINS = _split_origins(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:4200,http://127.0.0.1:4200",
        )
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
