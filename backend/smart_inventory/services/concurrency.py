# Overview: Locking helpers shared by the stock and invoice write paths.

from __future__ import annotations

from functools import wraps

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Take the database write lock before the first read of a write unit.

    SQLite has no row locks; a deferred transaction that reads and then
    writes can fail with "database is locked" instead of waiting. BEGIN
    IMMEDIATE makes competing writers queue on the busy timeout. Other
    dialects rely on conditional UPDATEs and row locks, so this is a no-op.
    """
    connection = db.session.connection()
    if connection.dialect.name != "sqlite":
        return
    # pysqlite opens its own transaction lazily before the first DML
    if connection.connection.dbapi_connection.in_transaction:
        return
    connection.execute(text("BEGIN IMMEDIATE"))


def rollback_on_error(func):
    """Roll the request's unit of work back before re-raising any failure."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            db.session.rollback()
            raise

    return wrapper
