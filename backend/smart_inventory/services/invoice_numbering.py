# Overview: Allocates human-readable invoice numbers, one counter per UTC day.

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Invoice, InvoiceSequence
from ..validation import ValidationError
from smart_inventory.time_utils import date_key, utcnow

PREFIX = "INV"

_NUMBER_RE = re.compile(r"^INV-(\d{8})-(\d{3,})$")


def format_invoice_number(day_key: str, sequence: int) -> str:
    return f"{PREFIX}-{day_key}-{sequence:03d}"


def parse_invoice_number(number: str) -> tuple[str, int]:
    """Split INV-YYYYMMDD-NNN into ("YYYYMMDD", NNN)."""
    match = _NUMBER_RE.match(number or "")
    if not match:
        raise ValidationError(f"Malformed invoice number: {number!r}")
    return match.group(1), int(match.group(2))


def _highest_issued(day_key: str) -> int:
    # Suffixes grow past three digits after 999, so order by length first
    latest = (
        db.session.query(Invoice.invoice_number)
        .filter(Invoice.invoice_number.like(f"{PREFIX}-{day_key}-%"))
        .order_by(func.length(Invoice.invoice_number).desc(), Invoice.invoice_number.desc())
        .limit(1)
        .scalar()
    )
    if latest is None:
        return 0
    return parse_invoice_number(latest)[1]


def _bump(day_key: str) -> int | None:
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.date_key == day_key)
        .values(last_number=InvoiceSequence.last_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    return (
        db.session.query(InvoiceSequence.last_number)
        .filter_by(date_key=day_key)
        .scalar()
    )


def next_invoice_number(now: datetime | None = None) -> str:
    """
    Allocate the next invoice number for the UTC day of `now`.

    Runs inside the caller's transaction: if the invoice is rolled back, so
    is the counter, and the number is handed out again. Numbers of invoices
    that were committed are never reused.
    """
    day_key = date_key(now or utcnow())

    current = _bump(day_key)
    if current is None:
        seeded = _highest_issued(day_key) + 1
        try:
            with db.session.begin_nested():
                db.session.add(InvoiceSequence(date_key=day_key, last_number=seeded))
            current = seeded
        except IntegrityError:
            # Another writer created the day's row first
            current = _bump(day_key)
            if current is None:
                raise

    return format_invoice_number(day_key, current)
