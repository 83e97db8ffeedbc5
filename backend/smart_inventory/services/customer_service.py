# Overview: Customer records used on invoices.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Invoice
from ..validation import NotFoundError
from .concurrency import rollback_on_error

CUSTOMER_FIELDS = ("name", "email", "phone", "address")


def list_customers(search: str | None = None) -> list[Customer]:
    q = db.session.query(Customer)
    if search:
        q = q.filter(Customer.name.ilike(f"%{search.strip()}%"))
    return q.order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer with ID {customer_id} not found")
    return customer


@rollback_on_error
def create_customer(patch: dict) -> Customer:
    customer = Customer()
    for field in CUSTOMER_FIELDS:
        if field in patch:
            setattr(customer, field, patch[field])
    db.session.add(customer)
    db.session.commit()
    return customer


@rollback_on_error
def update_customer(customer_id: int, patch: dict) -> Customer:
    customer = get_customer(customer_id)
    for field in CUSTOMER_FIELDS:
        if field in patch:
            setattr(customer, field, patch[field])
    db.session.commit()
    return customer


@rollback_on_error
def delete_customer(customer_id: int) -> None:
    """Past invoices stay and become walk-in invoices."""
    customer = get_customer(customer_id)
    db.session.query(Invoice).filter(Invoice.customer_id == customer_id).update(
        {Invoice.customer_id: None}, synchronize_session=False
    )
    db.session.delete(customer)
    db.session.commit()
