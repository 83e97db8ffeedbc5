from __future__ import annotations

from ..extensions import db
from smart_inventory.time_utils import to_utc_z, utcnow

WALK_IN_CUSTOMER = "Walk-in Customer"


class Invoice(db.Model):
    """
    Billing document: created once, with its items, and never edited.

    Amounts are integer cents.
    Invariants: total_cents == subtotal_cents + tax_cents - discount_cents,
    subtotal_cents == sum(item.total_price_cents).
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_invoice_date", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number, INV-YYYYMMDD-NNN
    invoice_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    # PaymentMethod / PaymentStatus values
    payment_method = db.Column(db.String(16), nullable=False)
    payment_status = db.Column(db.String(16), nullable=False)

    notes = db.Column(db.String(1000), nullable=True)

    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    user = db.relationship("User")
    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
        lazy=True,
    )

    @property
    def customer_name(self) -> str:
        return self.customer.name if self.customer else WALK_IN_CUSTOMER

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "invoice_date": to_utc_z(self.invoice_date),
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "notes": self.notes,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    """
    One cart line. unit_price_cents is captured from the product when the
    invoice is created; later price edits never touch it.
    """
    __tablename__ = "invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.Integer,
        db.ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    invoice = db.relationship("Invoice", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_code": self.product.code if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
        }


class InvoiceSequence(db.Model):
    """
    Per-UTC-day invoice counter.

    The row for a day is bumped with a single UPDATE so two concurrent
    invoices can never read the same last_number.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    date_key = db.Column(db.String(8), nullable=False, unique=True)
    last_number = db.Column(db.Integer, nullable=False)
