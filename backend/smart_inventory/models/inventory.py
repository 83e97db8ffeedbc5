from __future__ import annotations

from ..extensions import db
from smart_inventory.time_utils import to_utc_z, utcnow


class StockTransaction(db.Model):
    """
    Append-only log of every stock quantity change.

    quantity is the signed delta applied to Product.stock_quantity. Sale rows
    carry the invoice number in reference_number.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        db.Index("ix_stocktx_product_date", "product_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # TransactionType value
    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    reference_number = db.Column(db.String(64), nullable=True, index=True)
    notes = db.Column(db.String(500), nullable=True)

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "transaction_type": self.transaction_type,
            "quantity": self.quantity,
            "transaction_date": to_utc_z(self.transaction_date),
            "reference_number": self.reference_number,
            "notes": self.notes,
        }


class StockAlert(db.Model):
    """
    Raised when a product's stock crosses a threshold downward.

    Alerts are resolved by a user and never reopened or deleted; they go away
    only with their product.
    """
    __tablename__ = "stock_alerts"
    __table_args__ = (
        db.Index("ix_stock_alerts_resolved_created", "is_resolved", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # AlertType value
    alert_type = db.Column(db.String(16), nullable=False)
    message = db.Column(db.String(500), nullable=True)

    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    product = db.relationship("Product", back_populates="alerts")

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "product_code": product.code if product else None,
            "alert_type": self.alert_type,
            "message": self.message,
            "current_stock": product.stock_quantity if product else None,
            "min_stock_level": product.min_stock_level if product else None,
            "is_resolved": self.is_resolved,
            "created_at": to_utc_z(self.created_at),
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
        }
