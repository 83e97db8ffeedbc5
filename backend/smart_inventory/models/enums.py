"""
Closed value sets stored by name in string columns.

Members' values are the exact names persisted and accepted over the API
("BankTransfer", not "bank_transfer"). Use validation.parse_enum at the
boundary; never fall back to a default member.
"""
from __future__ import annotations

from enum import Enum


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "BankTransfer"
    OTHER = "Other"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    PARTIAL = "Partial"


class AlertType(str, Enum):
    LOW_STOCK = "LowStock"
    OUT_OF_STOCK = "OutOfStock"
    REORDERED = "Reordered"


class TransactionType(str, Enum):
    PURCHASE = "Purchase"
    SALE = "Sale"
    ADJUSTMENT = "Adjustment"
    RETURN = "Return"


# Sale entries are written only by invoice fulfillment
MANUAL_TRANSACTION_TYPES = frozenset({
    TransactionType.PURCHASE,
    TransactionType.ADJUSTMENT,
    TransactionType.RETURN,
})


class UserRole(str, Enum):
    ADMIN = "Admin"
    SALES_STAFF = "SalesStaff"
