from .enums import PaymentMethod, PaymentStatus, AlertType, TransactionType, UserRole, MANUAL_TRANSACTION_TYPES
from .catalog import Category, Product
from .customers import Customer
from .auth import User, SessionToken
from .invoices import Invoice, InvoiceItem, InvoiceSequence, WALK_IN_CUSTOMER
from .inventory import StockTransaction, StockAlert

__all__ = [
    'PaymentMethod', 'PaymentStatus', 'AlertType', 'TransactionType', 'UserRole', 'MANUAL_TRANSACTION_TYPES',
    'Category', 'Product',
    'Customer',
    'User', 'SessionToken',
    'Invoice', 'InvoiceItem', 'InvoiceSequence', 'WALK_IN_CUSTOMER',
    'StockTransaction', 'StockAlert',
]
