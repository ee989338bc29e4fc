"""
Ledger, invoicing and payment enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """Journal entry side."""
    DEBIT = "debit"  # Increases what the customer owes (receivable)
    CREDIT = "credit"  # Decreases what the customer owes (payment received)


class ReferenceType(str, enum.Enum):
    """Source document a journal entry was posted for."""
    INVOICE = "invoice"
    PAYMENT = "payment"
    ORDER = "order"
    PAYMENT_REFUND = "payment_refund"


class InvoiceStatus(str, enum.Enum):
    """Invoice status enumeration."""
    DRAFT = "draft"
    SENT = "sent"  # Issued, nothing paid yet
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class OrderStatus(str, enum.Enum):
    """Order status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    CHEQUE = "cheque"
