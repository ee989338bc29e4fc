"""
Invoice database model.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now
from bizledger.app.models.ledger_enums import InvoiceStatus


class Invoice(Base):
    """
    Invoice model.

    amount_paid stays within [0, amount + tax]. Payment-driven status
    (sent / partially_paid / paid) is derived from amount_paid by
    resolve_invoice_status; only the allocation and refund engines write it.
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True, index=True)
    invoice_number = Column(String(50), unique=True, nullable=False, index=True)

    # Financials
    amount = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)

    # Status
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.SENT, nullable=False, index=True)

    # Dates
    issue_date = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    @property
    def total(self):
        return self.amount + self.tax

    def __repr__(self):
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status.value}')>"
