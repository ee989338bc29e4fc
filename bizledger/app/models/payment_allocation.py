"""
Payment allocation database model.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now


class PaymentAllocation(Base):
    """
    Portion of a payment applied to one invoice.

    Shrunk or deleted (most recent first) when the payment is refunded.
    """
    __tablename__ = "payment_allocations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    payment_id = Column(Integer, ForeignKey('payments.id'), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey('invoices.id'), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<PaymentAllocation(id={self.id}, payment_id={self.payment_id}, invoice_id={self.invoice_id}, amount={self.amount})>"
