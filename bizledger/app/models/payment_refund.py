"""
Payment refund database model.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now


class PaymentRefund(Base):
    """
    Refund event against a payment. Immutable.
    """
    __tablename__ = "payment_refunds"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    payment_id = Column(Integer, ForeignKey('payments.id'), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<PaymentRefund(id={self.id}, payment_id={self.payment_id}, amount={self.amount})>"
