"""
Payment database model.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now
from bizledger.app.models.ledger_enums import PaymentMethod


class Payment(Base):
    """
    Payment model.

    Money received from a customer. Recording one posts a credit to the
    customer's ledger. Once allocated it only changes through refunds.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    reference_number = Column(String(100), nullable=True)
    notes = Column(String(500), nullable=True)

    payment_date = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Payment(id={self.id}, customer_id={self.customer_id}, amount={self.amount})>"
