"""
Order database model.

Only the fields the ledger needs: totals and delivery status.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now
from bizledger.app.models.ledger_enums import OrderStatus


class Order(Base):
    """
    Order model.

    Transition to DELIVERED posts a receivable when the order has not been
    invoiced yet (see PostingRules.on_order_delivered).
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    # Financials
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    total_tax = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Status
    order_status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    notes = Column(String(500), nullable=True)

    # Timestamps
    order_date = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.order_status.value}')>"
