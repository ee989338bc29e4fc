"""
Ledger account database model.

One running-balance record per customer.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now


class Ledger(Base):
    """
    Ledger model.

    Invariant: current_balance == opening_balance + sum(debits) - sum(credits)
    over this ledger's journal entries. Only BalanceMaintainer writes
    current_balance.
    """
    __tablename__ = "ledgers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, unique=True, index=True)

    # Financials
    opening_balance = Column(Numeric(12, 2), nullable=False, default=0)
    current_balance = Column(Numeric(12, 2), nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Ledger(id={self.id}, customer_id={self.customer_id}, balance={self.current_balance})>"
