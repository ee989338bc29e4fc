"""
Customer database model.

Identity anchor for the ledger: every customer owns exactly one ledger.
"""

from sqlalchemy import Column, Integer, String, DateTime
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now


class Customer(Base):
    """
    Customer model.

    Creating a customer creates its ledger account in the same transaction
    (see CustomerService.create_customer).
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
