"""
Audit Log Database Model.

Tracks every ledger-affecting action for reconciliation and compliance.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now


class AuditLog(Base):
    """
    Audit log model for tracking bookkeeping events.

    Events logged:
    - CUSTOMER_CREATED
    - INVOICE_ISSUED / ORDER_DELIVERED
    - PAYMENT_RECORDED / PAYMENT_REFUNDED
    - LEDGER_ENTRY_ADDED / LEDGER_ENTRY_AMENDED / LEDGER_ENTRY_VOIDED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which record it was performed on
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    # Who performed it (free-form, supplied by the client layer)
    actor = Column(String(100), nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # IP address of the request
    ip_address = Column(String(50), nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
