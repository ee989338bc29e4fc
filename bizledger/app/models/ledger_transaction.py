"""
Ledger transaction (journal entry) database model.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, Enum, String
from bizledger.app.db.session import Base
from bizledger.app.core.clock import utc_now
from bizledger.app.models.ledger_enums import TransactionType, ReferenceType


class LedgerTransaction(Base):
    """
    Journal entry model.

    Append-mostly signed posting against a ledger. Corrections and voids go
    through JournalService so the owning ledger's balance is adjusted once
    per mutation.
    """
    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ledger_id = Column(Integer, ForeignKey('ledgers.id'), nullable=False, index=True)

    # Entry details
    amount = Column(Numeric(12, 2), nullable=False)  # Always positive, side given by type
    transaction_type = Column(Enum(TransactionType), nullable=False)

    # Source document
    reference_type = Column(Enum(ReferenceType), nullable=True, index=True)
    reference_id = Column(Integer, nullable=True, index=True)
    description = Column(String(500), nullable=True)

    # Timestamps
    transaction_date = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<LedgerTransaction(id={self.id}, type='{self.transaction_type.value}', amount={self.amount})>"
