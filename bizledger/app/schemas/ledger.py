"""
Ledger and journal schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from bizledger.app.models.ledger_enums import TransactionType, ReferenceType


class LedgerResponse(BaseModel):
    """Schema for displaying a ledger account."""
    id: int
    customer_id: int
    opening_balance: Decimal
    current_balance: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LedgerTransactionCreate(BaseModel):
    """Manual journal entry."""
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    transaction_type: TransactionType
    reference_type: Optional[ReferenceType] = None
    reference_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    transaction_date: Optional[datetime] = None


class LedgerTransactionUpdate(BaseModel):
    """Correction of a journal entry. Omitted fields are left unchanged."""
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    transaction_type: Optional[TransactionType] = None
    reference_type: Optional[ReferenceType] = None
    reference_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    transaction_date: Optional[datetime] = None


class LedgerTransactionResponse(BaseModel):
    """Schema for displaying a journal entry."""
    id: int
    ledger_id: int
    amount: Decimal
    transaction_type: TransactionType
    reference_type: Optional[ReferenceType]
    reference_id: Optional[int]
    description: Optional[str]
    transaction_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerStatementResponse(BaseModel):
    """Journal window with running totals, as shown on the ledger screen."""
    ledger: LedgerResponse
    transactions: List[LedgerTransactionResponse]
    total_debits: Decimal
    total_credits: Decimal


class ReconciliationResponse(BaseModel):
    ledger_id: int
    opening_balance: Decimal
    total_debits: Decimal
    total_credits: Decimal
    journal_balance: Decimal
    current_balance: Decimal
    drift: Decimal
    is_balanced: bool
