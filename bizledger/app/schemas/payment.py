"""
Payment, allocation and refund schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from bizledger.app.models.ledger_enums import PaymentMethod


class AllocationInput(BaseModel):
    """One slice of a payment applied to one invoice."""
    invoice_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class PaymentCreate(BaseModel):
    """Schema for recording a payment, optionally allocated to invoices."""
    customer_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    payment_date: Optional[datetime] = None
    allocations: List[AllocationInput] = Field(default_factory=list)


class RefundCreate(BaseModel):
    """Schema for refunding a payment. Amount defaults to the full payment."""
    amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentResponse(BaseModel):
    """Schema for displaying a payment."""
    id: int
    customer_id: int
    amount: Decimal
    payment_method: PaymentMethod
    reference_number: Optional[str]
    notes: Optional[str]
    payment_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentAllocationResponse(BaseModel):
    id: int
    payment_id: int
    invoice_id: int
    amount: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentRefundResponse(BaseModel):
    id: int
    payment_id: int
    amount: Decimal
    reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentDetailResponse(BaseModel):
    """Payment with its current allocations and refund history."""
    payment: PaymentResponse
    allocations: List[PaymentAllocationResponse]
    refunds: List[PaymentRefundResponse]
    total_allocated: Decimal
    total_refunded: Decimal
    refundable_amount: Decimal


class PaymentCreatedResponse(BaseModel):
    payment_id: int
    allocated_invoice_ids: List[int]


class RefundReversal(BaseModel):
    invoice_id: int
    amount: Decimal


class RefundCreatedResponse(BaseModel):
    """Outcome of a refund: the refund row, its journal entry and the unwound allocations."""
    refund: PaymentRefundResponse
    ledger_transaction_id: int
    reversals: List[RefundReversal]
