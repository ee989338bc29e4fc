"""
Customer, order and invoice schemas.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional
from bizledger.app.models.ledger_enums import InvoiceStatus, OrderStatus


class CustomerCreate(BaseModel):
    """Schema for creating a customer."""
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=255)


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    company_name: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerCreatedResponse(BaseModel):
    customer: CustomerResponse
    ledger_id: int


class OrderCreate(BaseModel):
    """Schema for creating an order. total_amount defaults to subtotal + total_tax."""
    customer_id: int = Field(..., gt=0)
    order_number: Optional[str] = Field(None, max_length=50)
    subtotal: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    total_tax: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    total_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=500)
    order_date: Optional[datetime] = None


class OrderResponse(BaseModel):
    id: int
    customer_id: int
    order_number: str
    subtotal: Decimal
    total_tax: Decimal
    total_amount: Decimal
    order_status: OrderStatus
    order_date: datetime

    class Config:
        from_attributes = True


class OrderDeliveredResponse(BaseModel):
    order: OrderResponse
    ledger_transaction_id: Optional[int]


class InvoiceCreate(BaseModel):
    """Schema for issuing an invoice."""
    customer_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    tax: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    order_id: Optional[int] = None
    invoice_number: Optional[str] = Field(None, max_length=50)
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_due_date(self):
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date cannot be before issue_date")
        return self


class InvoiceResponse(BaseModel):
    id: int
    customer_id: int
    order_id: Optional[int]
    invoice_number: str
    amount: Decimal
    tax: Decimal
    amount_paid: Decimal
    status: InvoiceStatus
    issue_date: datetime
    due_date: Optional[datetime]

    class Config:
        from_attributes = True
