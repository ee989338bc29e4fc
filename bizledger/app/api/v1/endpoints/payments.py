"""
Payment API Endpoints.

Recording a payment (with or without allocations) and refunding it are
each one all-or-nothing transaction.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db, unit_of_work
from bizledger.app.domain.payments.allocation_engine import PaymentAllocationEngine
from bizledger.app.domain.payments.payment_detail import get_payment_detail
from bizledger.app.domain.payments.refund_engine import RefundEngine
from bizledger.app.schemas.payment import (
    PaymentCreate, PaymentCreatedResponse, PaymentDetailResponse, PaymentResponse,
    PaymentAllocationResponse, PaymentRefundResponse,
    RefundCreate, RefundCreatedResponse, RefundReversal,
)
from bizledger.app.services.audit import log_event, AuditAction
from bizledger.app.services.cache import CacheService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_data: PaymentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Record a payment and optionally allocate it to invoices.

    Flow:
    1. Payment is inserted and credited to the customer's ledger
    2. Each allocation raises its invoice's amount_paid (clamped to the total)
       and moves its status to partially_paid / paid

    Any invalid allocation rejects the whole request; nothing is written.
    """
    async with unit_of_work(db):
        payment = await PaymentAllocationEngine.record_payment_with_allocations(
            db,
            customer_id=payment_data.customer_id,
            amount=payment_data.amount,
            payment_method=payment_data.payment_method,
            reference_number=payment_data.reference_number,
            notes=payment_data.notes,
            payment_date=payment_data.payment_date,
            allocations=payment_data.allocations,
        )
        await log_event(
            db=db,
            action=AuditAction.PAYMENT_RECORDED,
            entity_type="payment",
            entity_id=payment.id,
            metadata={
                "customer_id": payment.customer_id,
                "amount": str(payment.amount),
                "allocations": [
                    {"invoice_id": a.invoice_id, "amount": str(a.amount)}
                    for a in payment_data.allocations
                ],
            },
            ip_address=request.client.host if request.client else None,
        )

    await CacheService.invalidate_reports()

    return PaymentCreatedResponse(
        payment_id=payment.id,
        allocated_invoice_ids=[a.invoice_id for a in payment_data.allocations],
    )


@router.get("/{payment_id}", response_model=PaymentDetailResponse)
async def get_payment(payment_id: int, db: AsyncSession = Depends(get_db)):
    """Payment with its remaining allocations and refund history."""
    detail = await get_payment_detail(db, payment_id)
    return PaymentDetailResponse(
        payment=PaymentResponse.model_validate(detail.payment),
        allocations=[PaymentAllocationResponse.model_validate(a) for a in detail.allocations],
        refunds=[PaymentRefundResponse.model_validate(r) for r in detail.refunds],
        total_allocated=detail.total_allocated,
        total_refunded=detail.total_refunded,
        refundable_amount=detail.refundable_amount,
    )


@router.post("/{payment_id}/refunds", response_model=RefundCreatedResponse, status_code=status.HTTP_201_CREATED)
async def refund_payment(
    payment_id: int,
    refund_data: RefundCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Refund a payment, fully (no amount) or partially.

    Posts a compensating debit and unwinds allocations most recent first.
    Returns 404 for an unknown payment and 422 for an out-of-range amount.
    """
    async with unit_of_work(db):
        result = await RefundEngine.refund_payment(
            db,
            payment_id=payment_id,
            amount=refund_data.amount,
            reason=refund_data.reason,
        )
        await log_event(
            db=db,
            action=AuditAction.PAYMENT_REFUNDED,
            entity_type="payment",
            entity_id=payment_id,
            metadata={
                "refund_id": result.refund.id,
                "amount": str(result.refund.amount),
                "reason": result.refund.reason,
                "reversals": [
                    {"invoice_id": invoice_id, "amount": str(amount)}
                    for invoice_id, amount in result.reversals
                ],
            },
            ip_address=request.client.host if request.client else None,
        )

    await CacheService.invalidate_reports()

    return RefundCreatedResponse(
        refund=PaymentRefundResponse.model_validate(result.refund),
        ledger_transaction_id=result.ledger_transaction_id,
        reversals=[
            RefundReversal(invoice_id=invoice_id, amount=amount)
            for invoice_id, amount in result.reversals
        ],
    )
