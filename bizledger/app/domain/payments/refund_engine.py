"""
Refund Reversal Engine (Domain Logic).

Reverses part or all of a payment: posts a compensating debit, records
the refund, and unwinds the payment's allocations most-recent-first.
Runs inside the caller's transaction; nothing here commits.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from bizledger.app.core.clock import utc_now
from bizledger.app.core.config import settings
from bizledger.app.core.exceptions import InvalidRefundAmountError, PaymentNotFoundError
from bizledger.app.core.money import money, ZERO
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.domain.ledger.posting_rules import ensure_ledger
from bizledger.app.domain.payments.allocation_engine import lock_invoice, apply_invoice_payment
from bizledger.app.models.payment import Payment
from bizledger.app.models.payment_allocation import PaymentAllocation
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.payment_refund import PaymentRefund
from bizledger.app.models.ledger_enums import TransactionType, ReferenceType

logger = logging.getLogger("bizledger.payments.refund")

DESCRIPTION_LIMIT = LedgerTransaction.__table__.c.description.type.length


@dataclass
class RefundResult:
    refund: PaymentRefund
    ledger_transaction_id: int
    # (invoice_id, amount reversed) in unwind order
    reversals: list[tuple[int, Decimal]] = field(default_factory=list)


async def total_refunded(db: AsyncSession, payment_id: int) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(PaymentRefund.amount), 0)).where(
            PaymentRefund.payment_id == payment_id
        )
    )
    return money(result.scalar())


class RefundEngine:

    @staticmethod
    async def _lock_payment(db: AsyncSession, payment_id: int) -> Payment:
        result = await db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    @staticmethod
    async def _resolve_amount(db: AsyncSession, payment: Payment, amount) -> Decimal:
        """
        Default to a full refund and bound the result; raises before any write.

        With cap_refunds_to_remaining, "full" means whatever is still refundable.
        """
        payment_amount = money(payment.amount)
        already_refunded = ZERO
        if settings.cap_refunds_to_remaining:
            already_refunded = await total_refunded(db, payment.id)

        if amount is None:
            refund_amount = payment_amount - already_refunded
        else:
            try:
                refund_amount = money(amount)
            except ArithmeticError:
                raise InvalidRefundAmountError(details={"requested": str(amount)})
            if not refund_amount.is_finite():
                raise InvalidRefundAmountError(details={"requested": str(amount)})

        if refund_amount <= 0 or refund_amount > payment_amount:
            logger.warning(
                "Rejected refund of %s against payment %s (amount %s)",
                refund_amount, payment.id, payment_amount,
            )
            raise InvalidRefundAmountError(details={
                "requested": str(refund_amount),
                "payment_amount": str(payment_amount),
            })

        if settings.cap_refunds_to_remaining:
            remaining = payment_amount - already_refunded
            if refund_amount > remaining:
                logger.warning(
                    "Rejected refund of %s against payment %s: only %s left to refund",
                    refund_amount, payment.id, remaining,
                )
                raise InvalidRefundAmountError(details={
                    "requested": str(refund_amount),
                    "payment_amount": str(payment_amount),
                    "already_refunded": str(already_refunded),
                    "refundable": str(remaining),
                })

        return refund_amount

    @staticmethod
    async def _unwind_allocations(
        db: AsyncSession,
        payment_id: int,
        refund_amount: Decimal,
    ) -> list[tuple[int, Decimal]]:
        result = await db.execute(
            select(PaymentAllocation)
            .where(PaymentAllocation.payment_id == payment_id)
            .order_by(desc(PaymentAllocation.created_at), desc(PaymentAllocation.id))
        )
        allocations = list(result.scalars().all())

        reversals = []
        remaining = refund_amount
        for allocation in allocations:
            if remaining <= 0:
                break

            allocated = money(allocation.amount)
            invoice_id = allocation.invoice_id
            invoice = await lock_invoice(db, invoice_id)

            if allocated <= remaining:
                # Fully reverse this allocation
                reversed_amount = allocated
                await db.delete(allocation)
            else:
                # Partially reverse and stop
                reversed_amount = remaining
                allocation.amount = allocated - remaining

            if invoice is not None:
                apply_invoice_payment(invoice, -reversed_amount)
            remaining -= reversed_amount
            await db.flush()

            reversals.append((invoice_id, reversed_amount))
            logger.info(
                "Reversed %s of payment %s from invoice %s -> paid=%s status=%s",
                reversed_amount, payment_id, invoice_id,
                invoice.amount_paid if invoice is not None else None,
                invoice.status.value if invoice is not None else None,
            )

        return reversals

    @staticmethod
    async def refund_payment(
        db: AsyncSession,
        payment_id: int,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> RefundResult:
        """
        Refund a payment, fully (amount=None) or partially.

        Flow:
        1. Lock payment (PaymentNotFoundError if absent)
        2. Resolve and validate refund amount (InvalidRefundAmountError)
        3. Post compensating debit (reference_type=payment_refund)
        4. Record PaymentRefund
        5. Unwind allocations, most recent first, until the amount is used up

        Returns:
            RefundResult with the refund row, journal entry id and the
            per-invoice reversals
        """
        payment = await RefundEngine._lock_payment(db, payment_id)
        refund_amount = await RefundEngine._resolve_amount(db, payment, amount)

        ledger = await ensure_ledger(db, payment.customer_id)
        description = f"Refund of payment #{payment.id}"
        if reason:
            description += f" - {reason}"
        description = description[:DESCRIPTION_LIMIT]
        entry = await JournalService.post(
            db,
            ledger_id=ledger.id,
            amount=refund_amount,
            transaction_type=TransactionType.DEBIT,
            reference_type=ReferenceType.PAYMENT_REFUND,
            reference_id=payment.id,
            description=description,
        )

        refund = PaymentRefund(
            payment_id=payment.id,
            amount=refund_amount,
            reason=reason,
            created_at=utc_now(),
        )
        db.add(refund)
        await db.flush()

        reversals = await RefundEngine._unwind_allocations(db, payment.id, refund_amount)

        logger.info(
            "Refunded %s of payment %s (%d allocation(s) unwound)",
            refund_amount, payment.id, len(reversals),
        )
        return RefundResult(refund=refund, ledger_transaction_id=entry.id, reversals=reversals)
