"""
Payment Allocation Engine (Domain Logic).

Records a payment and spreads it over zero or more invoices as one
atomic unit. Must run inside a single transaction (unit_of_work);
every check here raises, and nothing here commits.

Flow:
1. Validate the allocation batch (types, amounts, invoices, cap)
2. Insert the Payment and post its credit (PostingRules)
3. For each allocation, in submitted order:
   insert PaymentAllocation -> lock invoice row -> apply clamp rule
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bizledger.app.core.clock import utc_now
from bizledger.app.core.config import settings
from bizledger.app.core.exceptions import InvalidAllocationError, InvalidAmountError, ResourceNotFoundError
from bizledger.app.core.money import money, parse_amount, ZERO
from bizledger.app.domain.ledger.posting_rules import PostingRules
from bizledger.app.domain.payments.invoice_status import resolve_invoice_status
from bizledger.app.models.customer import Customer
from bizledger.app.models.invoice import Invoice
from bizledger.app.models.payment import Payment
from bizledger.app.models.payment_allocation import PaymentAllocation
from bizledger.app.models.ledger_enums import InvoiceStatus, PaymentMethod
from bizledger.app.schemas.payment import AllocationInput

logger = logging.getLogger("bizledger.payments.allocation")


async def lock_invoice(db: AsyncSession, invoice_id: int) -> Optional[Invoice]:
    """
    Load an invoice under an exclusive row lock.

    Held until the surrounding transaction ends, so concurrent allocations
    and refunds against one invoice cannot read a stale amount_paid.
    """
    result = await db.execute(
        select(Invoice)
        .where(Invoice.id == invoice_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def apply_invoice_payment(invoice: Invoice, delta: Decimal) -> None:
    """Shift amount_paid by delta and re-derive status with the clamp rule."""
    new_paid, new_status = resolve_invoice_status(money(invoice.amount_paid) + delta, invoice.total)
    invoice.amount_paid = new_paid
    invoice.status = new_status
    invoice.updated_at = utc_now()


class PaymentAllocationEngine:

    @staticmethod
    def _normalize_allocations(allocations: Sequence) -> list[tuple[int, Decimal]]:
        """
        Turn submitted entries into (invoice_id, amount) pairs.

        Any missing or invalid field rejects the whole batch.
        """
        normalized = []
        for index, allocation in enumerate(allocations):
            if isinstance(allocation, dict):
                allocation = {k: v for k, v in allocation.items() if v is not None}
                try:
                    allocation = AllocationInput(**allocation)
                except ValueError as exc:
                    raise InvalidAllocationError(
                        "Allocation entry is missing invoice_id or amount",
                        index=index,
                        details={"error": str(exc)},
                    )
            invoice_id = getattr(allocation, "invoice_id", None)
            if not isinstance(invoice_id, int) or invoice_id <= 0:
                raise InvalidAllocationError("Allocation entry has an invalid invoice_id", index=index)
            try:
                amount = parse_amount(getattr(allocation, "amount", None))
            except InvalidAmountError:
                raise InvalidAllocationError("Allocation amount must be greater than zero", index=index)
            normalized.append((invoice_id, amount))
        return normalized

    @staticmethod
    async def _validate_invoices(
        db: AsyncSession,
        customer_id: int,
        allocations: list[tuple[int, Decimal]],
    ) -> None:
        invoice_ids = {invoice_id for invoice_id, _ in allocations}
        if not invoice_ids:
            return
        result = await db.execute(select(Invoice).where(Invoice.id.in_(invoice_ids)))
        invoices = {invoice.id: invoice for invoice in result.scalars().all()}

        for index, (invoice_id, _) in enumerate(allocations):
            invoice = invoices.get(invoice_id)
            if invoice is None:
                raise InvalidAllocationError(f"Invoice {invoice_id} not found", index=index)
            if invoice.customer_id != customer_id:
                raise InvalidAllocationError(
                    f"Invoice {invoice_id} belongs to another customer", index=index
                )
            if invoice.status == InvoiceStatus.CANCELLED:
                raise InvalidAllocationError(f"Invoice {invoice_id} is cancelled", index=index)

    @staticmethod
    async def record_payment_with_allocations(
        db: AsyncSession,
        customer_id: int,
        amount: Decimal,
        payment_method: PaymentMethod,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        payment_date: Optional[datetime] = None,
        allocations: Sequence[AllocationInput] = (),
    ) -> Payment:
        """
        Record a payment and apply it to invoices, all or nothing.

        Args:
            db: Database session (transaction managed by caller)
            customer_id: Paying customer
            amount: Payment amount (> 0)
            payment_method: How the money arrived
            reference_number: Bank / cheque / UPI reference
            notes: Free text
            payment_date: Defaults to now
            allocations: Ordered (invoice_id, amount) entries

        Returns:
            The new Payment (flushed, id populated)

        Raises:
            InvalidAmountError: payment amount is not > 0
            InvalidAllocationError: any allocation entry is invalid
            ResourceNotFoundError: customer does not exist
        """
        amount = parse_amount(amount)
        batch = PaymentAllocationEngine._normalize_allocations(allocations)

        customer = await db.get(Customer, customer_id)
        if customer is None:
            raise ResourceNotFoundError("Customer", customer_id)

        await PaymentAllocationEngine._validate_invoices(db, customer_id, batch)

        allocated_total = sum((entry_amount for _, entry_amount in batch), ZERO)
        if settings.enforce_allocation_cap and allocated_total > amount:
            raise InvalidAllocationError(
                "Allocations exceed the payment amount",
                details={"payment_amount": str(amount), "allocated_total": str(allocated_total)},
            )

        # 1. Payment + automatic credit posting
        payment = Payment(
            customer_id=customer_id,
            amount=amount,
            payment_method=PaymentMethod(payment_method),
            reference_number=reference_number,
            notes=notes,
            payment_date=payment_date or utc_now(),
        )
        db.add(payment)
        await db.flush()
        await PostingRules.on_payment_recorded(db, payment)

        # 2. Allocations, in submitted order
        for index, (invoice_id, allocation_amount) in enumerate(batch):
            db.add(PaymentAllocation(
                payment_id=payment.id,
                invoice_id=invoice_id,
                amount=allocation_amount,
                created_at=utc_now(),
            ))

            invoice = await lock_invoice(db, invoice_id)
            # Deleted since validation; earlier flushes are undone by unit_of_work rollback
            if invoice is None:
                raise InvalidAllocationError(f"Invoice {invoice_id} not found", index=index)

            apply_invoice_payment(invoice, allocation_amount)
            await db.flush()

            logger.info(
                "Allocated %s of payment %s to invoice %s -> paid=%s status=%s",
                allocation_amount, payment.id, invoice.invoice_number,
                invoice.amount_paid, invoice.status.value,
            )

        logger.info(
            "Recorded payment %s: %s from customer %s across %d invoice(s)",
            payment.id, amount, customer_id, len(batch),
        )
        return payment

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        customer_id: int,
        amount: Decimal,
        payment_method: PaymentMethod,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        """Record an unallocated payment (credit posting only)."""
        return await PaymentAllocationEngine.record_payment_with_allocations(
            db,
            customer_id=customer_id,
            amount=amount,
            payment_method=payment_method,
            reference_number=reference_number,
            notes=notes,
            payment_date=payment_date,
        )
