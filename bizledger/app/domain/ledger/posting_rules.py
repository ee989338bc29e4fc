"""
Posting Rules (Domain Logic).

Automatic journal postings for upstream documents. Each hook is called
explicitly by the service that writes the document, inside the same
transaction, and posts through JournalService exactly once.

| Event             | Side   | Amount        | reference_type |
|-------------------|--------|---------------|----------------|
| Invoice issued    | debit  | amount + tax  | invoice        |
| Payment recorded  | credit | amount        | payment        |
| Order delivered   | debit  | total_amount  | order          |
"""

import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bizledger.app.core.clock import utc_now
from bizledger.app.core.money import money, ZERO
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.invoice import Invoice
from bizledger.app.models.order import Order
from bizledger.app.models.payment import Payment
from bizledger.app.models.ledger_enums import TransactionType, ReferenceType

logger = logging.getLogger("bizledger.ledger.posting")


async def get_customer_ledger(db: AsyncSession, customer_id: int) -> Optional[Ledger]:
    result = await db.execute(select(Ledger).where(Ledger.customer_id == customer_id))
    return result.scalar_one_or_none()


async def ensure_ledger(db: AsyncSession, customer_id: int) -> Ledger:
    """Return the customer's ledger, creating a zero-balance one if missing."""
    ledger = await get_customer_ledger(db, customer_id)
    if ledger is not None:
        return ledger

    now = utc_now()
    ledger = Ledger(
        customer_id=customer_id,
        opening_balance=ZERO,
        current_balance=ZERO,
        created_at=now,
        updated_at=now,
    )
    db.add(ledger)
    await db.flush()
    logger.info("Created ledger %s for customer %s", ledger.id, customer_id)
    return ledger


def payment_description(payment: Payment) -> str:
    method = getattr(payment.payment_method, "value", payment.payment_method)
    description = f"Payment via {method}"
    if payment.reference_number:
        description += f" - Ref: {payment.reference_number}"
    return description


class PostingRules:

    @staticmethod
    async def on_invoice_issued(db: AsyncSession, invoice: Invoice) -> Optional[LedgerTransaction]:
        """
        Debit the invoice total. A zero-total invoice posts nothing.

        A delivered-order fallback debit for the same order is voided first
        so the receivable is only counted once.
        """
        ledger = await ensure_ledger(db, invoice.customer_id)

        if invoice.order_id is not None:
            fallbacks = await JournalService.find_by_reference(db, ReferenceType.ORDER, invoice.order_id)
            for fallback in fallbacks:
                logger.info(
                    "Invoice %s supersedes delivery posting %s for order %s",
                    invoice.invoice_number, fallback.id, invoice.order_id,
                )
                await JournalService.void(db, fallback.id)

        total = money(invoice.amount) + money(invoice.tax)
        if total <= 0:
            return None

        return await JournalService.post(
            db,
            ledger_id=ledger.id,
            amount=total,
            transaction_type=TransactionType.DEBIT,
            reference_type=ReferenceType.INVOICE,
            reference_id=invoice.id,
            description=f"Invoice: {invoice.invoice_number}",
        )

    @staticmethod
    async def on_payment_recorded(db: AsyncSession, payment: Payment) -> LedgerTransaction:
        """Credit the payment amount, regardless of how it is allocated."""
        ledger = await ensure_ledger(db, payment.customer_id)
        return await JournalService.post(
            db,
            ledger_id=ledger.id,
            amount=payment.amount,
            transaction_type=TransactionType.CREDIT,
            reference_type=ReferenceType.PAYMENT,
            reference_id=payment.id,
            description=payment_description(payment),
        )

    @staticmethod
    async def on_order_delivered(db: AsyncSession, order: Order) -> Optional[LedgerTransaction]:
        """
        Debit the order total unless the order is already invoiced.

        Returns:
            The posted entry, or None when an invoice takes precedence
            (or the order total is zero).
        """
        invoiced = await db.execute(
            select(Invoice.id).where(Invoice.order_id == order.id).limit(1)
        )
        if invoiced.scalar_one_or_none() is not None:
            logger.info("Order %s already invoiced; skipping delivery posting", order.order_number)
            return None

        total = money(order.total_amount)
        if total <= 0:
            return None

        ledger = await ensure_ledger(db, order.customer_id)
        return await JournalService.post(
            db,
            ledger_id=ledger.id,
            amount=total,
            transaction_type=TransactionType.DEBIT,
            reference_type=ReferenceType.ORDER,
            reference_id=order.id,
            description=f"Order delivered: {order.order_number}",
        )
