"""
Automatic postings: invoices, payments and delivered orders.
"""

import pytest
from decimal import Decimal

from bizledger.app.core.exceptions import InvalidStateError
from bizledger.app.db.session import unit_of_work
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.domain.payments.allocation_engine import PaymentAllocationEngine
from bizledger.app.domain.receivables.order_service import OrderService
from bizledger.app.models.ledger_enums import PaymentMethod, ReferenceType, TransactionType


@pytest.mark.asyncio
async def test_invoice_posts_amount_plus_tax(db_session, seed):
    customer, ledger = await seed.customer()
    invoice = await seed.invoice(customer.id, "1000", "180")

    entries = await JournalService.list_transactions(db_session, ledger.id)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.transaction_type == TransactionType.DEBIT
    assert entry.amount == Decimal("1180.00")
    assert entry.reference_type == ReferenceType.INVOICE
    assert entry.reference_id == invoice.id
    assert entry.description == f"Invoice: {invoice.invoice_number}"
    assert invoice.invoice_number == f"INV-{invoice.id:06d}"
    assert await seed.balance(ledger.id) == Decimal("1180.00")


@pytest.mark.asyncio
async def test_zero_invoice_posts_nothing(db_session, seed):
    customer, ledger = await seed.customer()
    await seed.invoice(customer.id, "0", "0")

    assert await JournalService.list_transactions(db_session, ledger.id) == []


@pytest.mark.asyncio
async def test_payment_credit_description(db_session, seed):
    customer, ledger = await seed.customer()

    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment(
            db_session, customer.id, Decimal("500"), PaymentMethod.UPI, reference_number="UTR123"
        )

    entries = await JournalService.find_by_reference(db_session, ReferenceType.PAYMENT, payment.id)
    assert len(entries) == 1
    assert entries[0].transaction_type == TransactionType.CREDIT
    assert entries[0].description == "Payment via upi - Ref: UTR123"
    assert await seed.balance(ledger.id) == Decimal("-500.00")


@pytest.mark.asyncio
async def test_delivered_order_without_invoice_posts_fallback(db_session, seed):
    customer, ledger = await seed.customer()
    order = await seed.order(customer.id, "400", "72")

    async with unit_of_work(db_session):
        order, entry = await OrderService.mark_order_delivered(db_session, order.id)

    assert entry is not None
    assert entry.reference_type == ReferenceType.ORDER
    assert entry.amount == Decimal("472.00")
    assert await seed.balance(ledger.id) == Decimal("472.00")


@pytest.mark.asyncio
async def test_delivered_order_with_invoice_posts_nothing(db_session, seed):
    customer, ledger = await seed.customer()
    order = await seed.order(customer.id, "400", "72")
    await seed.invoice(customer.id, "400", "72", order_id=order.id)

    async with unit_of_work(db_session):
        _, entry = await OrderService.mark_order_delivered(db_session, order.id)

    assert entry is None
    assert await seed.balance(ledger.id) == Decimal("472.00")


@pytest.mark.asyncio
async def test_invoice_supersedes_earlier_delivery_posting(db_session, seed):
    customer, ledger = await seed.customer()
    order = await seed.order(customer.id, "400", "72")

    async with unit_of_work(db_session):
        await OrderService.mark_order_delivered(db_session, order.id)

    invoice = await seed.invoice(customer.id, "400", "72", order_id=order.id)

    assert await JournalService.find_by_reference(db_session, ReferenceType.ORDER, order.id) == []
    entries = await JournalService.list_transactions(db_session, ledger.id)
    assert [(e.reference_type, e.reference_id) for e in entries] == [(ReferenceType.INVOICE, invoice.id)]
    assert await seed.balance(ledger.id) == Decimal("472.00")


@pytest.mark.asyncio
async def test_redelivering_order_is_rejected(db_session, seed):
    customer, ledger = await seed.customer()
    order = await seed.order(customer.id, "100")

    async with unit_of_work(db_session):
        await OrderService.mark_order_delivered(db_session, order.id)

    with pytest.raises(InvalidStateError):
        async with unit_of_work(db_session):
            await OrderService.mark_order_delivered(db_session, order.id)

    assert await seed.balance(ledger.id) == Decimal("100.00")
