"""
Refund reversal tests.
"""

import pytest
from decimal import Decimal
from sqlalchemy import select, func

from bizledger.app.core.config import settings
from bizledger.app.core.exceptions import InvalidRefundAmountError, PaymentNotFoundError
from bizledger.app.db.session import unit_of_work
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.domain.payments.allocation_engine import PaymentAllocationEngine
from bizledger.app.domain.payments.payment_detail import get_payment_detail
from bizledger.app.domain.payments.refund_engine import RefundEngine
from bizledger.app.models.ledger_enums import InvoiceStatus, PaymentMethod, ReferenceType
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.payment_allocation import PaymentAllocation
from bizledger.app.schemas.payment import AllocationInput


async def _paid_invoice(db_session, seed):
    """Customer with a 1000 + 180 invoice settled by one 1180 payment."""
    customer, ledger = await seed.customer()
    invoice = await seed.invoice(customer.id, "1000", "180")
    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment_with_allocations(
            db_session, customer.id, Decimal("1180"), PaymentMethod.UPI,
            allocations=[AllocationInput(invoice_id=invoice.id, amount=Decimal("1180"))],
        )
    return ledger, invoice, payment


@pytest.mark.asyncio
async def test_partial_refund_reopens_invoice(db_session, seed):
    ledger, invoice, payment = await _paid_invoice(db_session, seed)
    assert (await seed.refresh_invoice(invoice.id)).status == InvoiceStatus.PAID
    assert await seed.balance(ledger.id) == Decimal("0.00")

    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(
            db_session, payment.id, Decimal("300"), reason="damaged goods"
        )

    invoice = await seed.refresh_invoice(invoice.id)
    assert invoice.amount_paid == Decimal("880.00")
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    assert await seed.balance(ledger.id) == Decimal("300.00")
    assert result.reversals == [(invoice.id, Decimal("300.00"))]

    entries = await JournalService.find_by_reference(db_session, ReferenceType.PAYMENT_REFUND, payment.id)
    assert len(entries) == 1
    assert entries[0].description == f"Refund of payment #{payment.id} - damaged goods"

    allocation = (await db_session.execute(
        select(PaymentAllocation).where(PaymentAllocation.payment_id == payment.id)
    )).scalar_one()
    assert allocation.amount == Decimal("880.00")


@pytest.mark.asyncio
async def test_full_refund_is_default(db_session, seed):
    ledger, invoice, payment = await _paid_invoice(db_session, seed)

    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(db_session, payment.id)

    assert result.refund.amount == Decimal("1180.00")
    invoice = await seed.refresh_invoice(invoice.id)
    assert invoice.amount_paid == Decimal("0.00")
    assert invoice.status == InvoiceStatus.SENT
    assert await seed.balance(ledger.id) == Decimal("1180.00")

    remaining = (await db_session.execute(
        select(func.count(PaymentAllocation.id)).where(PaymentAllocation.payment_id == payment.id)
    )).scalar()
    assert remaining == 0

    detail = await get_payment_detail(db_session, payment.id)
    assert detail.total_refunded == Decimal("1180.00")
    assert detail.refundable_amount == Decimal("0.00")


@pytest.mark.asyncio
async def test_unwinds_most_recent_allocation_first(db_session, seed):
    customer, _ = await seed.customer()
    first = await seed.invoice(customer.id, "200")
    second = await seed.invoice(customer.id, "300")
    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment_with_allocations(
            db_session, customer.id, Decimal("500"), PaymentMethod.CASH,
            allocations=[
                AllocationInput(invoice_id=first.id, amount=Decimal("200")),
                AllocationInput(invoice_id=second.id, amount=Decimal("300")),
            ],
        )

    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(db_session, payment.id, Decimal("350"))

    assert result.reversals == [(second.id, Decimal("300.00")), (first.id, Decimal("50.00"))]
    second = await seed.refresh_invoice(second.id)
    assert second.amount_paid == Decimal("0.00")
    assert second.status == InvoiceStatus.SENT
    first = await seed.refresh_invoice(first.id)
    assert first.amount_paid == Decimal("150.00")
    assert first.status == InvoiceStatus.PARTIALLY_PAID

    detail = await get_payment_detail(db_session, payment.id)
    assert [(a.invoice_id, a.amount) for a in detail.allocations] == [(first.id, Decimal("150.00"))]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-10", "1500"])
async def test_out_of_range_refund_posts_nothing(db_session, seed, amount):
    ledger, invoice, payment = await _paid_invoice(db_session, seed)
    before = (await db_session.execute(select(func.count(LedgerTransaction.id)))).scalar()

    with pytest.raises(InvalidRefundAmountError) as exc_info:
        async with unit_of_work(db_session):
            await RefundEngine.refund_payment(db_session, payment.id, Decimal(amount))

    assert exc_info.value.message == "invalid refund amount"
    after = (await db_session.execute(select(func.count(LedgerTransaction.id)))).scalar()
    assert after == before
    assert await seed.balance(ledger.id) == Decimal("0.00")
    assert (await seed.refresh_invoice(invoice.id)).status == InvoiceStatus.PAID


@pytest.mark.asyncio
async def test_refunds_cannot_exceed_payment_in_total(db_session, seed, monkeypatch):
    ledger, _, payment = await _paid_invoice(db_session, seed)

    async with unit_of_work(db_session):
        await RefundEngine.refund_payment(db_session, payment.id, Decimal("1000"))

    with pytest.raises(InvalidRefundAmountError) as exc_info:
        async with unit_of_work(db_session):
            await RefundEngine.refund_payment(db_session, payment.id, Decimal("500"))
    assert exc_info.value.details["refundable"] == "180.00"

    # Bounded by the original amount only
    monkeypatch.setattr(settings, "cap_refunds_to_remaining", False)
    async with unit_of_work(db_session):
        await RefundEngine.refund_payment(db_session, payment.id, Decimal("500"))
    assert await seed.balance(ledger.id) == Decimal("1500.00")


@pytest.mark.asyncio
async def test_refund_of_unallocated_payment(db_session, seed):
    customer, ledger = await seed.customer()
    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment(
            db_session, customer.id, Decimal("250"), PaymentMethod.CASH
        )

    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(db_session, payment.id, Decimal("100"))

    assert result.reversals == []
    assert await seed.balance(ledger.id) == Decimal("-150.00")


@pytest.mark.asyncio
async def test_unknown_payment(db_session):
    with pytest.raises(PaymentNotFoundError) as exc_info:
        async with unit_of_work(db_session):
            await RefundEngine.refund_payment(db_session, 31337)
    assert exc_info.value.message == "payment not found"
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_long_reason_fits_description_column(db_session, seed):
    _, _, payment = await _paid_invoice(db_session, seed)
    reason = "x" * 500

    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(db_session, payment.id, Decimal("10"), reason=reason)

    entry = await JournalService.get_entry(db_session, result.ledger_transaction_id)
    limit = LedgerTransaction.__table__.c.description.type.length
    assert len(entry.description) <= limit
    assert entry.description.startswith(f"Refund of payment #{payment.id} - x")
    assert result.refund.reason == reason


@pytest.mark.asyncio
@pytest.mark.parametrize("paid_with", ["1180", "1500"])
async def test_reallocating_refunded_amount_restores_invoice(db_session, seed, paid_with):
    customer, ledger = await seed.customer()
    invoice = await seed.invoice(customer.id, "1000", "180")
    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment_with_allocations(
            db_session, customer.id, Decimal(paid_with), PaymentMethod.BANK_TRANSFER,
            allocations=[AllocationInput(invoice_id=invoice.id, amount=Decimal(paid_with))],
        )
    invoice = await seed.refresh_invoice(invoice.id)
    assert (invoice.amount_paid, invoice.status) == (Decimal("1180.00"), InvoiceStatus.PAID)

    async with unit_of_work(db_session):
        await RefundEngine.refund_payment(db_session, payment.id, Decimal("300"))
    invoice = await seed.refresh_invoice(invoice.id)
    assert (invoice.amount_paid, invoice.status) == (Decimal("880.00"), InvoiceStatus.PARTIALLY_PAID)

    async with unit_of_work(db_session):
        await PaymentAllocationEngine.record_payment_with_allocations(
            db_session, customer.id, Decimal("300"), PaymentMethod.CASH,
            allocations=[AllocationInput(invoice_id=invoice.id, amount=Decimal("300"))],
        )
    invoice = await seed.refresh_invoice(invoice.id)
    assert (invoice.amount_paid, invoice.status) == (Decimal("1180.00"), InvoiceStatus.PAID)

    result = await JournalService.reconcile(db_session, ledger.id)
    assert result.is_balanced


@pytest.mark.asyncio
async def test_full_refund_after_partial_takes_what_is_left(db_session, seed):
    customer, ledger = await seed.customer()
    async with unit_of_work(db_session):
        payment = await PaymentAllocationEngine.record_payment(
            db_session, customer.id, Decimal("100"), PaymentMethod.CASH
        )

    async with unit_of_work(db_session):
        await RefundEngine.refund_payment(db_session, payment.id, Decimal("30"))
    async with unit_of_work(db_session):
        result = await RefundEngine.refund_payment(db_session, payment.id)

    assert result.refund.amount == Decimal("70.00")
    assert await seed.balance(ledger.id) == Decimal("0.00")

    # Nothing left to refund
    with pytest.raises(InvalidRefundAmountError):
        async with unit_of_work(db_session):
            await RefundEngine.refund_payment(db_session, payment.id)
