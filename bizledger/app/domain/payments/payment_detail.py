"""
Payment detail view: the payment with what is still allocated and what
has been refunded.
"""

from dataclasses import dataclass
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bizledger.app.core.exceptions import PaymentNotFoundError
from bizledger.app.core.money import money, ZERO
from bizledger.app.models.payment import Payment
from bizledger.app.models.payment_allocation import PaymentAllocation
from bizledger.app.models.payment_refund import PaymentRefund


@dataclass
class PaymentDetail:
    payment: Payment
    allocations: list[PaymentAllocation]
    refunds: list[PaymentRefund]

    @property
    def total_allocated(self) -> Decimal:
        return sum((money(a.amount) for a in self.allocations), ZERO)

    @property
    def total_refunded(self) -> Decimal:
        return sum((money(r.amount) for r in self.refunds), ZERO)

    @property
    def refundable_amount(self) -> Decimal:
        return max(money(self.payment.amount) - self.total_refunded, ZERO)


async def get_payment_detail(db: AsyncSession, payment_id: int) -> PaymentDetail:
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise PaymentNotFoundError(payment_id)

    allocations = await db.execute(
        select(PaymentAllocation)
        .where(PaymentAllocation.payment_id == payment_id)
        .order_by(PaymentAllocation.created_at, PaymentAllocation.id)
    )
    refunds = await db.execute(
        select(PaymentRefund)
        .where(PaymentRefund.payment_id == payment_id)
        .order_by(PaymentRefund.created_at, PaymentRefund.id)
    )
    return PaymentDetail(
        payment=payment,
        allocations=list(allocations.scalars().all()),
        refunds=list(refunds.scalars().all()),
    )
