"""
Order Service (Domain Logic).

Only the parts of the order lifecycle that touch the ledger:
creation (as an input) and delivery (receivable fallback).
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bizledger.app.core.clock import utc_now
from bizledger.app.core.exceptions import InvalidAmountError, InvalidStateError, ResourceNotFoundError
from bizledger.app.core.money import money, ZERO
from bizledger.app.domain.ledger.posting_rules import PostingRules
from bizledger.app.models.customer import Customer
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.order import Order
from bizledger.app.models.ledger_enums import OrderStatus

logger = logging.getLogger("bizledger.receivables.orders")


class OrderService:

    @staticmethod
    async def create_order(
        db: AsyncSession,
        customer_id: int,
        subtotal: Decimal,
        total_tax: Decimal = ZERO,
        total_amount: Optional[Decimal] = None,
        order_number: Optional[str] = None,
        notes: Optional[str] = None,
        order_date: Optional[datetime] = None,
    ) -> Order:
        """Create a pending order. total_amount defaults to subtotal + total_tax."""
        subtotal, total_tax = money(subtotal), money(total_tax)
        total_amount = money(total_amount) if total_amount is not None else subtotal + total_tax
        if subtotal < 0 or total_tax < 0 or total_amount < 0:
            raise InvalidAmountError("Order amounts cannot be negative")

        customer = await db.get(Customer, customer_id)
        if customer is None:
            raise ResourceNotFoundError("Customer", customer_id)

        now = utc_now()
        order = Order(
            customer_id=customer_id,
            order_number=order_number or f"PENDING-{uuid.uuid4().hex}",
            subtotal=subtotal,
            total_tax=total_tax,
            total_amount=total_amount,
            order_status=OrderStatus.PENDING,
            notes=notes,
            order_date=order_date or now,
        )
        db.add(order)
        await db.flush()

        if order_number is None:
            order.order_number = f"ORD-{order.id:06d}"
            await db.flush()

        logger.info("Created order %s for customer %s (%s)", order.order_number, customer_id, total_amount)
        return order

    @staticmethod
    async def mark_order_delivered(
        db: AsyncSession,
        order_id: int,
    ) -> tuple[Order, Optional[LedgerTransaction]]:
        """
        Transition an order to DELIVERED and post the receivable fallback.

        Returns:
            (order, posted entry or None when an invoice already covers it)

        Raises:
            ResourceNotFoundError: order does not exist
            InvalidStateError: order is already delivered or cancelled
        """
        result = await db.execute(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise ResourceNotFoundError("Order", order_id)

        if order.order_status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            raise InvalidStateError(
                f"Cannot deliver order in {order.order_status.value} state",
                details={"order_id": order_id},
            )

        order.order_status = OrderStatus.DELIVERED
        order.updated_at = utc_now()
        await db.flush()

        entry = await PostingRules.on_order_delivered(db, order)
        logger.info(
            "Order %s delivered%s", order.order_number,
            f"; posted receivable {entry.id}" if entry is not None else "",
        )
        return order, entry
