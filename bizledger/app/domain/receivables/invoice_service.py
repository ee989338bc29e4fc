"""
Invoice Service (Domain Logic).

Issuing an invoice posts its total as a debit on the customer's ledger.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.app.core.clock import utc_now
from bizledger.app.core.exceptions import InvalidAmountError, InvalidStateError, ResourceNotFoundError
from bizledger.app.core.money import money, ZERO
from bizledger.app.domain.ledger.posting_rules import PostingRules
from bizledger.app.models.customer import Customer
from bizledger.app.models.invoice import Invoice
from bizledger.app.models.order import Order
from bizledger.app.models.ledger_enums import InvoiceStatus, OrderStatus

logger = logging.getLogger("bizledger.receivables.invoices")


class InvoiceService:

    @staticmethod
    async def issue_invoice(
        db: AsyncSession,
        customer_id: int,
        amount: Decimal,
        tax: Decimal = ZERO,
        order_id: Optional[int] = None,
        invoice_number: Optional[str] = None,
        issue_date: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
    ) -> Invoice:
        """
        Issue an invoice and post its debit.

        Raises:
            ResourceNotFoundError: customer or order does not exist
            InvalidAmountError: negative amount or tax
            InvalidStateError: order belongs to another customer or is cancelled
        """
        amount, tax = money(amount), money(tax)
        if amount < 0 or tax < 0:
            raise InvalidAmountError(
                "Invoice amount and tax cannot be negative",
                details={"amount": str(amount), "tax": str(tax)},
            )

        customer = await db.get(Customer, customer_id)
        if customer is None:
            raise ResourceNotFoundError("Customer", customer_id)

        if order_id is not None:
            order = await db.get(Order, order_id)
            if order is None:
                raise ResourceNotFoundError("Order", order_id)
            if order.customer_id != customer_id:
                raise InvalidStateError(f"Order {order_id} belongs to another customer")
            if order.order_status == OrderStatus.CANCELLED:
                raise InvalidStateError(f"Order {order_id} is cancelled")

        now = utc_now()
        invoice = Invoice(
            customer_id=customer_id,
            order_id=order_id,
            # Temporary unique placeholder until the id is known
            invoice_number=invoice_number or f"PENDING-{uuid.uuid4().hex}",
            amount=amount,
            tax=tax,
            amount_paid=ZERO,
            status=InvoiceStatus.SENT,
            issue_date=issue_date or now,
            due_date=due_date,
        )
        db.add(invoice)
        await db.flush()

        if invoice_number is None:
            invoice.invoice_number = f"INV-{invoice.id:06d}"
            await db.flush()

        await PostingRules.on_invoice_issued(db, invoice)

        logger.info(
            "Issued invoice %s to customer %s for %s (tax %s)",
            invoice.invoice_number, customer_id, amount, tax,
        )
        return invoice
