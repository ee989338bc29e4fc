"""
Customer Service (Domain Logic).

Creating a customer opens its ledger account in the same transaction.
"""

import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.app.domain.ledger.posting_rules import ensure_ledger
from bizledger.app.models.customer import Customer
from bizledger.app.models.ledger import Ledger

logger = logging.getLogger("bizledger.receivables.customers")


class CustomerService:

    @staticmethod
    async def create_customer(
        db: AsyncSession,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> tuple[Customer, Ledger]:
        """
        Create a customer and its zero-balance ledger.

        Returns:
            (customer, ledger), both flushed
        """
        customer = Customer(name=name, email=email, phone=phone, company_name=company_name)
        db.add(customer)
        await db.flush()

        ledger = await ensure_ledger(db, customer.id)
        logger.info("Created customer %s (%s) with ledger %s", customer.id, name, ledger.id)
        return customer, ledger
