"""
Transaction Journal (Domain Logic).

All journal writes go through JournalService so each insert, correction
and void triggers exactly one BalanceMaintainer adjustment in the same
transaction. Callers own the commit (see db.session.unit_of_work).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case

from bizledger.app.core.clock import utc_now, start_of_day
from bizledger.app.core.exceptions import ResourceNotFoundError
from bizledger.app.core.money import money, parse_amount
from bizledger.app.domain.ledger.balance_maintainer import BalanceMaintainer, EntrySnapshot
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.ledger_enums import TransactionType, ReferenceType

logger = logging.getLogger("bizledger.ledger.journal")

_UNSET = object()


@dataclass
class Reconciliation:
    ledger_id: int
    opening_balance: Decimal
    total_debits: Decimal
    total_credits: Decimal
    journal_balance: Decimal
    current_balance: Decimal

    @property
    def drift(self) -> Decimal:
        return self.current_balance - self.journal_balance

    @property
    def is_balanced(self) -> bool:
        return self.drift == 0


class JournalService:

    @staticmethod
    async def post(
        db: AsyncSession,
        ledger_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
        reference_type: Optional[ReferenceType] = None,
        reference_id: Optional[int] = None,
        description: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
    ) -> LedgerTransaction:
        """
        Append a journal entry and apply its balance effect.

        Raises:
            InvalidAmountError: amount is not > 0
            LedgerIntegrityError: ledger does not exist
        """
        amount = parse_amount(amount)

        entry = LedgerTransaction(
            ledger_id=ledger_id,
            amount=amount,
            transaction_type=TransactionType(transaction_type),
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
            transaction_date=transaction_date or utc_now(),
        )
        # Balance first: a missing ledger must surface as an integrity error
        await BalanceMaintainer.apply_insert(db, entry)
        db.add(entry)
        await db.flush()

        logger.info(
            "Posted %s %s to ledger %s (ref %s:%s)",
            entry.transaction_type.value, amount, ledger_id,
            reference_type.value if reference_type else None, reference_id,
        )
        return entry

    @staticmethod
    async def get_entry(db: AsyncSession, transaction_id: int) -> LedgerTransaction:
        result = await db.execute(
            select(LedgerTransaction).where(LedgerTransaction.id == transaction_id)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise ResourceNotFoundError("Ledger transaction", transaction_id)
        return entry

    @staticmethod
    async def amend(
        db: AsyncSession,
        transaction_id: int,
        amount: Optional[Decimal] = None,
        transaction_type: Optional[TransactionType] = None,
        description=_UNSET,
        reference_type=_UNSET,
        reference_id=_UNSET,
        transaction_date: Optional[datetime] = None,
    ) -> LedgerTransaction:
        """
        Correct a journal entry in place.

        The previous balance effect is reversed and the new one applied.
        Description and reference fields accept None to clear them.
        """
        entry = await JournalService.get_entry(db, transaction_id)
        old = EntrySnapshot.of(entry)

        if amount is not None:
            entry.amount = parse_amount(amount)
        if transaction_type is not None:
            entry.transaction_type = TransactionType(transaction_type)
        if description is not _UNSET:
            entry.description = description
        if reference_type is not _UNSET:
            entry.reference_type = reference_type
        if reference_id is not _UNSET:
            entry.reference_id = reference_id
        if transaction_date is not None:
            entry.transaction_date = transaction_date
        entry.updated_at = utc_now()

        await BalanceMaintainer.apply_update(db, old, entry)

        logger.info(
            "Amended ledger transaction %s: %s %s -> %s %s",
            entry.id, old.transaction_type.value, old.amount,
            entry.transaction_type.value, entry.amount,
        )
        return entry

    @staticmethod
    async def void(db: AsyncSession, transaction_id: int) -> EntrySnapshot:
        """Delete a journal entry and reverse its balance effect."""
        entry = await JournalService.get_entry(db, transaction_id)
        old = EntrySnapshot.of(entry)

        await db.delete(entry)
        await BalanceMaintainer.apply_delete(db, old)

        logger.info(
            "Voided ledger transaction %s (%s %s on ledger %s)",
            transaction_id, old.transaction_type.value, old.amount, old.ledger_id,
        )
        return old

    @staticmethod
    async def find_by_reference(
        db: AsyncSession,
        reference_type: ReferenceType,
        reference_id: int,
    ) -> list[LedgerTransaction]:
        result = await db.execute(
            select(LedgerTransaction).where(
                LedgerTransaction.reference_type == reference_type,
                LedgerTransaction.reference_id == reference_id,
            ).order_by(LedgerTransaction.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_transactions(
        db: AsyncSession,
        ledger_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LedgerTransaction]:
        """
        Entries of a ledger in chronological order.

        date_to is inclusive: every entry dated on that day is returned.
        """
        ledger = await db.get(Ledger, ledger_id)
        if ledger is None:
            raise ResourceNotFoundError("Ledger", ledger_id)

        query = select(LedgerTransaction).where(LedgerTransaction.ledger_id == ledger_id)
        if date_from is not None:
            query = query.where(LedgerTransaction.transaction_date >= start_of_day(date_from))
        if date_to is not None:
            query = query.where(
                LedgerTransaction.transaction_date < start_of_day(date_to + timedelta(days=1))
            )
        query = query.order_by(LedgerTransaction.transaction_date, LedgerTransaction.id)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def reconcile(db: AsyncSession, ledger_id: int) -> Reconciliation:
        """Recompute a ledger's balance from its journal and compare."""
        ledger = await db.get(Ledger, ledger_id, populate_existing=True)
        if ledger is None:
            raise ResourceNotFoundError("Ledger", ledger_id)

        debit_sum = func.coalesce(func.sum(case(
            (LedgerTransaction.transaction_type == TransactionType.DEBIT, LedgerTransaction.amount),
            else_=0,
        )), 0)
        credit_sum = func.coalesce(func.sum(case(
            (LedgerTransaction.transaction_type == TransactionType.CREDIT, LedgerTransaction.amount),
            else_=0,
        )), 0)
        row = (await db.execute(
            select(debit_sum, credit_sum).where(LedgerTransaction.ledger_id == ledger_id)
        )).one()

        total_debits = money(row[0])
        total_credits = money(row[1])
        opening = money(ledger.opening_balance)
        journal_balance = opening + total_debits - total_credits

        reconciliation = Reconciliation(
            ledger_id=ledger_id,
            opening_balance=opening,
            total_debits=total_debits,
            total_credits=total_credits,
            journal_balance=journal_balance,
            current_balance=money(ledger.current_balance),
        )
        if not reconciliation.is_balanced:
            logger.warning(
                "Ledger %s drifted from journal: current=%s journal=%s",
                ledger_id, reconciliation.current_balance, journal_balance,
            )
        return reconciliation
