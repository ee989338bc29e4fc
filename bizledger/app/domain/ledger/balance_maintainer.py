"""
Balance Maintainer (Domain Logic).

Keeps ledgers.current_balance consistent with the journal.
Every journal insert, update or delete is paired with exactly one call
here, and nothing else writes current_balance.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bizledger.app.core.clock import utc_now
from bizledger.app.core.exceptions import LedgerIntegrityError
from bizledger.app.core.money import money
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.ledger_enums import TransactionType

logger = logging.getLogger("bizledger.ledger.balance")


@dataclass(frozen=True)
class EntrySnapshot:
    """Balance-relevant fields of a journal entry before it was changed."""
    ledger_id: int
    amount: Decimal
    transaction_type: TransactionType

    @classmethod
    def of(cls, entry: LedgerTransaction) -> "EntrySnapshot":
        return cls(
            ledger_id=entry.ledger_id,
            amount=money(entry.amount),
            transaction_type=TransactionType(entry.transaction_type),
        )


def signed_amount(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """+amount for a debit, -amount for a credit."""
    amount = money(amount)
    return amount if transaction_type == TransactionType.DEBIT else -amount


class BalanceMaintainer:

    @staticmethod
    async def lock_ledger(db: AsyncSession, ledger_id: int) -> Ledger:
        """
        Load a ledger row under an exclusive lock.

        Raises:
            LedgerIntegrityError: If the ledger does not exist.
        """
        result = await db.execute(
            select(Ledger)
            .where(Ledger.id == ledger_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        ledger = result.scalar_one_or_none()
        if ledger is None:
            logger.error("Balance adjustment rejected: ledger %s missing", ledger_id)
            raise LedgerIntegrityError(ledger_id)
        return ledger

    @staticmethod
    async def _adjust(db: AsyncSession, ledger_id: int, delta: Decimal) -> Ledger:
        ledger = await BalanceMaintainer.lock_ledger(db, ledger_id)
        ledger.current_balance = money(ledger.current_balance) + delta
        ledger.updated_at = utc_now()
        # Flush per step: the next lock reloads the row from the database
        await db.flush()
        return ledger

    @staticmethod
    async def apply_insert(db: AsyncSession, entry: LedgerTransaction) -> Ledger:
        """current_balance += signed(entry)"""
        ledger = await BalanceMaintainer._adjust(
            db, entry.ledger_id, signed_amount(entry.amount, entry.transaction_type)
        )
        return ledger

    @staticmethod
    async def apply_update(db: AsyncSession, old: EntrySnapshot, entry: LedgerTransaction) -> Ledger:
        """
        Reverse the old effect, then apply the new one.

        Two separate steps rather than a diff, so a debit/credit flip or a
        move to another ledger lands on the right accounts.
        """
        await BalanceMaintainer._adjust(
            db, old.ledger_id, -signed_amount(old.amount, old.transaction_type)
        )
        ledger = await BalanceMaintainer._adjust(
            db, entry.ledger_id, signed_amount(entry.amount, entry.transaction_type)
        )
        return ledger

    @staticmethod
    async def apply_delete(db: AsyncSession, old: EntrySnapshot) -> Ledger:
        """current_balance -= signed(entry)"""
        ledger = await BalanceMaintainer._adjust(
            db, old.ledger_id, -signed_amount(old.amount, old.transaction_type)
        )
        return ledger
