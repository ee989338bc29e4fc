"""
Ledger API Endpoints.

Statement view, manual journal entries (add / correct / void) and
reconciliation of the stored balance against the journal.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db, unit_of_work
from bizledger.app.core.exceptions import ResourceNotFoundError, ValidationError
from bizledger.app.core.money import money, ZERO
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_enums import TransactionType
from bizledger.app.schemas.ledger import (
    LedgerResponse, LedgerStatementResponse, LedgerTransactionCreate,
    LedgerTransactionResponse, LedgerTransactionUpdate, ReconciliationResponse,
)
from bizledger.app.services.audit import log_event, AuditAction
from bizledger.app.services.cache import CacheService

router = APIRouter(prefix="/ledgers", tags=["Ledgers"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("/{ledger_id}/transactions", response_model=LedgerStatementResponse)
async def list_ledger_transactions(
    ledger_id: int,
    date_from: Optional[date] = Query(None, description="First day, inclusive"),
    date_to: Optional[date] = Query(None, description="Last day, inclusive"),
    db: AsyncSession = Depends(get_db)
):
    """
    Journal entries of a ledger in chronological order, with window totals.
    """
    if date_from and date_to and date_to < date_from:
        raise ValidationError("date_to cannot be before date_from")

    transactions = await JournalService.list_transactions(db, ledger_id, date_from, date_to)
    ledger = await db.get(Ledger, ledger_id)

    total_debits = sum(
        (money(t.amount) for t in transactions if t.transaction_type == TransactionType.DEBIT), ZERO
    )
    total_credits = sum(
        (money(t.amount) for t in transactions if t.transaction_type == TransactionType.CREDIT), ZERO
    )

    return LedgerStatementResponse(
        ledger=LedgerResponse.model_validate(ledger),
        transactions=[LedgerTransactionResponse.model_validate(t) for t in transactions],
        total_debits=total_debits,
        total_credits=total_credits,
    )


@router.post(
    "/{ledger_id}/transactions",
    response_model=LedgerTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_ledger_transaction(
    ledger_id: int,
    entry_data: LedgerTransactionCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Post a manual journal entry."""
    ledger = await db.get(Ledger, ledger_id)
    if ledger is None:
        raise ResourceNotFoundError("Ledger", ledger_id)

    async with unit_of_work(db):
        entry = await JournalService.post(
            db,
            ledger_id=ledger_id,
            amount=entry_data.amount,
            transaction_type=entry_data.transaction_type,
            reference_type=entry_data.reference_type,
            reference_id=entry_data.reference_id,
            description=entry_data.description,
            transaction_date=entry_data.transaction_date,
        )
        await log_event(
            db=db,
            action=AuditAction.LEDGER_ENTRY_ADDED,
            entity_type="ledger_transaction",
            entity_id=entry.id,
            metadata={
                "ledger_id": ledger_id,
                "amount": str(entry.amount),
                "transaction_type": entry.transaction_type.value,
            },
            ip_address=_client_ip(request),
        )

    await CacheService.invalidate_reports()

    return LedgerTransactionResponse.model_validate(entry)


@router.patch("/transactions/{transaction_id}", response_model=LedgerTransactionResponse)
async def amend_ledger_transaction(
    transaction_id: int,
    changes: LedgerTransactionUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Correct a journal entry. The balance is re-derived from the old and
    new values, so flipping debit/credit is safe.
    """
    fields = changes.model_dump(exclude_unset=True)
    if fields.get("amount", ...) is None or fields.get("transaction_type", ...) is None:
        raise ValidationError("amount and transaction_type cannot be cleared")

    async with unit_of_work(db):
        entry = await JournalService.amend(db, transaction_id, **fields)
        await log_event(
            db=db,
            action=AuditAction.LEDGER_ENTRY_AMENDED,
            entity_type="ledger_transaction",
            entity_id=entry.id,
            metadata={"changed": sorted(fields)},
            ip_address=_client_ip(request),
        )

    await CacheService.invalidate_reports()

    return LedgerTransactionResponse.model_validate(entry)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def void_ledger_transaction(
    transaction_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Delete a journal entry and reverse its balance effect."""
    async with unit_of_work(db):
        old = await JournalService.void(db, transaction_id)
        await log_event(
            db=db,
            action=AuditAction.LEDGER_ENTRY_VOIDED,
            entity_type="ledger_transaction",
            entity_id=transaction_id,
            metadata={
                "ledger_id": old.ledger_id,
                "amount": str(old.amount),
                "transaction_type": old.transaction_type.value,
            },
            ip_address=_client_ip(request),
        )

    await CacheService.invalidate_reports()


@router.get("/{ledger_id}/reconciliation", response_model=ReconciliationResponse)
async def reconcile_ledger(ledger_id: int, db: AsyncSession = Depends(get_db)):
    """Compare current_balance with opening + debits - credits from the journal."""
    result = await JournalService.reconcile(db, ledger_id)
    return ReconciliationResponse(
        ledger_id=result.ledger_id,
        opening_balance=result.opening_balance,
        total_debits=result.total_debits,
        total_credits=result.total_credits,
        journal_balance=result.journal_balance,
        current_balance=result.current_balance,
        drift=result.drift,
        is_balanced=result.is_balanced,
    )
