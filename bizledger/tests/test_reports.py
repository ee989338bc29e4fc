"""
Aging and summary report tests.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from bizledger.app.core.exceptions import ValidationError
from bizledger.app.db.session import unit_of_work
from bizledger.app.domain.ledger.journal import JournalService
from bizledger.app.models.ledger_enums import TransactionType
from bizledger.app.services.aging_analysis import AgingAnalysisService
from bizledger.app.services.ledger_summary import LedgerSummaryService

AS_OF = date(2026, 6, 30)
MIDNIGHT = datetime(2026, 6, 30, tzinfo=timezone.utc)


async def _debit(db, ledger_id, amount, posted_at):
    await JournalService.post(
        db, ledger_id, Decimal(amount), TransactionType.DEBIT, transaction_date=posted_at
    )


@pytest.mark.asyncio
async def test_aging_buckets_are_exclusive(db_session, seed):
    _, ledger = await seed.customer("Aged Co")

    async with unit_of_work(db_session):
        await _debit(db_session, ledger.id, "1.00", MIDNIGHT + timedelta(hours=9))       # today
        await _debit(db_session, ledger.id, "2.00", MIDNIGHT - timedelta(days=30))       # on b1 edge
        await _debit(db_session, ledger.id, "4.00", MIDNIGHT - timedelta(days=30, seconds=1))
        await _debit(db_session, ledger.id, "8.00", MIDNIGHT - timedelta(days=60))
        await _debit(db_session, ledger.id, "16.00", MIDNIGHT - timedelta(days=75))
        await _debit(db_session, ledger.id, "32.00", MIDNIGHT - timedelta(days=90, seconds=1))
        await JournalService.post(
            db_session, ledger.id, Decimal("50.00"), TransactionType.CREDIT,
            transaction_date=MIDNIGHT - timedelta(days=100),
        )

    rows = await AgingAnalysisService.get_customer_aging(db_session, as_of=AS_OF)

    assert len(rows) == 1
    row = rows[0]
    assert row.customer_name == "Aged Co"
    assert row.current_balance == Decimal("13.00")
    assert row.days_0_30 == Decimal("3.00")
    assert row.days_31_60 == Decimal("12.00")
    assert row.days_61_90 == Decimal("16.00")
    assert row.days_over_90 == Decimal("32.00")
    # Every debit lands in exactly one bucket
    assert row.days_0_30 + row.days_31_60 + row.days_61_90 + row.days_over_90 == Decimal("63.00")


@pytest.mark.asyncio
async def test_aging_skips_settled_customers_and_orders_by_balance(db_session, seed):
    _, small = await seed.customer("Small")
    _, large = await seed.customer("Large")
    _, settled = await seed.customer("Settled")

    async with unit_of_work(db_session):
        await _debit(db_session, small.id, "10.00", MIDNIGHT)
        await _debit(db_session, large.id, "90.00", MIDNIGHT)
        await _debit(db_session, settled.id, "40.00", MIDNIGHT)
        await JournalService.post(db_session, settled.id, Decimal("40.00"), TransactionType.CREDIT)

    rows = await AgingAnalysisService.get_customer_aging(db_session, as_of=AS_OF)
    assert [r.customer_name for r in rows] == ["Large", "Small"]


@pytest.mark.asyncio
async def test_aging_custom_boundaries(db_session, seed):
    _, ledger = await seed.customer()
    async with unit_of_work(db_session):
        await _debit(db_session, ledger.id, "5.00", MIDNIGHT - timedelta(days=10))

    rows = await AgingAnalysisService.get_customer_aging(db_session, [7, 14, 21], as_of=AS_OF)
    assert rows[0].days_0_30 == Decimal("0.00")
    assert rows[0].days_31_60 == Decimal("5.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("boundaries", [[30, 60], [60, 30, 90], [0, 30, 60], [30, 30, 90]])
async def test_aging_rejects_bad_boundaries(db_session, boundaries):
    with pytest.raises(ValidationError):
        await AgingAnalysisService.get_customer_aging(db_session, boundaries, as_of=AS_OF)


@pytest.mark.asyncio
async def test_summary_on_empty_store(db_session):
    summary = await LedgerSummaryService.get_ledger_summary(db_session)
    assert summary.total_customers == 0
    assert summary.net_position == Decimal("0.00")
    assert summary.total_outstanding_receivables == Decimal("0.00")


@pytest.mark.asyncio
async def test_summary_rollup(db_session, seed):
    _, owes = await seed.customer("Owes")
    _, credit = await seed.customer("In Credit")
    await seed.customer("Even")

    async with unit_of_work(db_session):
        await JournalService.post(db_session, owes.id, Decimal("700.00"), TransactionType.DEBIT)
        await JournalService.post(db_session, credit.id, Decimal("250.00"), TransactionType.CREDIT)

    summary = await LedgerSummaryService.get_ledger_summary(db_session)
    assert summary.total_customers == 3
    assert summary.customers_with_positive_balance == 1
    assert summary.customers_with_negative_balance == 1
    assert summary.customers_with_zero_balance == 1
    assert summary.total_outstanding_receivables == Decimal("700.00")
    assert summary.total_outstanding_payables == Decimal("250.00")
    assert summary.net_position == Decimal("450.00")
