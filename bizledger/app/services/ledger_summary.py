"""
Portfolio-wide ledger summary. READ-ONLY.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case

from bizledger.app.core.money import money
from bizledger.app.models.ledger import Ledger
from bizledger.app.schemas.reports import LedgerSummary


class LedgerSummaryService:

    @staticmethod
    async def get_ledger_summary(db: AsyncSession) -> LedgerSummary:
        """Roll up every ledger. An empty store yields all zeros."""
        balance = Ledger.current_balance

        stmt = select(
            func.count(Ledger.id).label("total_customers"),
            func.count(case((balance > 0, 1))).label("positive"),
            func.count(case((balance < 0, 1))).label("negative"),
            func.count(case((balance == 0, 1))).label("zero"),
            func.coalesce(func.sum(case((balance > 0, balance), else_=0)), 0).label("receivables"),
            func.coalesce(func.sum(case((balance < 0, -balance), else_=0)), 0).label("payables"),
            func.coalesce(func.sum(balance), 0).label("net"),
        )
        row = (await db.execute(stmt)).one()

        return LedgerSummary(
            total_customers=row.total_customers or 0,
            customers_with_positive_balance=row.positive or 0,
            customers_with_negative_balance=row.negative or 0,
            customers_with_zero_balance=row.zero or 0,
            total_outstanding_receivables=money(row.receivables),
            total_outstanding_payables=money(row.payables),
            net_position=money(row.net),
        )
