"""
Customer Aging Analysis.

Buckets each outstanding customer's debit postings by age.
READ-ONLY: nothing here writes.
"""

from datetime import date, timedelta
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, and_, desc

from bizledger.app.core.clock import utc_now, start_of_day
from bizledger.app.core.exceptions import ValidationError
from bizledger.app.core.money import money
from bizledger.app.models.customer import Customer
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.ledger_enums import TransactionType
from bizledger.app.schemas.reports import AgingRow

DEFAULT_DAY_BOUNDARIES = (30, 60, 90)


def validate_day_boundaries(day_boundaries: Sequence[int]) -> List[int]:
    boundaries = list(day_boundaries)
    if (
        len(boundaries) != 3
        or any(isinstance(b, bool) or not isinstance(b, int) or b <= 0 for b in boundaries)
        or not boundaries[0] < boundaries[1] < boundaries[2]
    ):
        raise ValidationError(
            "day_boundaries must be three strictly increasing positive integers",
            details={"day_boundaries": [str(b) for b in boundaries]},
        )
    return boundaries


class AgingAnalysisService:

    @staticmethod
    async def get_customer_aging(
        db: AsyncSession,
        day_boundaries: Sequence[int] = DEFAULT_DAY_BOUNDARIES,
        as_of: Optional[date] = None,
    ) -> List[AgingRow]:
        """
        Age the debits of every ledger with a positive balance.

        With boundaries (b1, b2, b3) and t = midnight UTC of as_of:
            days_0_30    date >= t - b1
            days_31_60   t - b2 <= date < t - b1
            days_61_90   t - b3 <= date < t - b2
            days_over_90 date < t - b3

        Buckets are mutually exclusive, so each debit lands in exactly one.
        Rows are ordered by current_balance, largest first.
        """
        b1, b2, b3 = validate_day_boundaries(day_boundaries)
        today = start_of_day(as_of or utc_now().date())
        cut1 = today - timedelta(days=b1)
        cut2 = today - timedelta(days=b2)
        cut3 = today - timedelta(days=b3)

        is_debit = LedgerTransaction.transaction_type == TransactionType.DEBIT
        posted = LedgerTransaction.transaction_date

        def bucket(condition):
            return func.coalesce(func.sum(case(
                (and_(is_debit, condition), LedgerTransaction.amount),
                else_=0,
            )), 0)

        stmt = select(
            Ledger.customer_id,
            Customer.name.label("customer_name"),
            Ledger.current_balance,
            bucket(posted >= cut1).label("days_0_30"),
            bucket(and_(posted >= cut2, posted < cut1)).label("days_31_60"),
            bucket(and_(posted >= cut3, posted < cut2)).label("days_61_90"),
            bucket(posted < cut3).label("days_over_90"),
        ).join(Customer, Customer.id == Ledger.customer_id)\
         .outerjoin(LedgerTransaction, LedgerTransaction.ledger_id == Ledger.id)\
         .where(Ledger.current_balance > 0)\
         .group_by(Ledger.id, Ledger.customer_id, Customer.name, Ledger.current_balance)\
         .order_by(desc(Ledger.current_balance), Ledger.id)

        results = await db.execute(stmt)

        data = []
        for row in results:
            data.append(AgingRow(
                customer_id=row.customer_id,
                customer_name=row.customer_name,
                current_balance=money(row.current_balance),
                days_0_30=money(row.days_0_30),
                days_31_60=money(row.days_31_60),
                days_61_90=money(row.days_61_90),
                days_over_90=money(row.days_over_90),
            ))
        return data
