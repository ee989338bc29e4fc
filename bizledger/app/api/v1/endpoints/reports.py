"""
Report API Endpoints (READ-ONLY).

Results are cached in Redis until the next ledger mutation.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db
from bizledger.app.core.clock import utc_now
from bizledger.app.core.config import settings
from bizledger.app.schemas.reports import AgingReport, LedgerSummary
from bizledger.app.services.aging_analysis import AgingAnalysisService, validate_day_boundaries
from bizledger.app.services.cache import CacheService
from bizledger.app.services.ledger_summary import LedgerSummaryService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/ledger-summary", response_model=LedgerSummary)
async def get_ledger_summary(db: AsyncSession = Depends(get_db)):
    """Customer counts by balance sign, receivables, payables and net position."""

    async def compute():
        summary = await LedgerSummaryService.get_ledger_summary(db)
        return summary.model_dump(mode="json")

    data = await CacheService.cached(
        "ledger-summary", (), settings.summary_cache_ttl_seconds, compute
    )
    return LedgerSummary.model_validate(data)


@router.get("/aging", response_model=AgingReport)
async def get_customer_aging(
    day_boundaries: Optional[List[int]] = Query(
        None, description="Three increasing day counts, e.g. ?day_boundaries=30&day_boundaries=60&day_boundaries=90"
    ),
    as_of: Optional[date] = Query(None, description="Reference day (defaults to today, UTC)"),
    db: AsyncSession = Depends(get_db)
):
    """Outstanding debits per customer, bucketed by age."""
    boundaries = validate_day_boundaries(day_boundaries or settings.aging_day_boundaries)
    as_of = as_of or utc_now().date()

    async def compute():
        rows = await AgingAnalysisService.get_customer_aging(db, boundaries, as_of)
        report = AgingReport(day_boundaries=boundaries, rows=rows)
        return report.model_dump(mode="json")

    data = await CacheService.cached(
        "aging",
        (as_of.isoformat(), "-".join(str(b) for b in boundaries)),
        settings.aging_cache_ttl_seconds,
        compute,
    )
    return AgingReport.model_validate(data)
