"""
Read-only report schemas (aging, portfolio summary).
"""

from pydantic import BaseModel
from decimal import Decimal
from typing import List


class LedgerSummary(BaseModel):
    """Portfolio-wide rollup over all ledgers."""
    total_customers: int
    customers_with_positive_balance: int
    customers_with_negative_balance: int
    customers_with_zero_balance: int
    total_outstanding_receivables: Decimal
    total_outstanding_payables: Decimal
    net_position: Decimal


class AgingRow(BaseModel):
    """Outstanding debits of one customer bucketed by age."""
    customer_id: int
    customer_name: str
    current_balance: Decimal
    days_0_30: Decimal
    days_31_60: Decimal
    days_61_90: Decimal
    days_over_90: Decimal


class AgingReport(BaseModel):
    day_boundaries: List[int]
    rows: List[AgingRow]
