"""
Invoice payment status rule.

Shared by forward allocation and refund reversal so both directions use
the same thresholds.
"""

from decimal import Decimal

from bizledger.app.core.money import money, ZERO
from bizledger.app.models.ledger_enums import InvoiceStatus


def resolve_invoice_status(amount_paid: Decimal, total: Decimal) -> tuple[Decimal, InvoiceStatus]:
    """
    Clamp amount_paid into [0, total] and derive the payment status.

    >>> resolve_invoice_status(Decimal("700"), Decimal("1180"))
    (Decimal('700.00'), <InvoiceStatus.PARTIALLY_PAID: 'partially_paid'>)
    >>> resolve_invoice_status(Decimal("1500"), Decimal("1180"))
    (Decimal('1180.00'), <InvoiceStatus.PAID: 'paid'>)
    """
    amount_paid = money(amount_paid)
    total = money(total)

    if amount_paid >= total:
        return total, InvoiceStatus.PAID
    if amount_paid > 0:
        return amount_paid, InvoiceStatus.PARTIALLY_PAID
    return ZERO, InvoiceStatus.SENT
