"""
Money helpers. Every monetary value is a Decimal rounded to cents.
"""

from decimal import Decimal, ROUND_HALF_UP

from bizledger.app.core.exceptions import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Coerce a database or user value to a cent-rounded Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Decimal:
    """
    Parse a user-supplied amount that must be strictly positive.

    Raises:
        InvalidAmountError: value is missing, not a number, or <= 0 after rounding
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError:
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    amount = money(amount)
    if amount <= 0:
        raise InvalidAmountError(details={"amount": str(amount)})
    return amount
